"""Built-in contract commands for the ``call`` subcommand."""

from __future__ import annotations

from typing import Mapping

from .amounts import AmountError, parse_amount
from .call import CommandDescriptor, UsageError
from .ledger_client import ConfirmationHandle, LedgerClient
from .model import ContractRef, KeyPair

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


def read_int(raw: str, field: str = "value") -> int:
    """Read an integer argument; ``1_000_000_000`` and ``0x...`` are accepted."""

    try:
        return parse_amount(raw)
    except AmountError as exc:
        raise UsageError(f"Invalid integer for {field}: {raw!r}") from exc


def read_boolean(raw: str, field: str = "bounce") -> bool:
    normalized = str(raw).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise UsageError(f"Invalid boolean for {field}: {raw!r} (use true or false)")


def giver_send(
    ledger: LedgerClient, contract: ContractRef, request: Mapping[str, str], keys: KeyPair
) -> ConfirmationHandle:
    """Send ``value`` base units from a giver to ``address`` without bounce."""

    return ledger.call_method(
        contract,
        "sendTransaction",
        {
            "dest": request["address"],
            "value": read_int(request["value"], "value"),
            "bounce": False,
        },
        keys,
    )


def multisig_send(
    ledger: LedgerClient, contract: ContractRef, request: Mapping[str, str], keys: KeyPair
) -> ConfirmationHandle:
    """Submit a SafeMultisig ``sendTransaction`` carrying a text comment."""

    return ledger.call_method(
        contract,
        "sendTransaction",
        {
            "dest": request["address"],
            "value": read_int(request["value"], "value"),
            "bounce": read_boolean(request["bounce"], "bounce"),
            "flags": read_int(request["flags"], "flags"),
            "payload": request["comment"],
        },
        keys,
    )


GIVER_SEND = CommandDescriptor(
    name="giver-send",
    field_names=("address", "value"),
    strategy=giver_send,
    description="Send base units from a giver contract",
)

MULTISIG_SEND = CommandDescriptor(
    name="multisig-send",
    field_names=("address", "value", "bounce", "flags", "comment"),
    strategy=multisig_send,
    description="Send base units with a comment from a SafeMultisig wallet",
)

COMMANDS: dict[str, CommandDescriptor] = {
    command.name: command for command in (GIVER_SEND, MULTISIG_SEND)
}
