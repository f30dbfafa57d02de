"""Generic "call a contract method" runner.

A :class:`CommandDescriptor` names the positional fields a command expects and
the strategy that turns them into a contract call. The dispatcher owns
everything around it: argument count check, key loading, making sure the
calling account is deployed, and reporting both accounts before and after.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from .config import ConfigurationError, ToolConfig
from .deploy import contract_ref
from .keys import load_or_create_key_pair
from .ledger_client import ConfirmationHandle, LedgerClient
from .model import AccountSnapshot, ContractRef, KeyPair
from .reporter import CALL_MESSAGES, Reporter

logger = logging.getLogger(__name__)

ADDRESS_FIELD = "address"
TARGET_NAME = "Target"

InvocationStrategy = Callable[
    [LedgerClient, ContractRef, Mapping[str, str], KeyPair], Optional[ConfirmationHandle]
]


class UsageError(RuntimeError):
    """Raised when a command cannot run with the arguments or account given."""

    def __init__(self, message: str, expected_fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.expected_fields = tuple(expected_fields)


@dataclass(frozen=True)
class CommandDescriptor:
    """Field schema plus the strategy that performs the call."""

    name: str
    field_names: tuple[str, ...]
    strategy: InvocationStrategy
    description: str = ""
    contract_abi: str | None = None
    target_field: str = ADDRESS_FIELD

    def __post_init__(self) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for name in self.field_names:
            if name in seen:
                duplicates.append(name)
            seen.add(name)
        if duplicates:
            raise ConfigurationError(
                f"Command {self.name} declares duplicate fields: {', '.join(duplicates)}"
            )
        if self.target_field not in self.field_names:
            raise ConfigurationError(
                f"Command {self.name} must declare a '{self.target_field}' field"
            )


def build_invocation_request(
    field_names: Sequence[str], values: Sequence[str]
) -> "OrderedDict[str, str]":
    """Pair field names with positional values, preserving order."""

    if len(field_names) != len(values):
        raise UsageError(
            f"Expected {len(field_names)} arguments ({', '.join(field_names)}), got {len(values)}",
            expected_fields=field_names,
        )
    return OrderedDict(zip(field_names, values))


class InvocationDispatcher:
    """Runs one :class:`CommandDescriptor` against the configured contract."""

    def __init__(
        self,
        config: ToolConfig,
        command: CommandDescriptor,
        args: Sequence[str],
        ledger: LedgerClient,
        reporter: Reporter,
        key_loader: Callable[[Path], KeyPair] = load_or_create_key_pair,
    ) -> None:
        self.config = config
        self.command = command
        self.args = tuple(args)
        self.ledger = ledger
        self.reporter = reporter
        self._load_keys = key_loader

    def run(self) -> None:
        # Argument count is checked before the ledger is touched.
        if len(self.args) != len(self.command.field_names):
            self._invalid_arguments_count()
        try:
            self._run()
        finally:
            self.ledger.close()

    def _run(self) -> None:
        field_names = self.command.field_names
        keys = self._load_keys(self.config.keys)
        contract = self._contract(keys)

        snapshot = self.ledger.query_snapshot(contract.address, contract.name)
        if not snapshot.is_active:
            self._account_is_not_active(snapshot)

        request = build_invocation_request(field_names, self.args)
        target = ContractRef(name=TARGET_NAME, address=request[self.command.target_field])

        self.reporter.network(self.config.net.url)
        self._report_accounts(contract, target)

        self.reporter.print(CALL_MESSAGES["CALL"])
        logger.info("Running %s on %s", self.command.name, contract.address)
        handle = self.command.strategy(self.ledger, contract, request, keys)
        if handle is not None:
            self.ledger.wait_for_confirmation(handle)
        self.reporter.print(f"{CALL_MESSAGES['DONE']}\n")

        self._report_accounts(contract, target)

    def _contract(self, keys: KeyPair) -> ContractRef:
        ref = contract_ref(self.config.contract, keys)
        if ref.abi is None and self.command.contract_abi is not None:
            ref = replace(ref, abi=self.command.contract_abi)
        return ref

    def _report_accounts(self, contract: ContractRef, target: ContractRef) -> None:
        self.reporter.account(self.ledger.query_snapshot(contract.address, contract.name))
        self.reporter.account(self.ledger.query_snapshot(target.address, target.name))

    def _invalid_arguments_count(self) -> None:
        self.reporter.print(CALL_MESSAGES["INVALID_ARGUMENTS_COUNT"])
        self.reporter.print(CALL_MESSAGES["ARGUMENTS"])
        for name in self.command.field_names:
            self.reporter.print(f"    {name}")
        raise UsageError(
            f"{self.command.name} expects {len(self.command.field_names)} arguments, "
            f"got {len(self.args)}",
            expected_fields=self.command.field_names,
        )

    def _account_is_not_active(self, snapshot: AccountSnapshot) -> None:
        self.reporter.network(self.config.net.url)
        self.reporter.account(snapshot)
        self.reporter.print(CALL_MESSAGES["ACCOUNT_IS_NOT_ACTIVE"])
        raise UsageError(
            f"Account {snapshot.address} is {snapshot.activation.label}; "
            "deploy it before calling its methods"
        )
