"""Domain models shared by the deploy, call and info runners.

Snapshots are read-only views of what the ledger reported at query time. They
go stale as soon as a transfer, deployment or method call is submitted, so the
runners always fetch a fresh one instead of mutating an old one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ActivationState(Enum):
    """Ledger-visible lifecycle stage of an account."""

    UNINITIALIZED = "uninit"
    ACTIVE = "active"
    FROZEN = "frozen"
    NON_EXISTENT = "nonExist"

    @classmethod
    def from_ledger(cls, raw: Any) -> "ActivationState":
        """Decode the gateway's ``acc_type`` (numeric or textual)."""

        if isinstance(raw, ActivationState):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            try:
                return _NUMERIC_STATES[raw]
            except KeyError:
                raise ValueError(f"Unknown account type code: {raw}") from None
        text = str(raw).strip()
        if text.isdigit():
            return cls.from_ledger(int(text))
        for state in cls:
            if text.lower() in {state.value.lower(), state.name.lower()}:
                return state
        raise ValueError(f"Unknown account type: {raw!r}")

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_NUMERIC_STATES = {
    0: ActivationState.UNINITIALIZED,
    1: ActivationState.ACTIVE,
    2: ActivationState.FROZEN,
    3: ActivationState.NON_EXISTENT,
}

_STATE_LABELS = {
    ActivationState.UNINITIALIZED: "Uninit",
    ActivationState.ACTIVE: "Active",
    ActivationState.FROZEN: "Frozen",
    ActivationState.NON_EXISTENT: "NonExist",
}


@dataclass(frozen=True)
class KeyPair:
    """Ed25519 signing keys as lowercase hex strings."""

    public: str
    secret: str

    def to_jsonable(self) -> dict[str, str]:
        return {"public": self.public, "secret": self.secret}


@dataclass(frozen=True)
class AccountSnapshot:
    """Point-in-time view of an account: address, activation state, balance."""

    address: str
    activation: ActivationState
    balance: int
    name: str | None = None

    @property
    def is_active(self) -> bool:
        return self.activation is ActivationState.ACTIVE


@dataclass(frozen=True)
class ContractRef:
    """Everything the ledger client needs to query, deploy or call a contract."""

    name: str
    address: str
    keys: KeyPair | None = None
    abi: str | None = None
    image: str | None = None
    constructor_args: Mapping[str, Any] = field(default_factory=dict)
