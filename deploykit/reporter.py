"""Console output for deploy, call and info runs."""

from __future__ import annotations

import sys
from typing import TextIO

from .amounts import BASE_UNITS, format_amount
from .model import AccountSnapshot

DEPLOY_MESSAGES = {
    "NOT_ENOUGH_BALANCE": "NOT ENOUGH BALANCE",
    "ALREADY_DEPLOYED": "CONTRACT ALREADY DEPLOYED",
    "FROZEN": "ACCOUNT FROZEN",
    "NON_EXIST": "ACCOUNT NON EXIST",
    "DEPLOYING": "DEPLOYING...",
    "DEPLOYED": "DEPLOYED",
    "SENDING": "SENDING...",
    "SENT": "SENT",
}

CALL_MESSAGES = {
    "INVALID_ARGUMENTS_COUNT": "INVALID ARGUMENTS COUNT",
    "ACCOUNT_IS_NOT_ACTIVE": "ACCOUNT IS NOT ACTIVE",
    "ARGUMENTS": "ARGUMENTS",
    "CALL": "CALL...",
    "DONE": "DONE",
}


class Reporter:
    """Prints network targets, account snapshots and progress marks."""

    def __init__(self, locale: str | None = None, stream: TextIO | None = None) -> None:
        self.locale = locale
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def network(self, url: str) -> None:
        self.print(url)
        self.print()

    def account(self, snapshot: AccountSnapshot) -> None:
        balance = format_amount(snapshot.balance, BASE_UNITS, self.locale)
        if snapshot.name:
            self.print(snapshot.name)
        self.print(f"{snapshot.address}   {balance}   {snapshot.activation.label}")
        self.print()
