"""Print the network target and one account's current state."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from .config import ToolConfig
from .deploy import contract_ref
from .keys import load_or_create_key_pair
from .ledger_client import LedgerClient
from .model import AccountSnapshot, KeyPair
from .reporter import Reporter


class AccountInfo:
    def __init__(
        self,
        config: ToolConfig,
        ledger: LedgerClient,
        reporter: Reporter,
        key_loader: Callable[[Path], KeyPair] = load_or_create_key_pair,
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.reporter = reporter
        self._load_keys = key_loader

    def run(self) -> AccountSnapshot:
        try:
            contract = contract_ref(self.config.contract, self._load_keys(self.config.keys))
            self.reporter.network(self.config.net.url)
            snapshot = self.ledger.query_snapshot(contract.address, contract.name)
            self.reporter.account(snapshot)
            return snapshot
        finally:
            self.ledger.close()
