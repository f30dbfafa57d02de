"""Deploy a contract, pre-funding it from a giver account when needed."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Callable

from .config import ContractConfig, DeployConfig
from .funding import plan_funding
from .keys import load_or_create_key_pair
from .ledger_client import LedgerClient
from .model import AccountSnapshot, ActivationState, ContractRef, KeyPair
from .reporter import DEPLOY_MESSAGES, Reporter

logger = logging.getLogger(__name__)

KeyLoader = Callable[[Path], KeyPair]


class DeploymentOutcome(Enum):
    """How a deployment run ended."""

    DEPLOYED = "deployed"
    ALREADY_DEPLOYED = "already_deployed"
    FROZEN = "frozen"
    NON_EXISTENT = "non_existent"
    INSUFFICIENT_GIVER_BALANCE = "insufficient_giver_balance"

    @property
    def is_failure(self) -> bool:
        return self is DeploymentOutcome.INSUFFICIENT_GIVER_BALANCE


_TERMINAL_STATES = {
    ActivationState.ACTIVE: (DeploymentOutcome.ALREADY_DEPLOYED, "ALREADY_DEPLOYED"),
    ActivationState.FROZEN: (DeploymentOutcome.FROZEN, "FROZEN"),
    ActivationState.NON_EXISTENT: (DeploymentOutcome.NON_EXISTENT, "NON_EXIST"),
}


def contract_ref(contract: ContractConfig, keys: KeyPair | None) -> ContractRef:
    return ContractRef(
        name=contract.name,
        address=contract.address,
        keys=keys,
        abi=contract.abi,
        image=contract.image,
        constructor_args=dict(contract.constructor),
    )


class DeploymentOrchestrator:
    """Drives one deployment: inspect, fund if needed, deploy, report.

    Only an uninitialized target is deployed. Active, frozen and non-existent
    targets end the run after reporting, without touching the giver. The
    ledger client is closed exactly once whichever way the run ends; ledger
    errors propagate to the caller.
    """

    def __init__(
        self,
        config: DeployConfig,
        ledger: LedgerClient,
        reporter: Reporter,
        key_loader: KeyLoader = load_or_create_key_pair,
    ) -> None:
        if config.giver is None or config.giver.keys is None:
            raise ValueError("DeployConfig requires a giver with a key file")
        self.config = config
        self.ledger = ledger
        self.reporter = reporter
        self._load_keys = key_loader

    def run(self) -> DeploymentOutcome:
        try:
            keys = self._load_keys(self.config.keys)
            giver_keys = self._load_keys(self.config.giver.keys)
            giver = contract_ref(self.config.giver, giver_keys)
            target = contract_ref(self.config.contract, keys)
            return self._run(giver, target)
        finally:
            self.ledger.close()

    def _run(self, giver: ContractRef, target: ContractRef) -> DeploymentOutcome:
        self.reporter.network(self.config.net.url)
        giver_snapshot, target_snapshot = self._report_accounts(giver, target)

        terminal = _TERMINAL_STATES.get(target_snapshot.activation)
        if terminal is not None:
            outcome, message_key = terminal
            logger.info("Target %s is %s; nothing to deploy", target.address, outcome.value)
            self.reporter.print(DEPLOY_MESSAGES[message_key])
            return outcome

        net = self.config.net
        plan = plan_funding(
            target_balance=target_snapshot.balance,
            required_balance=self.config.required_for_deployment,
            tolerance=net.tolerance,
            giver_balance=giver_snapshot.balance,
            transaction_fee=net.transaction_fee,
        )
        logger.info(
            "Funding plan for %s: needs_funding=%s send=%d giver_must_have=%d",
            target.address,
            plan.needs_funding,
            plan.amount_to_send,
            plan.giver_must_have,
        )

        if plan.needs_funding:
            if not plan.sufficient_giver_balance:
                logger.warning(
                    "Giver %s holds %d, needs %d",
                    giver.address,
                    giver_snapshot.balance,
                    plan.giver_must_have,
                )
                self.reporter.print(DEPLOY_MESSAGES["NOT_ENOUGH_BALANCE"])
                return DeploymentOutcome.INSUFFICIENT_GIVER_BALANCE

            self.reporter.print(DEPLOY_MESSAGES["SENDING"])
            handle = self.ledger.submit_value_transfer(giver, target.address, plan.amount_to_send)
            self.ledger.wait_for_confirmation(handle)
            self.reporter.print(f"{DEPLOY_MESSAGES['SENT']}\n")
            self._report_accounts(giver, target)

        self.reporter.print(DEPLOY_MESSAGES["DEPLOYING"])
        handle = self.ledger.submit_deployment(target, target.constructor_args)
        self.ledger.wait_for_confirmation(handle)
        self.reporter.print(f"{DEPLOY_MESSAGES['DEPLOYED']}\n")
        self._report_accounts(giver, target)
        return DeploymentOutcome.DEPLOYED

    def _report_accounts(
        self, giver: ContractRef, target: ContractRef
    ) -> tuple[AccountSnapshot, AccountSnapshot]:
        giver_snapshot = self.ledger.query_snapshot(giver.address, giver.name)
        target_snapshot = self.ledger.query_snapshot(target.address, target.name)
        self.reporter.account(giver_snapshot)
        self.reporter.account(target_snapshot)
        return giver_snapshot, target_snapshot
