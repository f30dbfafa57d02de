"""Pre-deployment funding decisions.

A contract has to hold ``required_balance`` base units before its deployment
message is accepted. Balances read back from the ledger can trail by fees that
have not settled yet, so anything within ``tolerance`` of the requirement is
treated as already funded. All arithmetic is on exact integers.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FundingPlan:
    """Outcome of :func:`plan_funding`."""

    needs_funding: bool
    amount_to_send: int
    giver_must_have: int
    sufficient_giver_balance: bool


def plan_funding(
    target_balance: int,
    required_balance: int,
    tolerance: int,
    giver_balance: int,
    transaction_fee: int,
) -> FundingPlan:
    """Decide whether the target needs a transfer from the giver, and how much."""

    if tolerance < 0:
        raise ValueError(f"Tolerance must be non-negative, got {tolerance}")
    if transaction_fee < 0:
        raise ValueError(f"Transaction fee must be non-negative, got {transaction_fee}")

    if target_balance >= required_balance - tolerance:
        return FundingPlan(
            needs_funding=False,
            amount_to_send=0,
            giver_must_have=0,
            sufficient_giver_balance=True,
        )

    amount_to_send = required_balance - target_balance
    giver_must_have = amount_to_send + transaction_fee
    return FundingPlan(
        needs_funding=True,
        amount_to_send=amount_to_send,
        giver_must_have=giver_must_have,
        sufficient_giver_balance=giver_balance >= giver_must_have,
    )
