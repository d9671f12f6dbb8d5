"""Settlement suggestions: greedy debt simplification."""

import logging
from dataclasses import dataclass
from typing import Iterable

from utils.balances import BALANCE_TOLERANCE_CENTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementParty:
    id: str
    name: str
    is_current_user: bool = False


@dataclass(frozen=True)
class SettlementSuggestion:
    from_member: SettlementParty
    to_member: SettlementParty
    amount: int


def _party(balance) -> SettlementParty:
    return SettlementParty(
        id=balance.member_id,
        name=balance.member_name,
        is_current_user=balance.is_current_user,
    )


def calculate_optimal_settlements(balances: Iterable) -> list[SettlementSuggestion]:
    """
    Suggest the transfers that settle a group with as few transactions as possible.

    Greedy strategy:
    1. Separate members into creditors (net balance > 0) and debtors (net balance < 0)
    2. Sort both by amount, largest first
    3. Match the largest creditor with the largest debtor for min(credit, debt)
    4. Drop whoever is settled and repeat until one side is empty

    Balances that do not close to zero are logged but still processed.
    """
    balances = list(balances)
    if len(balances) <= 1:
        return []

    total = sum(b.net_balance for b in balances)
    if abs(total) > BALANCE_TOLERANCE_CENTS:
        logger.warning("Balances do not sum to zero: %s", total)

    creditors = [[_party(b), b.net_balance] for b in balances if b.net_balance > 0]
    debtors = [[_party(b), -b.net_balance] for b in balances if b.net_balance < 0]

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    suggestions = []
    i = 0
    j = 0

    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        amount = min(creditor[1], debtor[1])
        suggestions.append(SettlementSuggestion(
            from_member=debtor[0],
            to_member=creditor[0],
            amount=amount,
        ))

        creditor[1] -= amount
        debtor[1] -= amount

        if creditor[1] <= 0:
            i += 1
        if debtor[1] <= 0:
            j += 1

    return suggestions
