"""Balance calculation for a group's expenses and settlements."""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from utils.shares import calculate_shares

# Tolerance in cents before balances are reported as not closing
BALANCE_TOLERANCE_CENTS = 1


@dataclass
class MemberBalance:
    member_id: str
    member_name: str
    member_user_id: Optional[str] = None
    total_paid: int = 0
    total_owed: int = 0
    balance: int = 0
    settlements_paid: int = 0
    settlements_received: int = 0
    net_balance: int = 0
    is_current_user: bool = False


def _in_group(row, group_id: str) -> bool:
    row_group_id = getattr(row, "group_id", None)
    return row_group_id is None or row_group_id == group_id


def group_participants_by_expense(participants: Iterable) -> dict[str, list]:
    """Group flat participant rows by their `expense_id`."""
    by_expense = {}
    for participant in participants:
        by_expense.setdefault(participant.expense_id, []).append(participant)
    return by_expense


def calculate_group_balances(
    group_id: str,
    current_member_id: Optional[str],
    members: Iterable,
    expenses: Iterable,
    participants_by_expense: Mapping[str, list],
    settlements: Iterable,
    coefficients: Optional[Mapping[str, int]] = None,
) -> list[MemberBalance]:
    """
    Calculate the balance of every active member of a group.

    Args:
        group_id: ID of the group the rows belong to
        current_member_id: Member flagged with `is_current_user`
        members: Active members (`id`, `name`, `user_id`, `coefficient`)
        expenses: Non-deleted expenses (`id`, `paid_by`, `amount`)
        participants_by_expense: Expense ID -> participants (`member_id`, `custom_amount`)
        settlements: Recorded settlements (`from_member`, `to_member`, `amount`)
        coefficients: Member ID -> coefficient. Defaults to the members' own coefficients.

    Returns:
        One MemberBalance per member, creditors first. Rows referencing members
        not in `members` are ignored for those members, and rows carrying the
        `group_id` of another group are skipped.
    """
    members = list(members)
    if coefficients is None:
        coefficients = {m.id: m.coefficient or 0 for m in members}

    balances = {
        m.id: MemberBalance(
            member_id=m.id,
            member_name=m.name,
            member_user_id=getattr(m, "user_id", None),
            is_current_user=m.id == current_member_id,
        )
        for m in members
    }

    for expense in expenses:
        if not _in_group(expense, group_id):
            continue

        payer = balances.get(expense.paid_by)
        if payer:
            payer.total_paid += expense.amount

        shares = calculate_shares(
            expense.amount,
            participants_by_expense.get(expense.id, []),
            coefficients,
        )
        for member_id, share in shares.items():
            member = balances.get(member_id)
            if member:
                member.total_owed += share

    for settlement in settlements:
        if not _in_group(settlement, group_id):
            continue

        sender = balances.get(settlement.from_member)
        if sender:
            sender.settlements_paid += settlement.amount

        receiver = balances.get(settlement.to_member)
        if receiver:
            receiver.settlements_received += settlement.amount

    result = []
    for member in balances.values():
        member.balance = member.total_paid - member.total_owed
        # Paying back raises my balance, being paid back lowers it
        member.net_balance = member.balance + member.settlements_paid - member.settlements_received
        result.append(member)

    result.sort(key=lambda b: b.net_balance, reverse=True)
    return result


def verify_balances_integrity(balances: Iterable[MemberBalance]) -> bool:
    """Net balances of a group must close to zero, within a cent."""
    total = sum(b.net_balance for b in balances)
    return abs(total) < BALANCE_TOLERANCE_CENTS
