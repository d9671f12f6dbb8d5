"""Load a group's ledger rows and run the balance engine over them."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

import models
from utils.balances import MemberBalance, calculate_group_balances, group_participants_by_expense
from utils.validation import active_members_query


@dataclass
class GroupLedger:
    members: list
    expenses: list
    participants_by_expense: dict
    settlements: list

    @property
    def coefficients(self) -> dict[str, int]:
        return {m.id: m.coefficient or 0 for m in self.members}


def active_expenses_query(db: Session, group_id: str):
    return db.query(models.Expense).filter(
        models.Expense.group_id == group_id,
        models.Expense.deleted_at == None
    )


def load_participants_by_expense(db: Session, expense_ids: list[str]) -> dict[str, list]:
    if not expense_ids:
        return {}
    participants = db.query(models.ExpenseParticipant).filter(
        models.ExpenseParticipant.expense_id.in_(expense_ids)
    ).all()
    return group_participants_by_expense(participants)


def load_group_ledger(db: Session, group_id: str) -> GroupLedger:
    """Fetch active members, non-deleted expenses with participants, and settlements."""
    members = active_members_query(db, group_id).all()
    expenses = active_expenses_query(db, group_id).all()
    settlements = db.query(models.Settlement).filter(models.Settlement.group_id == group_id).all()

    return GroupLedger(
        members=members,
        expenses=expenses,
        participants_by_expense=load_participants_by_expense(db, [e.id for e in expenses]),
        settlements=settlements,
    )


def get_group_balances(
    db: Session,
    group_id: str,
    current_member_id: Optional[str] = None
) -> list[MemberBalance]:
    ledger = load_group_ledger(db, group_id)
    return calculate_group_balances(
        group_id,
        current_member_id,
        ledger.members,
        ledger.expenses,
        ledger.participants_by_expense,
        ledger.settlements,
        ledger.coefficients,
    )
