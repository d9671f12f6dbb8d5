"""Balances router: per-member balances, balance detail and group statistics."""

from datetime import date
from typing import Annotated, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import exists
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_member
from utils.balances import verify_balances_integrity
from utils.display import get_member_names, member_ref
from utils.loaders import active_expenses_query, get_group_balances, load_participants_by_expense
from utils.shares import calculate_shares
from utils.stats import calculate_group_stats, period_start
from utils.validation import ErrorCode, active_members_query


router = APIRouter(prefix="/groups/{group_id}", tags=["balances"])


@router.get("/balances", response_model=schemas.BalanceList)
def list_balances(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    balances = get_group_balances(db, group_id, current_member.id)
    return {
        "balances": balances,
        "total_expenses": sum(b.total_paid for b in balances),
        "is_valid": verify_balances_integrity(balances),
    }


@router.get("/balances/me", response_model=schemas.MyBalance)
def get_my_balance(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    balances = get_group_balances(db, group_id, current_member.id)
    my_balance = next((b for b in balances if b.member_id == current_member.id), None)
    if my_balance is None:
        raise HTTPException(status_code=404, detail=ErrorCode.MEMBER_NOT_FOUND.value)

    # Expenses I take part in, with my share of each
    my_expenses = active_expenses_query(db, group_id).filter(
        exists().where(
            models.ExpenseParticipant.expense_id == models.Expense.id,
            models.ExpenseParticipant.member_id == current_member.id
        )
    ).all()

    participants_by_expense = load_participants_by_expense(db, [e.id for e in my_expenses])
    coefficients = {m.id: m.coefficient or 0 for m in active_members_query(db, group_id).all()}

    settlements = db.query(models.Settlement).filter(
        models.Settlement.group_id == group_id,
        (models.Settlement.from_member == current_member.id) | (models.Settlement.to_member == current_member.id)
    ).all()

    names = get_member_names(
        db,
        [e.paid_by for e in my_expenses]
        + [s.from_member for s in settlements]
        + [s.to_member for s in settlements]
    )

    expenses = []
    for expense in my_expenses:
        shares = calculate_shares(expense.amount, participants_by_expense.get(expense.id, []), coefficients)
        expenses.append(schemas.MyBalanceExpense(
            id=expense.id,
            description=expense.description,
            date=expense.date,
            amount=expense.amount,
            paid_by=member_ref(expense.paid_by, names),
            my_share=shares.get(current_member.id, 0),
            is_payer=expense.paid_by == current_member.id,
        ))

    my_settlements = []
    for settlement in settlements:
        sent = settlement.from_member == current_member.id
        other_id = settlement.to_member if sent else settlement.from_member
        my_settlements.append(schemas.MyBalanceSettlement(
            id=settlement.id,
            date=settlement.date,
            amount=settlement.amount,
            direction="sent" if sent else "received",
            other_member=member_ref(other_id, names),
        ))
    my_settlements.sort(key=lambda s: s.date, reverse=True)

    return {
        "balance": my_balance,
        "expenses": expenses,
        "settlements": my_settlements,
    }


@router.get("/stats", response_model=schemas.GroupStats)
def get_group_stats(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    period: Optional[Literal["week", "month", "year", "all"]] = None,
    db: Session = Depends(get_db)
):
    query = active_expenses_query(db, group_id)

    start = period_start(period, date.today())
    if start:
        query = query.filter(models.Expense.date >= start.isoformat())

    expenses = query.all()
    names = get_member_names(db, [e.paid_by for e in expenses])
    return calculate_group_stats(expenses, names)
