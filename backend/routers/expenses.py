"""Expenses router: create, read, update, delete a group's expenses."""

from datetime import datetime
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import exists
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_member
from utils.display import get_member_names, member_ref
from utils.loaders import active_expenses_query, load_participants_by_expense
from utils.shares import calculate_shares
from utils.validation import (
    ErrorCode,
    active_members_query,
    clamp_limit,
    is_iso_date,
    parse_cursor,
    validate_participants,
)


router = APIRouter(prefix="/groups/{group_id}", tags=["expenses"])


def get_expense_or_404(db: Session, group_id: str, expense_id: str) -> models.Expense:
    expense = active_expenses_query(db, group_id).filter(models.Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail=ErrorCode.EXPENSE_NOT_FOUND.value)
    return expense


def get_coefficients(db: Session, group_id: str) -> dict[str, int]:
    return {m.id: m.coefficient or 0 for m in active_members_query(db, group_id).all()}


def check_amount(amount: int) -> None:
    if amount <= 0:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_AMOUNT.value)


def check_description(description: str) -> str:
    description = description.strip()
    if not description:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_DESCRIPTION.value)
    return description


def check_date(date: str) -> None:
    if not is_iso_date(date):
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_DATE.value)


def check_payer(db: Session, group_id: str, member_id: str) -> None:
    payer = active_members_query(db, group_id).filter(models.GroupMember.id == member_id).first()
    if not payer:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_PAYER.value)


def check_participants(db: Session, group_id: str, participants: list, amount: int) -> None:
    active_member_ids = {m.id for m in active_members_query(db, group_id).all()}
    validation = validate_participants(participants, active_member_ids, amount)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error.value)


def replace_participants(db: Session, expense_id: str, participants: list[schemas.ParticipantIn]) -> None:
    db.query(models.ExpenseParticipant).filter(
        models.ExpenseParticipant.expense_id == expense_id
    ).delete()
    for participant in participants:
        db.add(models.ExpenseParticipant(
            expense_id=expense_id,
            member_id=participant.member_id,
            custom_amount=participant.custom_amount
        ))


def get_expense_owned_by(db: Session, group_id: str, expense_id: str, member_id: str) -> models.Expense:
    expense = get_expense_or_404(db, group_id, expense_id)
    if expense.created_by != member_id:
        raise HTTPException(status_code=403, detail=ErrorCode.NOT_CREATOR.value)
    return expense


@router.post("/expenses", response_model=schemas.Created, status_code=201)
def create_expense(
    group_id: str,
    expense: schemas.ExpenseCreate,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    check_amount(expense.amount)
    description = check_description(expense.description)
    check_date(expense.date)
    check_payer(db, group_id, expense.paid_by)
    check_participants(db, group_id, expense.participants, expense.amount)

    db_expense = models.Expense(
        group_id=group_id,
        paid_by=expense.paid_by,
        amount=expense.amount,
        description=description,
        date=expense.date,
        created_by=current_member.id
    )
    db.add(db_expense)
    db.flush()

    replace_participants(db, db_expense.id, expense.participants)
    db.commit()

    return schemas.Created(id=db_expense.id)


@router.get("/expenses", response_model=schemas.ExpenseList)
def list_expenses(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    paid_by: Optional[str] = None,
    participant_id: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    limit = clamp_limit(limit)
    query = active_expenses_query(db, group_id)

    cursor_date = parse_cursor(cursor)
    if cursor_date:
        query = query.filter(models.Expense.created_at < cursor_date)
    if start_date:
        query = query.filter(models.Expense.date >= start_date)
    if end_date:
        query = query.filter(models.Expense.date <= end_date)
    if paid_by:
        query = query.filter(models.Expense.paid_by == paid_by)
    if search:
        # Escape LIKE wildcards so they match literally
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = query.filter(models.Expense.description.like(f"%{escaped}%", escape="\\"))
    if participant_id:
        query = query.filter(
            exists().where(
                models.ExpenseParticipant.expense_id == models.Expense.id,
                models.ExpenseParticipant.member_id == participant_id
            )
        )

    # Newest first; the cursor pages through creation time
    results = query.order_by(models.Expense.created_at.desc()).limit(limit + 1).all()
    has_more = len(results) > limit
    expenses = results[:limit]

    participants_by_expense = load_participants_by_expense(db, [e.id for e in expenses])
    coefficients = get_coefficients(db, group_id)
    names = get_member_names(db, [e.paid_by for e in expenses])

    items = []
    for expense in expenses:
        participants = participants_by_expense.get(expense.id, [])
        shares = calculate_shares(expense.amount, participants, coefficients)
        items.append(schemas.ExpenseListItem(
            id=expense.id,
            group_id=expense.group_id,
            amount=expense.amount,
            description=expense.description,
            date=expense.date,
            paid_by=member_ref(expense.paid_by, names),
            created_by=expense.created_by,
            created_at=expense.created_at,
            participant_count=len(participants),
            my_share=shares.get(current_member.id, 0),
        ))

    return schemas.ExpenseList(
        expenses=items,
        next_cursor=expenses[-1].created_at.isoformat() if has_more and expenses else None,
        has_more=has_more,
    )


@router.get("/expenses/{expense_id}", response_model=schemas.ExpenseWithParticipants)
def get_expense(
    group_id: str,
    expense_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, group_id, expense_id)
    participants = load_participants_by_expense(db, [expense.id]).get(expense.id, [])
    shares = calculate_shares(expense.amount, participants, get_coefficients(db, group_id))
    names = get_member_names(db, [expense.paid_by] + [p.member_id for p in participants])

    return schemas.ExpenseWithParticipants(
        id=expense.id,
        group_id=expense.group_id,
        amount=expense.amount,
        description=expense.description,
        date=expense.date,
        paid_by=member_ref(expense.paid_by, names),
        created_by=expense.created_by,
        created_at=expense.created_at,
        participants=[
            schemas.ExpenseParticipantDetail(
                member_id=p.member_id,
                member_name=names.get(p.member_id, "Unknown Member"),
                custom_amount=p.custom_amount,
                share=shares.get(p.member_id, 0),
            )
            for p in participants
        ],
    )


@router.put("/expenses/{expense_id}", response_model=schemas.Success)
def update_expense(
    group_id: str,
    expense_id: str,
    expense_update: schemas.ExpenseUpdate,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    expense = get_expense_owned_by(db, group_id, expense_id, current_member.id)

    amount = expense.amount
    if expense_update.amount is not None:
        check_amount(expense_update.amount)
        amount = expense_update.amount

    description = expense.description
    if expense_update.description is not None:
        description = check_description(expense_update.description)

    if expense_update.date is not None:
        check_date(expense_update.date)

    if expense_update.paid_by is not None:
        check_payer(db, group_id, expense_update.paid_by)

    # Custom amounts must still fit when only the amount changes
    if expense_update.participants is not None:
        check_participants(db, group_id, expense_update.participants, amount)
    elif amount != expense.amount:
        current = load_participants_by_expense(db, [expense.id]).get(expense.id, [])
        if sum(p.custom_amount or 0 for p in current) > amount:
            raise HTTPException(status_code=400, detail=ErrorCode.CUSTOM_AMOUNTS_EXCEED_TOTAL.value)

    expense.amount = amount
    expense.description = description
    if expense_update.date is not None:
        expense.date = expense_update.date
    if expense_update.paid_by is not None:
        expense.paid_by = expense_update.paid_by
    if expense_update.participants is not None:
        replace_participants(db, expense.id, expense_update.participants)

    db.commit()
    return schemas.Success()


@router.delete("/expenses/{expense_id}", response_model=schemas.Success)
def delete_expense(
    group_id: str,
    expense_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    expense = get_expense_owned_by(db, group_id, expense_id, current_member.id)

    # Soft delete keeps the row but drops it from every balance
    expense.deleted_at = datetime.utcnow()
    db.commit()

    return schemas.Success()
