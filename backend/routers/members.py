"""Members router: manage group members and their incomes."""

from datetime import datetime
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_member
from utils.coefficients import recalculate_group_coefficients
from utils.display import serialize_members
from utils.validation import ErrorCode, active_members_query, get_active_member_or_404


router = APIRouter(prefix="/groups/{group_id}", tags=["members"])


def member_detail(db: Session, group_id: str, member_id: str, current_member_id: str) -> schemas.Member:
    members = active_members_query(db, group_id).all()
    return next(m for m in serialize_members(members, current_member_id) if m.id == member_id)


def apply_member_update(db: Session, member: models.GroupMember, member_update: schemas.MemberUpdate) -> None:
    """Apply name / income changes; an income change recalculates every coefficient."""
    name = None
    if member_update.name is not None:
        name = member_update.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail=ErrorCode.INVALID_NAME.value)

    if member_update.income is not None and member_update.income < 0:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_INCOME.value)

    if name is not None:
        member.name = name

    if member_update.income is not None:
        member.income = member_update.income
        recalculate_group_coefficients(db, member.group_id)

    db.commit()


@router.get("/members", response_model=list[schemas.Member])
def list_members(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    members = active_members_query(db, group_id).all()
    return serialize_members(members, current_member.id)


@router.post("/members", response_model=schemas.Member, status_code=201)
def add_member(
    group_id: str,
    member_add: schemas.MemberCreate,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    name = member_add.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_NAME.value)
    if member_add.income < 0:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_INCOME.value)

    new_member = models.GroupMember(
        group_id=group_id,
        user_id=member_add.user_id,
        name=name,
        email=member_add.email,
        income=member_add.income
    )
    db.add(new_member)
    recalculate_group_coefficients(db, group_id)
    db.commit()
    db.refresh(new_member)

    return member_detail(db, group_id, new_member.id, current_member.id)


@router.patch("/members/me", response_model=schemas.Member)
def update_my_membership(
    group_id: str,
    member_update: schemas.MemberUpdate,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    apply_member_update(db, current_member, member_update)
    return member_detail(db, group_id, current_member.id, current_member.id)


@router.get("/members/{member_id}", response_model=schemas.Member)
def get_member(
    group_id: str,
    member_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    get_active_member_or_404(db, group_id, member_id)
    return member_detail(db, group_id, member_id, current_member.id)


@router.patch("/members/{member_id}", response_model=schemas.Member)
def update_member(
    group_id: str,
    member_id: str,
    member_update: schemas.MemberUpdate,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    member = get_active_member_or_404(db, group_id, member_id)
    apply_member_update(db, member, member_update)
    return member_detail(db, group_id, member_id, current_member.id)


@router.delete("/members/{member_id}", response_model=schemas.Success)
def remove_member(
    group_id: str,
    member_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    member = get_active_member_or_404(db, group_id, member_id)

    # Members remove themselves through the leave route
    if member.id == current_member.id:
        raise HTTPException(status_code=400, detail=ErrorCode.CANNOT_REMOVE_SELF.value)

    if active_members_query(db, group_id).count() <= 1:
        raise HTTPException(status_code=400, detail=ErrorCode.CANNOT_REMOVE_LAST_MEMBER.value)

    # Soft delete keeps past expenses and settlements pointing at the member
    member.left_at = datetime.utcnow()
    recalculate_group_coefficients(db, group_id)
    db.commit()

    return schemas.Success()
