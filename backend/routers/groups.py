"""Groups router: create, list, read, update, archive and leave groups."""

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
from utils.loaders import get_group_balances
from utils.validation import ErrorCode, active_members_query, get_group_or_404


router = APIRouter(prefix="/groups", tags=["groups"])


def group_with_members(db: Session, group: models.Group, current_member_id: str) -> schemas.GroupWithMembers:
    members = active_members_query(db, group.id).all()
    return schemas.GroupWithMembers(
        id=group.id,
        name=group.name,
        description=group.description,
        currency=group.currency,
        income_frequency=group.income_frequency,
        created_at=group.created_at,
        archived_at=group.archived_at,
        is_archived=group.archived_at is not None,
        members=serialize_members(members, current_member_id),
    )


@router.post("", response_model=schemas.GroupWithMembers, status_code=201)
def create_group(
    group: schemas.GroupCreate,
    db: Session = Depends(get_db)
):
    name = group.name.strip()
    creator_name = group.creator_name.strip()
    if not name or not creator_name:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_NAME.value)
    if group.creator_income < 0:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_INCOME.value)

    db_group = models.Group(
        name=name,
        description=group.description,
        currency=group.currency,
        income_frequency=group.income_frequency
    )
    db.add(db_group)
    db.commit()
    db.refresh(db_group)

    # Add creator as first member, who carries the whole coefficient
    db_member = models.GroupMember(
        group_id=db_group.id,
        user_id=group.creator_user_id,
        name=creator_name,
        email=group.creator_email,
        income=group.creator_income
    )
    db.add(db_member)
    recalculate_group_coefficients(db, db_group.id)
    db.commit()
    db.refresh(db_member)

    return group_with_members(db, db_group, db_member.id)


@router.get("/{group_id}", response_model=schemas.GroupWithMembers)
def get_group(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    group = get_group_or_404(db, group_id)
    return group_with_members(db, group, current_member.id)


@router.put("/{group_id}", response_model=schemas.GroupWithMembers)
def update_group(
    group_id: str,
    group_update: schemas.GroupBase,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    group = get_group_or_404(db, group_id)

    name = group_update.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_NAME.value)

    group.name = name
    group.description = group_update.description
    group.currency = group_update.currency
    group.income_frequency = group_update.income_frequency
    db.commit()
    db.refresh(group)

    return group_with_members(db, group, current_member.id)


@router.get("", response_model=list[schemas.GroupSummary])
def list_groups(
    user_id: str,
    db: Session = Depends(get_db)
):
    """Groups where the account `user_id` is an active member, with that member's net balance."""
    memberships = db.query(models.GroupMember).filter(
        models.GroupMember.user_id == user_id,
        models.GroupMember.left_at == None
    ).all()

    summaries = []
    for membership in memberships:
        group = get_group_or_404(db, membership.group_id)
        balances = get_group_balances(db, group.id, membership.id)
        my_balance = next((b.net_balance for b in balances if b.member_id == membership.id), 0)
        summaries.append(schemas.GroupSummary(
            id=group.id,
            name=group.name,
            description=group.description,
            currency=group.currency,
            member_count=len(balances),
            my_member_id=membership.id,
            my_balance=my_balance,
            is_archived=group.archived_at is not None,
            created_at=group.created_at,
        ))

    summaries.sort(key=lambda s: s.created_at, reverse=True)
    return summaries


@router.post("/{group_id}/archive", response_model=schemas.ArchiveStatus)
def toggle_archive(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    group = get_group_or_404(db, group_id)
    group.archived_at = None if group.archived_at else datetime.utcnow()
    db.commit()

    return schemas.ArchiveStatus(is_archived=group.archived_at is not None)


@router.post("/{group_id}/leave", response_model=schemas.Success)
def leave_group(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    if active_members_query(db, group_id).count() <= 1:
        raise HTTPException(status_code=400, detail=ErrorCode.CANNOT_LEAVE_ALONE.value)

    # Past expenses and settlements keep pointing at the departed member
    current_member.left_at = datetime.utcnow()
    recalculate_group_coefficients(db, group_id)
    db.commit()

    return schemas.Success()
