"""Settlements router: record repayments and suggest how to settle up."""

from typing import Annotated, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_member
from utils.display import get_member_names
from utils.loaders import get_group_balances
from utils.settlements import calculate_optimal_settlements
from utils.validation import (
    ErrorCode,
    active_members_query,
    clamp_limit,
    is_iso_date,
    parse_cursor,
)


router = APIRouter(prefix="/groups/{group_id}", tags=["settlements"])


def settlement_party(member_id: str, names: dict[str, str], current_member_id: str) -> schemas.MemberParty:
    return schemas.MemberParty(
        id=member_id,
        name=names.get(member_id, "Unknown Member"),
        is_current_user=member_id == current_member_id,
    )


@router.get("/settlements", response_model=schemas.SettlementList)
def list_settlements(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    filter: Optional[Literal["sent", "received"]] = None,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    limit = clamp_limit(limit)
    query = db.query(models.Settlement).filter(models.Settlement.group_id == group_id)

    if filter == "sent":
        query = query.filter(models.Settlement.from_member == current_member.id)
    elif filter == "received":
        query = query.filter(models.Settlement.to_member == current_member.id)

    cursor_date = parse_cursor(cursor)
    if cursor_date:
        query = query.filter(models.Settlement.created_at < cursor_date)

    results = query.order_by(models.Settlement.created_at.desc()).limit(limit + 1).all()
    has_more = len(results) > limit
    settlements = results[:limit]

    names = get_member_names(
        db,
        [s.from_member for s in settlements] + [s.to_member for s in settlements]
    )

    return schemas.SettlementList(
        settlements=[
            schemas.Settlement(
                id=s.id,
                group_id=s.group_id,
                from_member=settlement_party(s.from_member, names, current_member.id),
                to_member=settlement_party(s.to_member, names, current_member.id),
                amount=s.amount,
                date=s.date,
                created_at=s.created_at,
            )
            for s in settlements
        ],
        next_cursor=settlements[-1].created_at.isoformat() if has_more and settlements else None,
        has_more=has_more,
    )


@router.get("/settlements/suggested", response_model=schemas.SuggestionList)
def get_suggested_settlements(
    group_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    balances = get_group_balances(db, group_id, current_member.id)
    return {"suggestions": calculate_optimal_settlements(balances)}


@router.post("/settlements", response_model=schemas.Created, status_code=201)
def create_settlement(
    group_id: str,
    settlement: schemas.SettlementCreate,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    if settlement.amount <= 0:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_AMOUNT.value)

    if not is_iso_date(settlement.date):
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_DATE.value)

    recipient = active_members_query(db, group_id).filter(
        models.GroupMember.id == settlement.to_member
    ).first()
    if not recipient:
        raise HTTPException(status_code=400, detail=ErrorCode.INVALID_RECIPIENT.value)

    if recipient.id == current_member.id:
        raise HTTPException(status_code=400, detail=ErrorCode.SAME_MEMBER.value)

    db_settlement = models.Settlement(
        group_id=group_id,
        from_member=current_member.id,
        to_member=recipient.id,
        amount=settlement.amount,
        date=settlement.date
    )
    db.add(db_settlement)
    db.commit()
    db.refresh(db_settlement)

    return schemas.Created(id=db_settlement.id)


@router.delete("/settlements/{settlement_id}", response_model=schemas.Success)
def delete_settlement(
    group_id: str,
    settlement_id: str,
    current_member: Annotated[models.GroupMember, Depends(get_current_member)],
    db: Session = Depends(get_db)
):
    settlement = db.query(models.Settlement).filter(
        models.Settlement.id == settlement_id,
        models.Settlement.group_id == group_id
    ).first()
    if not settlement:
        raise HTTPException(status_code=404, detail=ErrorCode.SETTLEMENT_NOT_FOUND.value)

    # Only the member who sent the money can take it back
    if settlement.from_member != current_member.id:
        raise HTTPException(status_code=403, detail=ErrorCode.NOT_CREATOR.value)

    db.delete(settlement)
    db.commit()

    return schemas.Success()
