"""Validation utilities for group membership, access control, and expense participants."""

import re
from datetime import date, datetime
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy.orm import Session
from fastapi import HTTPException

import models


ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ErrorCode(str, Enum):
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    EXPENSE_NOT_FOUND = "EXPENSE_NOT_FOUND"
    SETTLEMENT_NOT_FOUND = "SETTLEMENT_NOT_FOUND"
    NO_PARTICIPANTS = "NO_PARTICIPANTS"
    INVALID_PARTICIPANT = "INVALID_PARTICIPANT"
    CUSTOM_AMOUNTS_EXCEED_TOTAL = "CUSTOM_AMOUNTS_EXCEED_TOTAL"
    INVALID_PAYER = "INVALID_PAYER"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DESCRIPTION = "INVALID_DESCRIPTION"
    INVALID_DATE = "INVALID_DATE"
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    SAME_MEMBER = "SAME_MEMBER"
    NOT_CREATOR = "NOT_CREATOR"
    INVALID_NAME = "INVALID_NAME"
    INVALID_INCOME = "INVALID_INCOME"
    CANNOT_REMOVE_SELF = "CANNOT_REMOVE_SELF"
    CANNOT_REMOVE_LAST_MEMBER = "CANNOT_REMOVE_LAST_MEMBER"
    CANNOT_LEAVE_ALONE = "CANNOT_LEAVE_ALONE"


@dataclass(frozen=True)
class ParticipantValidation:
    valid: bool
    custom_amounts_total: int = 0
    error: Optional[ErrorCode] = None


def get_group_or_404(db: Session, group_id: str):
    """Get a group by ID or raise 404 if not found."""
    group = db.query(models.Group).filter(models.Group.id == group_id).first()
    if not group:
        raise HTTPException(status_code=404, detail=ErrorCode.GROUP_NOT_FOUND.value)
    return group


def active_members_query(db: Session, group_id: str):
    """Members of a group who have not left it, in join order."""
    return db.query(models.GroupMember).filter(
        models.GroupMember.group_id == group_id,
        models.GroupMember.left_at == None
    ).order_by(models.GroupMember.joined_at)


def get_active_member_or_404(db: Session, group_id: str, member_id: str):
    """Get an active member of a group or raise 404 if not found."""
    member = active_members_query(db, group_id).filter(models.GroupMember.id == member_id).first()
    if not member:
        raise HTTPException(status_code=404, detail=ErrorCode.MEMBER_NOT_FOUND.value)
    return member


def is_iso_date(value: Optional[str]) -> bool:
    """YYYY-MM-DD naming a real calendar day."""
    if not value or not ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_participants(
    participants: Iterable,
    active_member_ids: set[str],
    total_amount: int,
) -> ParticipantValidation:
    """
    Check an expense's participants before shares are ever calculated.

    Every participant must be an active member, custom amounts must be
    non-negative and must not add up to more than the expense total.
    """
    participants = list(participants or [])
    if not participants:
        return ParticipantValidation(valid=False, error=ErrorCode.NO_PARTICIPANTS)

    member_ids = [p.member_id for p in participants]
    if any(member_id not in active_member_ids for member_id in member_ids):
        return ParticipantValidation(valid=False, error=ErrorCode.INVALID_PARTICIPANT)

    if len(set(member_ids)) != len(member_ids):
        return ParticipantValidation(valid=False, error=ErrorCode.INVALID_PARTICIPANT)

    if any(p.custom_amount is not None and p.custom_amount < 0 for p in participants):
        return ParticipantValidation(valid=False, error=ErrorCode.INVALID_PARTICIPANT)

    custom_amounts_total = sum(p.custom_amount or 0 for p in participants)
    if custom_amounts_total > total_amount:
        return ParticipantValidation(valid=False, error=ErrorCode.CUSTOM_AMOUNTS_EXCEED_TOTAL)

    return ParticipantValidation(valid=True, custom_amounts_total=custom_amounts_total)


def clamp_limit(limit: Optional[int], default: int = 20) -> int:
    """Page size between 1 and 100."""
    return min(max(limit if limit is not None else default, 1), 100)


def parse_cursor(cursor: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp pagination cursor; invalid cursors are ignored."""
    if not cursor:
        return None
    try:
        return datetime.fromisoformat(cursor)
    except ValueError:
        return None
