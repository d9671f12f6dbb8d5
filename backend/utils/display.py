"""
Display utilities for member names and member listings
"""
from typing import Iterable, Optional
from sqlalchemy.orm import Session

import models
import schemas
from utils.coefficients import coefficient_percent


def serialize_members(members: Iterable[models.GroupMember], current_member_id: Optional[str]) -> list[schemas.Member]:
    """Build member listings with each member's rounded share of expenses in percent."""
    members = list(members)
    total_coefficient = sum(m.coefficient or 0 for m in members)

    return [
        schemas.Member(
            id=m.id,
            name=m.name,
            email=m.email,
            user_id=m.user_id,
            income=m.income or 0,
            coefficient=m.coefficient or 0,
            coefficient_percent=coefficient_percent(m.coefficient or 0, total_coefficient, len(members)),
            joined_at=m.joined_at,
            is_current_user=m.id == current_member_id,
        )
        for m in members
    ]


def get_member_names(db: Session, member_ids: Iterable[str]) -> dict[str, str]:
    """
    Map member IDs to display names, including members who have left the group.
    Unknown IDs are left out.
    """
    member_ids = set(member_ids)
    if not member_ids:
        return {}

    members = db.query(models.GroupMember).filter(models.GroupMember.id.in_(member_ids)).all()
    return {m.id: m.name for m in members}


def member_ref(member_id: str, names: dict[str, str]) -> schemas.MemberRef:
    return schemas.MemberRef(id=member_id, name=names.get(member_id, "Unknown Member"))
