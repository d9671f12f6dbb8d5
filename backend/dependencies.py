"""Shared dependencies for resolving the calling member of a group."""

from typing import Annotated, Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

import models
from database import get_db
from utils.validation import ErrorCode, active_members_query, get_group_or_404


def get_current_member(
    group_id: str,
    x_member_id: Annotated[Optional[str], Header()] = None,
    db: Session = Depends(get_db)
) -> models.GroupMember:
    """Get the active group member making the request, from the X-Member-Id header."""
    get_group_or_404(db, group_id)

    member = None
    if x_member_id:
        member = active_members_query(db, group_id).filter(
            models.GroupMember.id == x_member_id
        ).first()
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ErrorCode.NOT_A_MEMBER.value,
        )
    return member
