"""Income coefficients: each member's share of group expenses, scaled by 10000."""

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from utils.shares import round_ratio
from utils.validation import active_members_query

logger = logging.getLogger(__name__)

COEFFICIENT_SCALE = 10000


def calculate_coefficients(members: Iterable) -> dict[str, int]:
    """
    Recompute every member's coefficient from scratch based on income.

    Members expose `id` and `income` (cents). When nobody declared an income,
    everyone gets an equal coefficient.
    """
    members = list(members)
    if not members:
        return {}

    total_income = sum(m.income or 0 for m in members)
    if total_income == 0:
        equal = round_ratio(COEFFICIENT_SCALE, len(members))
        return {m.id: equal for m in members}

    return {
        m.id: round_ratio((m.income or 0) * COEFFICIENT_SCALE, total_income)
        for m in members
    }


def apply_coefficients(members: Iterable) -> None:
    """Store freshly computed coefficients on the given member rows."""
    members = list(members)
    coefficients = calculate_coefficients(members)
    for member in members:
        member.coefficient = coefficients[member.id]

    drift = sum(coefficients.values()) - COEFFICIENT_SCALE
    if coefficients and drift != 0:
        logger.info("Coefficients sum to %s after rounding", COEFFICIENT_SCALE + drift)


def coefficient_percent(coefficient: int, total_coefficient: int, member_count: int) -> int:
    """Rounded percentage of a coefficient, for display in member listings."""
    if total_coefficient > 0:
        return round_ratio(coefficient * 100, total_coefficient)
    if member_count > 0:
        return round_ratio(100, member_count)
    return 0


def recalculate_group_coefficients(db: Session, group_id: str) -> None:
    """Recompute coefficients of all active members after a join, leave or income change."""
    db.flush()
    members = active_members_query(db, group_id).all()
    apply_coefficients(members)
