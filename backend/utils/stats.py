"""Group spending statistics."""

from datetime import date, timedelta
from typing import Iterable, Mapping, Optional

from utils.shares import round_ratio

PERIODS = ("week", "month", "year", "all")


def period_start(period: Optional[str], today: date) -> Optional[date]:
    """First day included in a stats period, or None for no lower bound."""
    if period == "week":
        return today - timedelta(days=7)
    if period == "month":
        return today.replace(day=1)
    if period == "year":
        return today.replace(month=1, day=1)
    return None


def calculate_group_stats(expenses: Iterable, payer_names: Mapping[str, str]) -> dict:
    """
    Summarize expenses by payer and by month.

    Expenses expose `paid_by`, `amount` and an ISO `date`.
    """
    expenses = list(expenses)

    paid_by_member = {}
    by_month = {}
    for expense in expenses:
        paid_by_member[expense.paid_by] = paid_by_member.get(expense.paid_by, 0) + expense.amount

        month = expense.date[:7]  # YYYY-MM
        month_stats = by_month.setdefault(month, {"month": month, "total": 0, "count": 0})
        month_stats["total"] += expense.amount
        month_stats["count"] += 1

    total_expenses = sum(e.amount for e in expenses)
    expense_count = len(expenses)

    by_member = [
        {
            "member_id": member_id,
            "member_name": payer_names.get(member_id, "Unknown Member"),
            "total_paid": total_paid,
            "percentage": round_ratio(total_paid * 100, total_expenses) if total_expenses > 0 else 0,
        }
        for member_id, total_paid in paid_by_member.items()
    ]
    by_member.sort(key=lambda m: m["total_paid"], reverse=True)

    return {
        "total_expenses": total_expenses,
        "expense_count": expense_count,
        "average_expense": round_ratio(total_expenses, expense_count) if expense_count > 0 else 0,
        "by_member": by_member,
        "by_month": sorted(by_month.values(), key=lambda m: m["month"], reverse=True),
    }
