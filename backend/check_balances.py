#!/usr/bin/env python3
"""
Print every group's balances, integrity status and settlement suggestions
"""
import argparse

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import models
from utils.balances import verify_balances_integrity
from utils.loaders import get_group_balances
from utils.settlements import calculate_optimal_settlements


def format_cents(amount: int) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{abs(amount) // 100}.{abs(amount) % 100:02d}"


def group_report(db: Session, group: models.Group) -> list[str]:
    balances = get_group_balances(db, group.id)
    lines = [
        "=" * 80,
        f"GROUP {group.id}: {group.name} ({group.currency})",
        "=" * 80,
    ]

    for b in balances:
        lines.append(
            f"  {b.member_name:<24} paid {format_cents(b.total_paid):>10}"
            f"  owes {format_cents(b.total_owed):>10}"
            f"  net {format_cents(b.net_balance):>10}"
        )

    if not verify_balances_integrity(balances):
        total = sum(b.net_balance for b in balances)
        lines.append(f"  WARNING: balances do not close (off by {format_cents(total)})")

    suggestions = calculate_optimal_settlements(balances)
    if suggestions:
        lines.append("  Suggested settlements:")
        for s in suggestions:
            lines.append(f"    {s.from_member.name} -> {s.to_member.name}: {format_cents(s.amount)}")
    else:
        lines.append("  Nothing to settle")

    return lines


def main(argv=None):
    parser = argparse.ArgumentParser(description="Show balances and settlement suggestions per group")
    parser.add_argument("--db-path", default="db.sqlite3", help="Path to SQLite database file")
    parser.add_argument("--group-id", help="Only report on this group")
    args = parser.parse_args(argv)

    engine = create_engine(f"sqlite:///{args.db_path}")
    db = sessionmaker(bind=engine)()
    try:
        query = db.query(models.Group)
        if args.group_id:
            query = query.filter(models.Group.id == args.group_id)
        for group in query.all():
            print("\n".join(group_report(db, group)))
    finally:
        db.close()


if __name__ == "__main__":
    main()
