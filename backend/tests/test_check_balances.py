from check_balances import format_cents, group_report
from test_balances import add_scenario_expenses
import models


def test_format_cents():
    assert format_cents(0) == "0.00"
    assert format_cents(1234) == "12.34"
    assert format_cents(-5) == "-0.05"


def test_group_report(client, db_session, group):
    add_scenario_expenses(client, group)
    db_group = db_session.query(models.Group).filter(models.Group.id == group["group_id"]).first()

    report = "\n".join(group_report(db_session, db_group))
    assert "Flatshare (EUR)" in report
    assert "Carol -> Alice: 0.50" in report
    assert "Carol -> Bob: 0.10" in report
    assert "WARNING" not in report


def test_group_report_nothing_to_settle(client, db_session, group):
    db_group = db_session.query(models.Group).filter(models.Group.id == group["group_id"]).first()
    assert "  Nothing to settle" in group_report(db_session, db_group)
