from datetime import date

from conftest import member_headers
from test_expenses import create_expense, everyone


def add_scenario_expenses(client, group):
    # Alice pays 120 shared 50/30/20
    create_expense(client, group, "alice", 120, everyone(group), description="Groceries", date="2026-09-10")
    # Bob pays 100: Alice fixed at 10, the other 90 split 3:2
    create_expense(client, group, "bob", 100, [
        {"member_id": group["alice"], "custom_amount": 10},
        {"member_id": group["bob"]},
        {"member_id": group["carol"]},
    ], description="Dinner", date="2026-10-02")


def test_empty_group_balances(client, group):
    response = client.get(f"/groups/{group['group_id']}/balances", headers=member_headers(group["alice"]))
    assert response.status_code == 200
    data = response.json()
    assert data["total_expenses"] == 0
    assert data["is_valid"] is True
    assert all(b["net_balance"] == 0 for b in data["balances"])


def test_group_balances(client, group):
    add_scenario_expenses(client, group)

    response = client.get(f"/groups/{group['group_id']}/balances", headers=member_headers(group["carol"]))
    assert response.status_code == 200
    data = response.json()
    assert data["total_expenses"] == 220
    assert data["is_valid"] is True

    balances = data["balances"]
    assert [b["member_name"] for b in balances] == ["Alice", "Bob", "Carol"]
    assert [b["net_balance"] for b in balances] == [50, 10, -60]
    assert [b["is_current_user"] for b in balances] == [False, False, True]

    alice = balances[0]
    assert alice["total_paid"] == 120
    assert alice["total_owed"] == 70
    assert alice["balance"] == 50
    assert alice["settlements_paid"] == 0
    assert alice["settlements_received"] == 0


def test_balances_include_settlements(client, group):
    add_scenario_expenses(client, group)
    client.post(
        f"/groups/{group['group_id']}/settlements",
        headers=member_headers(group["carol"]),
        json={"to_member": group["alice"], "amount": 50, "date": "2026-10-05"}
    )

    balances = client.get(
        f"/groups/{group['group_id']}/balances",
        headers=member_headers(group["carol"])
    ).json()["balances"]
    by_name = {b["member_name"]: b for b in balances}
    assert by_name["Alice"]["settlements_received"] == 50
    assert by_name["Alice"]["net_balance"] == 0
    assert by_name["Carol"]["settlements_paid"] == 50
    assert by_name["Carol"]["net_balance"] == -10
    assert [b["member_name"] for b in balances] == ["Bob", "Alice", "Carol"]


def test_deleted_expense_leaves_balances(client, group):
    expense_id = create_expense(client, group, "alice", 120, everyone(group)).json()["id"]
    client.delete(f"/groups/{group['group_id']}/expenses/{expense_id}", headers=member_headers(group["alice"]))

    data = client.get(f"/groups/{group['group_id']}/balances", headers=member_headers(group["alice"])).json()
    assert data["total_expenses"] == 0
    assert all(b["net_balance"] == 0 for b in data["balances"])


def test_my_balance(client, group):
    add_scenario_expenses(client, group)
    create_expense(client, group, "alice", 40, [{"member_id": group["alice"]}], description="Alice only")
    client.post(
        f"/groups/{group['group_id']}/settlements",
        headers=member_headers(group["carol"]),
        json={"to_member": group["alice"], "amount": 20, "date": "2026-10-05"}
    )
    client.post(
        f"/groups/{group['group_id']}/settlements",
        headers=member_headers(group["bob"]),
        json={"to_member": group["carol"], "amount": 5, "date": "2026-10-07"}
    )

    response = client.get(f"/groups/{group['group_id']}/balances/me", headers=member_headers(group["carol"]))
    assert response.status_code == 200
    data = response.json()

    assert data["balance"]["member_name"] == "Carol"
    assert data["balance"]["is_current_user"] is True
    assert data["balance"]["net_balance"] == -60 + 20 - 5

    expenses = {e["description"]: e for e in data["expenses"]}
    assert set(expenses) == {"Groceries", "Dinner"}
    assert expenses["Groceries"]["my_share"] == 24
    assert expenses["Dinner"]["my_share"] == 36
    assert expenses["Dinner"]["paid_by"]["name"] == "Bob"
    assert expenses["Dinner"]["is_payer"] is False

    settlements = data["settlements"]
    assert [(s["direction"], s["other_member"]["name"], s["amount"]) for s in settlements] == [
        ("received", "Bob", 5),
        ("sent", "Alice", 20),
    ]


def test_stats(client, group):
    today = date.today()
    create_expense(client, group, "alice", 300, everyone(group), description="Old", date="2000-01-15")
    create_expense(client, group, "bob", 100, everyone(group), description="Recent", date=today.isoformat())

    url = f"/groups/{group['group_id']}/stats"
    headers = member_headers(group["alice"])

    stats = client.get(url, headers=headers).json()
    assert stats["total_expenses"] == 400
    assert stats["expense_count"] == 2
    assert stats["average_expense"] == 200
    assert [(m["member_name"], m["percentage"]) for m in stats["by_member"]] == [("Alice", 75), ("Bob", 25)]
    assert [m["month"] for m in stats["by_month"]] == [today.isoformat()[:7], "2000-01"]

    yearly = client.get(url, headers=headers, params={"period": "year"}).json()
    assert yearly["total_expenses"] == 100
    assert yearly["by_member"] == [
        {"member_id": group["bob"], "member_name": "Bob", "total_paid": 100, "percentage": 100}
    ]

    response = client.get(url, headers=headers, params={"period": "decade"})
    assert response.status_code == 422
