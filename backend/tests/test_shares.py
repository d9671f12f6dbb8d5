from models import ExpenseParticipant
from utils.shares import calculate_shares, round_ratio


def participant(member_id, custom_amount=None):
    return ExpenseParticipant(member_id=member_id, custom_amount=custom_amount)


COEFFICIENTS = {"alice": 5000, "bob": 3000, "carol": 2000}


def test_proportional_split_by_coefficient():
    shares = calculate_shares(
        120,
        [participant("alice"), participant("bob"), participant("carol")],
        COEFFICIENTS
    )
    assert shares == {"alice": 60, "bob": 36, "carol": 24}


def test_fixed_amount_then_proportional_remainder():
    # 10 fixed for Alice, 90 left split 3:2 between Bob and Carol
    shares = calculate_shares(
        100,
        [participant("alice", 10), participant("bob"), participant("carol")],
        COEFFICIENTS
    )
    assert shares == {"alice": 10, "bob": 54, "carol": 36}
    assert sum(shares.values()) == 100


def test_last_participant_absorbs_rounding():
    # 1000 split in thirds: 333 + 333 + 334
    coefficients = {"a": 1, "b": 1, "c": 1}
    shares = calculate_shares(1000, [participant("a"), participant("b"), participant("c")], coefficients)
    assert shares == {"a": 333, "b": 333, "c": 334}


def test_zero_coefficients_fall_back_to_equal_split():
    shares = calculate_shares(
        100,
        [participant("a"), participant("b"), participant("c")],
        {"a": 0, "b": 0, "c": 0}
    )
    assert sorted(shares.values()) == [33, 33, 34]
    assert shares["c"] == 34
    assert sum(shares.values()) == 100


def test_unknown_member_counts_as_zero_coefficient():
    shares = calculate_shares(100, [participant("alice"), participant("ghost")], COEFFICIENTS)
    assert shares == {"alice": 100, "ghost": 0}


def test_single_participant_gets_full_amount():
    assert calculate_shares(4567, [participant("bob")], COEFFICIENTS) == {"bob": 4567}
    assert calculate_shares(4567, [participant("bob")], {}) == {"bob": 4567}


def test_all_fixed_amounts_ignore_coefficients():
    shares = calculate_shares(
        100,
        [participant("alice", 70), participant("bob", 20), participant("carol", 10)],
        COEFFICIENTS
    )
    assert shares == {"alice": 70, "bob": 20, "carol": 10}


def test_fixed_amounts_below_total_without_proportional_participants():
    shares = calculate_shares(100, [participant("alice", 30), participant("bob", 20)], COEFFICIENTS)
    assert shares == {"alice": 30, "bob": 20}


def test_fixed_amounts_consuming_total_leave_zero_for_others():
    shares = calculate_shares(
        100,
        [participant("alice", 100), participant("bob"), participant("carol")],
        COEFFICIENTS
    )
    assert shares == {"alice": 100, "bob": 0, "carol": 0}


def test_over_allocation_does_not_raise():
    shares = calculate_shares(100, [participant("alice", 150), participant("bob")], COEFFICIENTS)
    assert shares == {"alice": 150, "bob": 0}


def test_no_participants():
    assert calculate_shares(100, [], COEFFICIENTS) == {}


def test_shares_always_sum_to_amount():
    coefficient_sets = [
        {"a": 3333, "b": 3333, "c": 3334},
        {"a": 1, "b": 9998, "c": 1},
        {"a": 0, "b": 0, "c": 1},
        {"a": 7, "b": 11, "c": 13},
    ]
    participants = [participant("a"), participant("b"), participant("c")]
    for coefficients in coefficient_sets:
        for amount in (1, 2, 99, 101, 1000, 123457):
            shares = calculate_shares(amount, participants, coefficients)
            assert sum(shares.values()) == amount
            assert set(shares) == {"a", "b", "c"}


def test_half_cents_round_up():
    # 5 split 1:1 -> 2.5 rounds up for the first participant
    shares = calculate_shares(5, [participant("a"), participant("b")], {"a": 1, "b": 1})
    assert shares == {"a": 3, "b": 2}
    assert round_ratio(5, 2) == 3
    assert round_ratio(7, 3) == 2
