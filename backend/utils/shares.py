"""Share calculation for income-weighted expenses."""

from typing import Iterable, Mapping


def round_ratio(numerator: int, denominator: int) -> int:
    """Round numerator / denominator half up, without going through floats."""
    return (2 * numerator + denominator) // (2 * denominator)


def calculate_shares(
    amount: int,
    participants: Iterable,
    coefficients: Mapping[str, int],
) -> dict[str, int]:
    """
    Allocate an expense amount across its participants.

    Each participant exposes `member_id` and `custom_amount` (None means
    "proportional to the member's coefficient").

    Algorithm:
    1. Participants with a custom amount get exactly that amount
    2. What is left is split among the others pro rata to their coefficients
       (equally when every coefficient is zero)
    3. The last proportional participant absorbs the rounding remainder, so the
       proportional shares always sum to what was left
    4. When custom amounts use up the whole amount, proportional participants get 0
    """
    shares = {}
    remaining = amount
    proportional = []

    for participant in participants:
        if participant.custom_amount is not None:
            shares[participant.member_id] = participant.custom_amount
            remaining -= participant.custom_amount
        else:
            proportional.append(participant.member_id)

    if not proportional:
        return shares

    if remaining <= 0:
        for member_id in proportional:
            shares[member_id] = 0
        return shares

    total_coefficient = sum(coefficients.get(member_id, 0) for member_id in proportional)

    allocated = 0
    for idx, member_id in enumerate(proportional):
        if idx == len(proportional) - 1:
            # Last participant gets remainder to avoid rounding errors
            share = remaining - allocated
        elif total_coefficient > 0:
            share = round_ratio(coefficients.get(member_id, 0) * remaining, total_coefficient)
        else:
            share = round_ratio(remaining, len(proportional))
        shares[member_id] = share
        allocated += share

    return shares
