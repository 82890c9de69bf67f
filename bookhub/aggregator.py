"""Average score and count over one submission's rating set."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, NamedTuple

_ONE_DECIMAL = Decimal("0.1")


class Aggregate(NamedTuple):
    average_score: float
    rating_count: int


EMPTY = Aggregate(0.0, 0)


def round_half_up(value: Decimal) -> float:
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def compute_aggregate(ratings: Mapping[str, int]) -> Aggregate:
    """
    Mean of the scores rounded half-up to one decimal, and the number of
    distinct raters. Scores are assumed to be already range-checked.
    """
    if not ratings:
        return EMPTY
    total = sum(ratings.values())
    count = len(ratings)
    return Aggregate(round_half_up(Decimal(total) / Decimal(count)), count)
