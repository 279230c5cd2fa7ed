"""Support (ticket volume) scoring component."""

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from .base import BaseScorer, round_half_up, round_half_up_array

if TYPE_CHECKING:
    from ..config import ScoreWeights


# Repeat offender: 2+ tickets in 30 days earns the full base weight
REPEAT_THRESHOLD = 2
# Fraction of the base weight for softer signals
SINGLE_RECENT_FRACTION = 0.32   # exactly 1 ticket in 30 days
HEAVY_90D_THRESHOLD = 3
HEAVY_90D_FRACTION = 0.4        # none in 30 days, 3+ in 90 days
LIGHT_90D_FRACTION = 0.2        # none in 30 days, 1-2 in 90 days


def compute_support_score(
    ticket_count_30d: int,
    ticket_count_90d: int,
    weights: "ScoreWeights",
) -> int:
    """
    Points for recent ticket volume.

    The 30-day count, when non-zero, fully determines the result; the
    90-day count is only consulted when there were no tickets in the last
    30 days. Capped at base + 4 * increment.
    """
    base = weights.ticket_base_weight
    increment = weights.ticket_increment_weight

    if ticket_count_30d >= REPEAT_THRESHOLD:
        score = base + (ticket_count_30d - REPEAT_THRESHOLD) * increment
    elif ticket_count_30d == 1:
        score = round_half_up(base * SINGLE_RECENT_FRACTION)
    elif ticket_count_90d >= HEAVY_90D_THRESHOLD:
        score = round_half_up(base * HEAVY_90D_FRACTION)
    elif ticket_count_90d >= 1:
        score = round_half_up(base * LIGHT_90D_FRACTION)
    else:
        score = 0

    return min(score, weights.support_cap)


class SupportScorer(BaseScorer):
    """
    Score based on TICKETS_30D / TICKETS_90D.

    Customers who keep calling support are the strongest churn signal
    on the operations dashboard.

    Points (defaults):
    - 2 tickets in 30d: 25, +5 per extra ticket, max 45
    - 1 ticket in 30d: 8
    - 0 in 30d, 3+ in 90d: 10
    - 0 in 30d, 1-2 in 90d: 5
    - none: 0
    """

    name = "support"

    @property
    def required_columns(self) -> list[str]:
        return ["TICKETS_30D", "TICKETS_90D"]

    def score(self, df: pd.DataFrame) -> pd.Series:
        """Calculate support score."""
        self.validate(df)
        ch30 = df["TICKETS_30D"].to_numpy(dtype=int)
        ch90 = df["TICKETS_90D"].to_numpy(dtype=int)
        base = self.weights.ticket_base_weight
        increment = self.weights.ticket_increment_weight

        # First match wins, same order as compute_support_score
        conditions = [
            ch30 >= REPEAT_THRESHOLD,
            ch30 == 1,
            ch90 >= HEAVY_90D_THRESHOLD,
            ch90 >= 1,
        ]
        choices = [
            base + (ch30 - REPEAT_THRESHOLD) * increment,
            round_half_up_array(base * SINGLE_RECENT_FRACTION),
            round_half_up_array(base * HEAVY_90D_FRACTION),
            round_half_up_array(base * LIGHT_90D_FRACTION),
        ]
        points = np.select(conditions, choices, default=0)

        return pd.Series(
            np.minimum(points, self.weights.support_cap),
            index=df.index,
            dtype=int,
        )
