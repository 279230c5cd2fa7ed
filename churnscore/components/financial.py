"""Financial (overdue invoice) scoring component."""

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from .base import BaseScorer

if TYPE_CHECKING:
    from ..config import ScoreWeights


def compute_financial_score(days_overdue: int, weights: "ScoreWeights") -> int:
    """
    Step function of days overdue.

    0 days -> 0 points; otherwise the first band whose upper bound covers
    the delay, or overdue_beyond_points past the last band. Never exceeds
    financial_cap.
    """
    if days_overdue <= 0:
        return 0
    for max_days, points in weights.overdue_thresholds:
        if days_overdue <= max_days:
            return min(points, weights.financial_cap)
    return min(weights.overdue_beyond_points, weights.financial_cap)


class FinancialScorer(BaseScorer):
    """
    Score based on DAYS_OVERDUE (oldest unpaid invoice).

    Progressive bands without overlap.

    Points (defaults):
    - 0 days: 0
    - 1-5 days: 5
    - 6-15 days: 10
    - 16-30 days: 15
    - 31-60 days: 20
    - >60 days: 25
    Ceiling: 30
    """

    name = "financial"

    @property
    def required_columns(self) -> list[str]:
        return ["DAYS_OVERDUE"]

    def score(self, df: pd.DataFrame) -> pd.Series:
        """Calculate financial score."""
        self.validate(df)
        days = df["DAYS_OVERDUE"]

        # Build conditions from thresholds (first match wins)
        conditions = [days <= 0]
        choices = [0]

        for max_days, points in self.weights.overdue_thresholds:
            conditions.append(days <= max_days)
            choices.append(points)

        points = np.select(conditions, choices, default=self.weights.overdue_beyond_points)

        return pd.Series(
            np.minimum(points, self.weights.financial_cap),
            index=df.index,
            dtype=int,
        )
