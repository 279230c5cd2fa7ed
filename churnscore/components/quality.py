"""Service quality scoring component."""

from typing import TYPE_CHECKING

import pandas as pd

from .base import BaseScorer, round_half_up, round_half_up_array

if TYPE_CHECKING:
    from ..config import ScoreWeights


# Raw quality scores arrive normalized against this baseline
QUALITY_BASELINE = 25


def compute_quality_score(quality_raw_score: float, weights: "ScoreWeights") -> int:
    """Rescale the raw quality score onto quality_weight."""
    return round_half_up(quality_raw_score / QUALITY_BASELINE * weights.quality_weight)


class QualityScorer(BaseScorer):
    """
    Score based on QUALITY_SCORE (signal/service quality problems).

    A raw score at the baseline (25) earns the full quality_weight.
    """

    name = "quality"

    @property
    def required_columns(self) -> list[str]:
        return ["QUALITY_SCORE"]

    def score(self, df: pd.DataFrame) -> pd.Series:
        self.validate(df)
        raw = df["QUALITY_SCORE"].to_numpy(dtype=float)
        return pd.Series(
            round_half_up_array(raw / QUALITY_BASELINE * self.weights.quality_weight),
            index=df.index,
            dtype=int,
        )
