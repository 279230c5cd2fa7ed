"""Behavioral (usage and engagement) scoring component."""

from typing import TYPE_CHECKING

import pandas as pd

from .base import BaseScorer, round_half_up, round_half_up_array

if TYPE_CHECKING:
    from ..config import ScoreWeights


BEHAVIORAL_BASELINE = 20


def compute_behavioral_score(behavioral_raw_score: float, weights: "ScoreWeights") -> int:
    """Rescale the raw behavioral score onto behavioral_weight."""
    return round_half_up(behavioral_raw_score / BEHAVIORAL_BASELINE * weights.behavioral_weight)


class BehavioralScorer(BaseScorer):
    """Score based on BEHAVIORAL_SCORE; the baseline (20) earns the full weight."""

    name = "behavioral"

    @property
    def required_columns(self) -> list[str]:
        return ["BEHAVIORAL_SCORE"]

    def score(self, df: pd.DataFrame) -> pd.Series:
        self.validate(df)
        raw = df["BEHAVIORAL_SCORE"].to_numpy(dtype=float)
        return pd.Series(
            round_half_up_array(raw / BEHAVIORAL_BASELINE * self.weights.behavioral_weight),
            index=df.index,
            dtype=int,
        )
