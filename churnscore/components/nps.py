"""NPS detractor scoring component."""

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from ..nps import NPSClassification, parse_classification
from .base import BaseScorer

if TYPE_CHECKING:
    from ..config import ScoreWeights


def compute_nps_score(classification, weights: "ScoreWeights") -> int:
    """detractor_weight for detractors; promoters and neutrals add nothing."""
    if parse_classification(classification) is NPSClassification.DETRACTOR:
        return weights.detractor_weight
    return 0


class NPSScorer(BaseScorer):
    """
    Score based on the latest NPS_CLASSIFICATION.

    Only detractors (rating 0-6) contribute; there is no reward for
    promoters.

    Points:
    - Detractor: 30
    - anything else: 0
    """

    name = "nps"

    @property
    def required_columns(self) -> list[str]:
        return ["NPS_CLASSIFICATION"]

    def score(self, df: pd.DataFrame) -> pd.Series:
        """Map classifications to points."""
        self.validate(df)
        is_detractor = df["NPS_CLASSIFICATION"] == NPSClassification.DETRACTOR.value
        return pd.Series(
            np.where(is_detractor, self.weights.detractor_weight, 0),
            index=df.index,
            dtype=int,
        )
