"""Base class and shared helpers for scoring components."""

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from ..config import ScoreWeights


def round_half_up(value: float) -> int:
    """Round x.5 up, like the dashboard's Math.round (all inputs are >= 0)."""
    return int(math.floor(value + 0.5))


def round_half_up_array(values) -> np.ndarray:
    """Vectorized round_half_up."""
    return np.floor(np.asarray(values, dtype=float) + 0.5).astype(int)


class BaseScorer(ABC):
    """
    Abstract base class for scoring components.

    Each component turns one risk pillar into points using vectorized
    pandas operations. The scalar compute_* function next to each
    component is the reference formula; both must agree.
    """

    name: str = "base"

    def __init__(self, weights: "ScoreWeights"):
        """
        Initialize scorer with tenant weights.

        Args:
            weights: ScoreWeights instance
        """
        self.weights = weights

    @abstractmethod
    def score(self, df: pd.DataFrame) -> pd.Series:
        """
        Calculate component score for all rows.

        Args:
            df: DataFrame with required columns, nulls already filled

        Returns:
            Series of integer scores
        """
        pass

    @property
    @abstractmethod
    def required_columns(self) -> list[str]:
        """List of columns required by this scorer."""
        pass

    def validate(self, df: pd.DataFrame) -> None:
        """Validate required columns exist."""
        missing = set(self.required_columns) - set(df.columns)
        if missing:
            raise ValueError(
                f"{self.__class__.__name__} requires columns: {missing}"
            )
