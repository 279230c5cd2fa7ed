"""
Risk bucket classification.

Maps a total score to OK / ALERT / CRITICAL using tenant thresholds.
CRITICAL is checked first, so a high score still lands in CRITICAL even
if alert_min were ever configured above critical_min.
"""

from enum import Enum
from typing import Iterable

import numpy as np
import pandas as pd

from .config import BucketThresholds


class RiskBucket(str, Enum):
    OK = "OK"
    ALERT = "ALERT"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return BUCKET_ORDER.index(self.value)

    @property
    def label(self) -> str:
        """Display label used on the dashboard."""
        return BUCKET_LABELS[self.value]


BUCKET_ORDER = ["OK", "ALERT", "CRITICAL"]
BUCKET_LABELS = {"OK": "OK", "ALERT": "ALERTA", "CRITICAL": "CRÍTICO"}


def classify(score: int, thresholds: BucketThresholds) -> RiskBucket:
    """Bucket a single score."""
    if score >= thresholds.critical_min:
        return RiskBucket.CRITICAL
    if score >= thresholds.alert_min:
        return RiskBucket.ALERT
    return RiskBucket.OK


def classify_series(scores: pd.Series, thresholds: BucketThresholds) -> pd.Series:
    """Vectorized classify; returns bucket values as strings."""
    return pd.Series(
        np.select(
            [scores >= thresholds.critical_min, scores >= thresholds.alert_min],
            [RiskBucket.CRITICAL.value, RiskBucket.ALERT.value],
            default=RiskBucket.OK.value,
        ),
        index=scores.index,
        dtype=object,
    )


def representative_score(scores: Iterable[int]) -> int:
    """
    Customer-level score across several records (e.g. multiple contracts).

    A customer is only as safe as their riskiest record. Empty input -> 0.
    """
    return max(scores, default=0)


def parse_bucket(value) -> RiskBucket:
    """Accept enum members, names, or dashboard labels (ALERTA, CRÍTICO)."""
    if isinstance(value, RiskBucket):
        return value
    text = str(value).strip().upper()
    for bucket in RiskBucket:
        if text in (bucket.value, bucket.label.upper()):
            return bucket
    if text == "CRITICO":
        return RiskBucket.CRITICAL
    raise ValueError(f"Unknown risk bucket: {value!r}")
