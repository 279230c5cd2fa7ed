"""
NPS classification helpers.

Ratings are 0-10:
- 0-6: Detractor
- 7-8: Neutral
- 9-10: Promoter

Survey exports label responses in Portuguese ("Detrator", "Neutro",
"Promotor") or English; both are accepted, with the numeric rating as
fallback when the label is missing or unrecognized.
"""

from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd


class NPSClassification(str, Enum):
    PROMOTER = "Promoter"
    NEUTRAL = "Neutral"
    DETRACTOR = "Detractor"
    UNKNOWN = "Unknown"


_LABELS = {
    "promoter": NPSClassification.PROMOTER,
    "promotor": NPSClassification.PROMOTER,
    "neutral": NPSClassification.NEUTRAL,
    "neutro": NPSClassification.NEUTRAL,
    "passive": NPSClassification.NEUTRAL,
    "detractor": NPSClassification.DETRACTOR,
    "detrator": NPSClassification.DETRACTOR,
    "unknown": NPSClassification.UNKNOWN,
}


def classify_rating(rating) -> NPSClassification:
    """Map a 0-10 rating to its classification (UNKNOWN if missing or out of range)."""
    if rating is None:
        return NPSClassification.UNKNOWN
    rating = pd.to_numeric(rating, errors="coerce")
    if pd.isna(rating) or rating < 0 or rating > 10:
        return NPSClassification.UNKNOWN
    if rating <= 6:
        return NPSClassification.DETRACTOR
    if rating <= 8:
        return NPSClassification.NEUTRAL
    return NPSClassification.PROMOTER


def parse_classification(label, rating: Optional[float] = None) -> NPSClassification:
    """
    Normalize a classification label.

    Args:
        label: Classification text (any case, PT or EN), enum member, or None
        rating: Optional 0-10 rating used when label is unusable

    Returns:
        NPSClassification
    """
    if isinstance(label, NPSClassification):
        return label
    if isinstance(label, str):
        parsed = _LABELS.get(label.strip().lower())
        if parsed is not None and parsed is not NPSClassification.UNKNOWN:
            return parsed
    return classify_rating(rating)


def _classify_frame(responses: pd.DataFrame) -> pd.Series:
    ratings = responses["RATING"] if "RATING" in responses.columns else pd.Series(np.nan, index=responses.index)
    labels = (
        responses["CLASSIFICATION"]
        if "CLASSIFICATION" in responses.columns
        else pd.Series(None, index=responses.index, dtype=object)
    )
    return pd.Series(
        [parse_classification(lbl, rt).value for lbl, rt in zip(labels, ratings)],
        index=responses.index,
        dtype=object,
    )


def latest_classification(responses: pd.DataFrame) -> pd.DataFrame:
    """
    Most recent NPS classification per customer.

    Args:
        responses: DataFrame with CLIENT_ID, RESPONDED_AT and RATING and/or
            CLASSIFICATION columns

    Returns:
        DataFrame with CLIENT_ID, NPS_RATING, NPS_CLASSIFICATION
    """
    missing = {"CLIENT_ID", "RESPONDED_AT"} - set(responses.columns)
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    df = responses.copy()
    df["NPS_CLASSIFICATION"] = _classify_frame(df)
    df["NPS_RATING"] = df["RATING"] if "RATING" in df.columns else np.nan
    df["_responded"] = pd.to_datetime(df["RESPONDED_AT"], errors="coerce", format="mixed")
    df = df.dropna(subset=["_responded"])

    latest = (
        df.sort_values("_responded", ascending=False, kind="stable")
        .drop_duplicates(subset="CLIENT_ID", keep="first")
    )
    return latest[["CLIENT_ID", "NPS_RATING", "NPS_CLASSIFICATION"]].reset_index(drop=True)


def net_promoter_score(responses: pd.DataFrame) -> float:
    """
    NPS = % promoters - % detractors over classified responses.

    Returns 0.0 when no response can be classified.
    """
    classes = _classify_frame(responses)
    classes = classes[classes != NPSClassification.UNKNOWN.value]
    if classes.empty:
        return 0.0
    promoters = (classes == NPSClassification.PROMOTER.value).mean()
    detractors = (classes == NPSClassification.DETRACTOR.value).mean()
    return round(float((promoters - detractors) * 100), 1)
