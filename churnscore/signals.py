"""
Per-customer risk signals.

A RiskSignal is built fresh for each evaluation from externally fetched
records and never persisted. Missing values degrade to zero (or UNKNOWN
for NPS); negative counts, days and raw sub-scores are rejected.
"""

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .nps import NPSClassification, parse_classification


# Column name -> RiskSignal attribute
SIGNAL_COLUMNS = {
    "TICKETS_30D": "ticket_count_30d",
    "TICKETS_90D": "ticket_count_90d",
    "NPS_CLASSIFICATION": "nps_classification",
    "DAYS_OVERDUE": "days_overdue",
    "QUALITY_SCORE": "quality_raw_score",
    "BEHAVIORAL_SCORE": "behavioral_raw_score",
}


def _is_missing(value) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value))


def _count(name: str, value) -> int:
    if _is_missing(value):
        return 0
    count = int(value)
    if count < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return count


def _raw(name: str, value) -> float:
    if _is_missing(value):
        return 0.0
    raw = float(value)
    if raw < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return raw


@dataclass(frozen=True)
class RiskSignal:
    """Raw scoring inputs for one customer record."""

    ticket_count_30d: int = 0
    ticket_count_90d: int = 0
    nps_classification: NPSClassification = NPSClassification.UNKNOWN
    days_overdue: int = 0
    quality_raw_score: float = 0.0
    behavioral_raw_score: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "ticket_count_30d", _count("ticket_count_30d", self.ticket_count_30d))
        object.__setattr__(self, "ticket_count_90d", _count("ticket_count_90d", self.ticket_count_90d))
        object.__setattr__(self, "days_overdue", _count("days_overdue", self.days_overdue))
        object.__setattr__(self, "quality_raw_score", _raw("quality_raw_score", self.quality_raw_score))
        object.__setattr__(self, "behavioral_raw_score", _raw("behavioral_raw_score", self.behavioral_raw_score))
        nps = None if _is_missing(self.nps_classification) else self.nps_classification
        object.__setattr__(self, "nps_classification", parse_classification(nps))

    @classmethod
    def from_record(cls, record: dict) -> "RiskSignal":
        """
        Build from a record keyed by column names (TICKETS_30D, DAYS_OVERDUE, ...).

        Absent keys count as missing. NPS_RATING is used when the
        classification label is absent.
        """
        kwargs = {
            attr: record.get(column)
            for column, attr in SIGNAL_COLUMNS.items()
        }
        label = kwargs.pop("nps_classification")
        rating = record.get("NPS_RATING")
        kwargs["nps_classification"] = parse_classification(
            None if _is_missing(label) else label,
            None if _is_missing(rating) else rating,
        )
        return cls(**kwargs)


def whole_number_ids(ids: pd.Series) -> pd.Series:
    """Mask of ids that parse as whole numbers (7, "7", 7.0 and "7.0" but not "12.5")."""
    return pd.to_numeric(ids, errors="coerce") % 1 == 0


def normalize_client_ids(ids: pd.Series) -> pd.Series:
    """
    Client ids as strings that join across sources.

    Whole-number ids lose any float formatting ("7.0" -> "7"); other ids are
    kept as stripped text. Nulls stay null.
    """
    whole = whole_number_ids(ids).to_numpy()
    normalized = ids.astype(str).str.strip()
    normalized[whole] = pd.to_numeric(ids[whole]).astype("int64").astype(str).to_numpy()
    return normalized.where(ids.notna())


def _normalize_ids(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["CLIENT_ID"] = normalize_client_ids(df["CLIENT_ID"])
    return df


def assemble_signals(
    status: pd.DataFrame,
    ticket_counts: Optional[pd.DataFrame] = None,
    nps: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Merge customer status records with ticket aggregates and latest NPS.

    Aggregated ticket counts take precedence over the counts carried on the
    status record; the latter are only a fallback for customers without
    ticket history. Likewise the latest survey classification overrides any
    classification on the status record.

    Args:
        status: One row per customer record (CLIENT_ID plus any signal columns)
        ticket_counts: Output of tickets.aggregate_tickets
        nps: Output of nps.latest_classification

    Returns:
        DataFrame ready for ChurnScorer.score
    """
    if "CLIENT_ID" not in status.columns:
        raise ValueError("Missing required columns: {'CLIENT_ID'}")

    df = _normalize_ids(status)

    if ticket_counts is not None:
        agg = _normalize_ids(ticket_counts)[["CLIENT_ID", "TICKETS_30D", "TICKETS_90D"]]
        agg = agg.rename(columns={"TICKETS_30D": "_agg_30d", "TICKETS_90D": "_agg_90d"})
        df = df.merge(agg, on="CLIENT_ID", how="left")
        for col, agg_col in [("TICKETS_30D", "_agg_30d"), ("TICKETS_90D", "_agg_90d")]:
            if col in df.columns:
                df[col] = df[agg_col].fillna(df[col])
            else:
                df[col] = df[agg_col]
        df = df.drop(columns=["_agg_30d", "_agg_90d"])

    if nps is not None:
        latest = _normalize_ids(nps)[["CLIENT_ID", "NPS_CLASSIFICATION"]]
        latest = latest.rename(columns={"NPS_CLASSIFICATION": "_latest_nps"})
        df = df.merge(latest, on="CLIENT_ID", how="left")
        if "NPS_CLASSIFICATION" in df.columns:
            df["NPS_CLASSIFICATION"] = df["_latest_nps"].fillna(df["NPS_CLASSIFICATION"])
        else:
            df["NPS_CLASSIFICATION"] = df["_latest_nps"]
        df = df.drop(columns=["_latest_nps"])

    return df
