"""
Main ChurnScorer class - orchestrates scoring components.

Usage:
    from churnscore import ChurnScorer, ScoreWeights, BucketThresholds

    # With default config
    scorer = ChurnScorer()
    result = scorer.score(df)

    # With a tenant's config
    scorer = ChurnScorer(ScoreWeights(detractor_weight=40), BucketThresholds(critical_min=80))
    result = scorer.score(df)

    # Access results
    print(result.df[["CLIENT_ID", "RISK_SCORE", "RISK_BUCKET"]])
    print(result.by_customer())
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

from .classifier import BUCKET_ORDER, RiskBucket, classify, classify_series, parse_bucket
from .components import (
    SupportScorer,
    NPSScorer,
    FinancialScorer,
    QualityScorer,
    BehavioralScorer,
    compute_support_score,
    compute_nps_score,
    compute_financial_score,
    compute_quality_score,
    compute_behavioral_score,
)
from .config import (
    SCORE_CAP,
    BucketThresholds,
    ConfigError,
    ScoreWeights,
    DEFAULT_THRESHOLDS,
    DEFAULT_WEIGHTS,
)
from .nps import NPSClassification, parse_classification
from .schemas import SCORING_INPUT_SCHEMA, SCORING_OUTPUT_SCHEMA
from .signals import RiskSignal, normalize_client_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskScoreResult:
    """Score and bucket for one customer; recomputed on every read."""

    score: int
    bucket: RiskBucket
    components: dict = field(default_factory=dict)


def component_scores(signal: RiskSignal, weights: ScoreWeights = DEFAULT_WEIGHTS) -> dict:
    """Points contributed by each pillar for one signal."""
    return {
        "support": compute_support_score(signal.ticket_count_30d, signal.ticket_count_90d, weights),
        "nps": compute_nps_score(signal.nps_classification, weights),
        "financial": compute_financial_score(signal.days_overdue, weights),
        "quality": compute_quality_score(signal.quality_raw_score, weights),
        "behavioral": compute_behavioral_score(signal.behavioral_raw_score, weights),
    }


def checked_config(config, default):
    """Return config if it validates, otherwise default (logged)."""
    try:
        config.validate()
    except ConfigError as e:
        logger.warning(
            "Invalid %s, using defaults: %s", type(config).__name__, e,
            extra={"status": "REJECTED"},
        )
        return default
    return config


def compute_total_score(signal: RiskSignal, weights: ScoreWeights = DEFAULT_WEIGHTS) -> int:
    """
    Total risk score for one signal, clamped to [0, 500].

    Always call through here instead of reading a stored score: stored
    values go stale as soon as weights or ticket counts change.
    """
    weights = checked_config(weights, DEFAULT_WEIGHTS)
    total = sum(component_scores(signal, weights).values())
    return max(0, min(SCORE_CAP, total))


@dataclass
class ScoringResult:
    """
    Container for scoring results with component breakdown.

    Attributes:
        df: Input records with component scores, RISK_SCORE and RISK_BUCKET
        component_columns: List of component score column names
        thresholds: Thresholds used for RISK_BUCKET
    """

    df: pd.DataFrame
    component_columns: list[str]
    thresholds: BucketThresholds = field(default_factory=BucketThresholds)

    def by_customer(self) -> pd.DataFrame:
        """
        One row per CLIENT_ID, keeping the riskiest record.

        Returns:
            DataFrame sorted by RISK_SCORE descending, with RECORDS holding
            how many rows the customer had
        """
        if self.df.empty:
            return self.df.assign(RECORDS=pd.Series(dtype=int))

        grouped = self.df.groupby("CLIENT_ID", sort=False)
        riskiest = self.df.loc[grouped["RISK_SCORE"].idxmax()].copy()
        riskiest["RECORDS"] = riskiest["CLIENT_ID"].map(grouped.size()).astype(int)
        riskiest["RISK_BUCKET"] = classify_series(riskiest["RISK_SCORE"], self.thresholds)
        return riskiest.sort_values(
            ["RISK_SCORE", "CLIENT_ID"], ascending=[False, True], kind="stable"
        ).reset_index(drop=True)

    def score_map(self) -> dict[str, RiskScoreResult]:
        """Quick CLIENT_ID -> RiskScoreResult lookup built from by_customer()."""
        customers = self.by_customer()
        lookup = {}
        for row in customers.itertuples(index=False):
            record = row._asdict()
            lookup[record["CLIENT_ID"]] = RiskScoreResult(
                score=int(record["RISK_SCORE"]),
                bucket=RiskBucket(record["RISK_BUCKET"]),
                components={
                    col.replace("_score", ""): int(record[col])
                    for col in self.component_columns
                },
            )
        return lookup

    def get_at_risk(self, min_bucket: str = "ALERT") -> pd.DataFrame:
        """
        Get customers at or above a bucket, one row per customer.

        Args:
            min_bucket: "OK", "ALERT" or "CRITICAL" (dashboard labels accepted)

        Returns:
            DataFrame filtered to customers at or above the bucket
        """
        min_idx = parse_bucket(min_bucket).rank
        valid = BUCKET_ORDER[min_idx:]
        customers = self.by_customer()
        return customers[customers["RISK_BUCKET"].isin(valid)]

    def summary(self) -> pd.DataFrame:
        """
        Customer counts and average score per bucket.

        Returns:
            DataFrame indexed by bucket in OK / ALERT / CRITICAL order
        """
        customers = self.by_customer()
        stats = (
            customers.groupby("RISK_BUCKET")
            .agg(
                count=("CLIENT_ID", "count"),
                avg_score=("RISK_SCORE", "mean"),
            )
            .reindex(BUCKET_ORDER)
        )
        stats["count"] = stats["count"].fillna(0).astype(int)
        total = stats["count"].sum()
        stats["pct"] = (stats["count"] / total * 100) if total else 0.0
        return stats.round(1)

    def component_breakdown(self) -> pd.DataFrame:
        """
        Show average contribution of each component.

        Returns:
            DataFrame with component statistics
        """
        stats = {}
        for col in self.component_columns:
            component_name = col.replace("_score", "")
            stats[component_name] = {
                "mean": self.df[col].mean(),
                "max": self.df[col].max(),
                "min": self.df[col].min(),
            }
        return pd.DataFrame(stats).T.round(1)


class ChurnScorer:
    """
    Vectorized churn risk scoring engine.

    Calculates component scores independently using pandas operations,
    sums them into a total score clamped to [0, 500] and buckets it with
    the tenant thresholds.

    Components:
    - Support (0-45): tickets in the last 30/90 days
    - NPS (0-30): latest classification is Detractor
    - Financial (0-25): days overdue
    - Quality (0-20 at baseline): external quality sub-score
    - Behavioral (0-20 at baseline): external behavioral sub-score
    """

    REQUIRED_COLUMNS = ["CLIENT_ID"]

    # Signal columns and the value used when missing
    SIGNAL_DEFAULTS = {
        "TICKETS_30D": 0,
        "TICKETS_90D": 0,
        "NPS_CLASSIFICATION": NPSClassification.UNKNOWN.value,
        "DAYS_OVERDUE": 0,
        "QUALITY_SCORE": 0.0,
        "BEHAVIORAL_SCORE": 0.0,
    }

    def __init__(
        self,
        weights: Optional[ScoreWeights] = None,
        thresholds: Optional[BucketThresholds] = None,
    ):
        """
        Initialize scorer with a tenant's configuration.

        Args:
            weights: ScoreWeights instance. Uses DEFAULT_WEIGHTS if None.
            thresholds: BucketThresholds instance. Uses DEFAULT_THRESHOLDS if None.

        Invalid weights or thresholds are replaced by the defaults with a
        logged warning, the same way ConfigStore treats an invalid file.
        """
        self.weights = checked_config(weights or DEFAULT_WEIGHTS, DEFAULT_WEIGHTS)
        self.thresholds = checked_config(thresholds or DEFAULT_THRESHOLDS, DEFAULT_THRESHOLDS)
        self._init_components()

    def _init_components(self) -> None:
        """Initialize all scoring components."""
        self.components = {
            "support": SupportScorer(self.weights),
            "nps": NPSScorer(self.weights),
            "financial": FinancialScorer(self.weights),
            "quality": QualityScorer(self.weights),
            "behavioral": BehavioralScorer(self.weights),
        }

    def validate_input(self, df: pd.DataFrame) -> None:
        """
        Validate required columns exist.

        Raises:
            ValueError: If required columns are missing
        """
        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    def prepare(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Fill missing signals and validate the input schema.

        Absent columns and null values degrade to zero (UNKNOWN for NPS).
        NPS labels may be Portuguese or English; NPS_RATING is used when the
        label is missing.

        Raises:
            ValueError: If CLIENT_ID is missing
            pandera.errors.SchemaError: If a signal is out of range
        """
        self.validate_input(df)
        prepared = df.reset_index(drop=True).copy()
        prepared["CLIENT_ID"] = normalize_client_ids(prepared["CLIENT_ID"])

        absent = [col for col in self.SIGNAL_DEFAULTS if col not in prepared.columns]
        if absent:
            logger.warning("Input has no %s columns; treating them as zero", ", ".join(absent))

        for col, default in self.SIGNAL_DEFAULTS.items():
            if col == "NPS_CLASSIFICATION":
                continue
            if col in prepared.columns:
                prepared[col] = prepared[col].fillna(default)
            else:
                prepared[col] = default

        labels = prepared.get("NPS_CLASSIFICATION", pd.Series(None, index=prepared.index, dtype=object))
        ratings = prepared.get("NPS_RATING", pd.Series(np.nan, index=prepared.index))
        prepared["NPS_CLASSIFICATION"] = [
            parse_classification(None if pd.isna(label) else label, rating).value
            for label, rating in zip(labels, ratings)
        ]

        return SCORING_INPUT_SCHEMA.validate(prepared)

    def score(self, df: pd.DataFrame) -> ScoringResult:
        """
        Calculate churn risk scores for all records.

        Args:
            df: DataFrame with CLIENT_ID and signal columns

        Returns:
            ScoringResult with scores and component breakdown

        Example:
            >>> scorer = ChurnScorer()
            >>> result = scorer.score(status_df)
            >>> at_risk = result.get_at_risk("ALERT")
        """
        result = self.prepare(df)

        # Calculate all component scores (vectorized)
        component_cols = []
        for name, component in self.components.items():
            col_name = f"{name}_score"
            result[col_name] = component.score(result)
            component_cols.append(col_name)

        # Sum all components, then clamp to the global cap
        result["RISK_SCORE"] = (
            result[component_cols].sum(axis=1).clip(lower=0, upper=SCORE_CAP).astype(int)
        )
        result["RISK_BUCKET"] = classify_series(result["RISK_SCORE"], self.thresholds)

        result = SCORING_OUTPUT_SCHEMA.validate(result)
        logger.info(
            "Scored %d records for %d customers",
            len(result),
            result["CLIENT_ID"].nunique(),
        )

        return ScoringResult(df=result, component_columns=component_cols, thresholds=self.thresholds)

    def score_signal(self, signal: RiskSignal) -> RiskScoreResult:
        """Score one RiskSignal with the scalar reference formulas."""
        components = component_scores(signal, self.weights)
        total = max(0, min(SCORE_CAP, sum(components.values())))
        return RiskScoreResult(
            score=total,
            bucket=classify(total, self.thresholds),
            components=components,
        )

    def score_single(self, client_data: dict) -> dict:
        """
        Score a single record (convenience method).

        Args:
            client_data: Dictionary keyed by signal column names

        Returns:
            Dictionary with score, bucket and components
        """
        result = self.score_signal(RiskSignal.from_record(client_data))
        return {
            "RISK_SCORE": result.score,
            "RISK_BUCKET": result.bucket.value,
            "components": dict(result.components),
        }


def generate_sample_data(n_clients: int = 100, seed: int = 42) -> pd.DataFrame:
    """
    Generate realistic sample data for testing.

    - ~55% of customers opened no ticket in the last 30 days
    - ~20% answered the last NPS survey as detractors
    - ~30% have an overdue invoice
    - ~10% of customers have a second contract record
    """
    np.random.seed(seed)

    tickets_30d = np.random.choice(
        [0, 1, 2, 3, 4, 6],
        size=n_clients,
        p=[0.55, 0.20, 0.12, 0.07, 0.04, 0.02],
    )
    tickets_90d = tickets_30d + np.random.poisson(lam=1.0, size=n_clients)

    nps = np.random.choice(
        ["Promoter", "Neutral", "Detractor", "Unknown"],
        size=n_clients,
        p=[0.35, 0.20, 0.20, 0.25],
    )

    days_overdue = np.where(
        np.random.random(n_clients) < 0.70,
        0,
        np.random.randint(1, 121, size=n_clients),
    )

    quality = np.clip(np.random.normal(loc=8, scale=6, size=n_clients), 0, 25).round(1)
    behavioral = np.clip(np.random.normal(loc=6, scale=5, size=n_clients), 0, 20).round(1)

    df = pd.DataFrame(
        {
            "CLIENT_ID": [f"CLIENT_{i:04d}" for i in range(n_clients)],
            "TICKETS_30D": tickets_30d,
            "TICKETS_90D": tickets_90d,
            "NPS_CLASSIFICATION": nps,
            "DAYS_OVERDUE": days_overdue,
            "QUALITY_SCORE": quality,
            "BEHAVIORAL_SCORE": behavioral,
        }
    )

    # Second contract for some customers: same NPS, different usage profile
    extra = df.sample(frac=0.10, random_state=seed).copy()
    extra["DAYS_OVERDUE"] = np.random.randint(0, 90, size=len(extra))
    extra["QUALITY_SCORE"] = np.clip(np.random.normal(loc=10, scale=6, size=len(extra)), 0, 25).round(1)

    return pd.concat([df, extra], ignore_index=True)
