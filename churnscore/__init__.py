"""
Churn Risk Scoring Package

A rule-based, tenant-configurable risk score for ISP customers.
"""

from .classifier import RiskBucket, classify, representative_score
from .config import BucketThresholds, ConfigError, ScoreWeights
from .scorer import (
    ChurnScorer,
    RiskScoreResult,
    ScoringResult,
    compute_total_score,
    generate_sample_data,
)
from .signals import RiskSignal
from .store import ConfigStore

__all__ = [
    "ChurnScorer",
    "ScoringResult",
    "RiskScoreResult",
    "RiskSignal",
    "RiskBucket",
    "ScoreWeights",
    "BucketThresholds",
    "ConfigError",
    "ConfigStore",
    "classify",
    "compute_total_score",
    "representative_score",
    "generate_sample_data",
]
__version__ = "1.0.0"
