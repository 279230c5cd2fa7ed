"""Scoring components for churn risk."""

from .base import BaseScorer
from .support import SupportScorer, compute_support_score
from .nps import NPSScorer, compute_nps_score
from .financial import FinancialScorer, compute_financial_score
from .quality import QualityScorer, compute_quality_score
from .behavioral import BehavioralScorer, compute_behavioral_score

__all__ = [
    "BaseScorer",
    "SupportScorer",
    "NPSScorer",
    "FinancialScorer",
    "QualityScorer",
    "BehavioralScorer",
    "compute_support_score",
    "compute_nps_score",
    "compute_financial_score",
    "compute_quality_score",
    "compute_behavioral_score",
]
