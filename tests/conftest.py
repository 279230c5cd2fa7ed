"""
Pytest fixtures for churn risk scoring tests.
"""

import pandas as pd
import pytest

# Add package to path
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from churnscore.config import BucketThresholds, ScoreWeights
from churnscore.scorer import ChurnScorer, generate_sample_data
from churnscore.store import ConfigStore


@pytest.fixture
def default_weights():
    """Default score weights."""
    return ScoreWeights()


@pytest.fixture
def default_thresholds():
    """Default bucket thresholds."""
    return BucketThresholds()


@pytest.fixture
def scorer(default_weights, default_thresholds):
    """ChurnScorer with default config."""
    return ChurnScorer(default_weights, default_thresholds)


@pytest.fixture
def sample_data():
    """100 sample customers (plus second contracts) with realistic distributions."""
    return generate_sample_data(n_clients=100, seed=42)


@pytest.fixture
def store(tmp_path):
    """ConfigStore rooted in a temporary directory."""
    return ConfigStore(tmp_path / "config")


@pytest.fixture
def edge_cases():
    """Specific edge cases for testing boundary conditions."""
    return pd.DataFrame([
        # Highest risk: repeat offender, detractor, long overdue, poor quality
        {
            "CLIENT_ID": "EDGE_HIGH_RISK",
            "TICKETS_30D": 8,
            "TICKETS_90D": 12,
            "NPS_CLASSIFICATION": "Detractor",
            "DAYS_OVERDUE": 90,
            "QUALITY_SCORE": 25,
            "BEHAVIORAL_SCORE": 20,
        },
        # Lowest risk: no tickets, promoter, paid up, clean sub-scores
        {
            "CLIENT_ID": "EDGE_LOW_RISK",
            "TICKETS_30D": 0,
            "TICKETS_90D": 0,
            "NPS_CLASSIFICATION": "Promoter",
            "DAYS_OVERDUE": 0,
            "QUALITY_SCORE": 0,
            "BEHAVIORAL_SCORE": 0,
        },
        # Alert boundary: 25 (tickets) + 15 (16-30 days overdue) = 40
        {
            "CLIENT_ID": "EDGE_ALERT_BOUNDARY",
            "TICKETS_30D": 2,
            "TICKETS_90D": 2,
            "NPS_CLASSIFICATION": "Neutral",
            "DAYS_OVERDUE": 20,
            "QUALITY_SCORE": 0,
            "BEHAVIORAL_SCORE": 0,
        },
        # Critical boundary: 30 (detractor) + 20 (31-60 days) + 20 (quality) = 70
        {
            "CLIENT_ID": "EDGE_CRITICAL_BOUNDARY",
            "TICKETS_30D": 0,
            "TICKETS_90D": 0,
            "NPS_CLASSIFICATION": "Detractor",
            "DAYS_OVERDUE": 45,
            "QUALITY_SCORE": 25,
            "BEHAVIORAL_SCORE": 0,
        },
        # Single recent ticket overrides a heavy 90-day history
        {
            "CLIENT_ID": "EDGE_SINGLE_RECENT",
            "TICKETS_30D": 1,
            "TICKETS_90D": 9,
            "NPS_CLASSIFICATION": "Unknown",
            "DAYS_OVERDUE": 0,
            "QUALITY_SCORE": 0,
            "BEHAVIORAL_SCORE": 0,
        },
    ])


@pytest.fixture
def multi_contract_customer():
    """One customer with two contract records scoring 120 and 340 by design."""
    heavy = ScoreWeights(
        ticket_base_weight=50,
        ticket_increment_weight=30,
        detractor_weight=50,
        quality_weight=40,
        behavioral_weight=40,
    )
    records = pd.DataFrame([
        # support capped at 50 + 4*30 = 170, quality 80, behavioral 90 -> 340
        {
            "CLIENT_ID": "MULTI", "TICKETS_30D": 10, "TICKETS_90D": 10,
            "NPS_CLASSIFICATION": "Promoter", "DAYS_OVERDUE": 0,
            "QUALITY_SCORE": 50, "BEHAVIORAL_SCORE": 45,
        },
        # 50 (detractor) + 40 (quality at baseline) + 30 (behavioral at 15/20) = 120
        {
            "CLIENT_ID": "MULTI", "TICKETS_30D": 0, "TICKETS_90D": 0,
            "NPS_CLASSIFICATION": "Detractor", "DAYS_OVERDUE": 0,
            "QUALITY_SCORE": 25, "BEHAVIORAL_SCORE": 15,
        },
    ])
    return heavy, records
