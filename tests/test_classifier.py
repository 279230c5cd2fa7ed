"""
Tests for risk bucket classification.
"""

import pandas as pd
import pytest

from churnscore.classifier import (
    RiskBucket,
    classify,
    classify_series,
    parse_bucket,
    representative_score,
)
from churnscore.config import BucketThresholds


class TestClassify:
    """Boundary exactness at the tier edges."""

    @pytest.mark.parametrize("score,expected", [
        (0, RiskBucket.OK),
        (39, RiskBucket.OK),
        (40, RiskBucket.ALERT),
        (69, RiskBucket.ALERT),
        (70, RiskBucket.CRITICAL),
        (500, RiskBucket.CRITICAL),
    ])
    def test_default_boundaries(self, default_thresholds, score, expected):
        assert classify(score, default_thresholds) == expected

    @pytest.mark.parametrize("thresholds", [
        BucketThresholds(),
        BucketThresholds(ok_max=19, alert_min=20, alert_max=99, critical_min=100),
        BucketThresholds(ok_max=0, alert_min=1, alert_max=1, critical_min=2),
    ])
    def test_critical_min_is_exact(self, thresholds):
        assert classify(thresholds.critical_min, thresholds) == RiskBucket.CRITICAL
        assert classify(thresholds.critical_min - 1, thresholds) != RiskBucket.CRITICAL
        assert classify(thresholds.alert_min, thresholds) == RiskBucket.ALERT
        assert classify(thresholds.alert_min - 1, thresholds) == RiskBucket.OK

    def test_critical_checked_first(self):
        """Misordered thresholds still send high scores to CRITICAL."""
        broken = BucketThresholds(ok_max=10, alert_min=90, alert_max=95, critical_min=50)
        assert classify(95, broken) == RiskBucket.CRITICAL
        assert classify(60, broken) == RiskBucket.CRITICAL

    def test_series_matches_scalar(self, default_thresholds):
        scores = pd.Series(range(0, 120))
        buckets = classify_series(scores, default_thresholds)
        assert buckets.tolist() == [classify(s, default_thresholds).value for s in scores]


class TestRepresentativeScore:
    """A customer is only as safe as their riskiest record."""

    def test_max_across_records(self, default_thresholds):
        score = representative_score([120, 340])
        assert score == 340
        assert classify(score, default_thresholds) == RiskBucket.CRITICAL

    def test_empty_is_zero(self):
        assert representative_score([]) == 0


class TestRiskBucket:
    def test_ordering(self):
        assert RiskBucket.OK.rank < RiskBucket.ALERT.rank < RiskBucket.CRITICAL.rank

    def test_dashboard_labels(self):
        assert RiskBucket.ALERT.label == "ALERTA"
        assert RiskBucket.CRITICAL.label == "CRÍTICO"

    @pytest.mark.parametrize("value,expected", [
        ("ok", RiskBucket.OK),
        ("ALERTA", RiskBucket.ALERT),
        ("alert", RiskBucket.ALERT),
        ("CRÍTICO", RiskBucket.CRITICAL),
        ("critico", RiskBucket.CRITICAL),
        (RiskBucket.CRITICAL, RiskBucket.CRITICAL),
    ])
    def test_parse_bucket(self, value, expected):
        assert parse_bucket(value) == expected

    def test_parse_unknown_bucket_raises(self):
        with pytest.raises(ValueError, match="Unknown risk bucket"):
            parse_bucket("High")
