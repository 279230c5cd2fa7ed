"""
Tests for signal assembly: tickets, NPS and status records.
"""

import pandas as pd
import pytest

from churnscore import ChurnScorer
from churnscore.nps import (
    NPSClassification,
    classify_rating,
    latest_classification,
    net_promoter_score,
    parse_classification,
)
from churnscore.signals import RiskSignal, assemble_signals, normalize_client_ids
from churnscore.tickets import aggregate_tickets, parse_opened_at


@pytest.fixture
def tickets():
    """Ticket export with a duplicated protocol and mixed date formats."""
    return pd.DataFrame([
        {"CLIENT_ID": 1, "PROTOCOL": "P1", "OPENED_AT": "2025-03-31T10:00:00"},
        {"CLIENT_ID": 1, "PROTOCOL": "P2", "OPENED_AT": "20/03/2025 08:15"},
        {"CLIENT_ID": 1, "PROTOCOL": "P2", "OPENED_AT": "20/03/2025 08:15"},
        {"CLIENT_ID": 1, "PROTOCOL": "P3", "OPENED_AT": "2025-01-15"},
        {"CLIENT_ID": "2", "PROTOCOL": "P4", "OPENED_AT": "2025-02-10"},
        {"CLIENT_ID": 2, "PROTOCOL": "P5", "OPENED_AT": "2025-01-20"},
        {"CLIENT_ID": 3, "PROTOCOL": "P6", "OPENED_AT": "2024-06-01"},
        {"CLIENT_ID": "abc", "PROTOCOL": "P7", "OPENED_AT": "2025-03-30"},
    ])


class TestTicketAggregation:
    """Windows are relative to the most recent ticket."""

    def test_counts(self, tickets):
        counts = aggregate_tickets(tickets).set_index("CLIENT_ID")

        # Reference date: 2025-03-31 -> 30d from 2025-03-01, 90d from 2024-12-31
        assert counts.loc["1", "TICKETS_30D"] == 2
        assert counts.loc["1", "TICKETS_90D"] == 3
        assert counts.loc["1", "TOTAL_TICKETS"] == 3
        assert bool(counts.loc["1", "REPEAT_OFFENDER"]) is True

        assert counts.loc["2", "TICKETS_30D"] == 0
        assert counts.loc["2", "TICKETS_90D"] == 2
        assert bool(counts.loc["2", "REPEAT_OFFENDER"]) is False

        assert counts.loc["3", "TICKETS_90D"] == 0
        assert counts.loc["3", "TOTAL_TICKETS"] == 1

    def test_invalid_client_ids_skipped(self, tickets):
        counts = aggregate_tickets(tickets)
        assert set(counts["CLIENT_ID"]) == {"1", "2", "3"}

    def test_fractional_client_ids_skipped(self):
        tickets = pd.DataFrame([
            {"CLIENT_ID": "12.5", "PROTOCOL": "F1", "OPENED_AT": "2025-03-01"},
            {"CLIENT_ID": "7.0", "PROTOCOL": "F2", "OPENED_AT": "2025-03-02"},
            {"CLIENT_ID": 7, "PROTOCOL": "F3", "OPENED_AT": "2025-03-03"},
        ])
        counts = aggregate_tickets(tickets)

        assert counts["CLIENT_ID"].tolist() == ["7"]
        assert counts["TOTAL_TICKETS"].tolist() == [2]

    def test_explicit_as_of(self, tickets):
        counts = aggregate_tickets(tickets, as_of=pd.Timestamp("2025-02-15")).set_index("CLIENT_ID")
        # 30d from 2025-01-16: P4 (02-10), P5 (01-20)
        assert counts.loc["2", "TICKETS_30D"] == 2

    def test_missing_column_raises(self):
        with pytest.raises(ValueError, match="OPENED_AT"):
            aggregate_tickets(pd.DataFrame({"CLIENT_ID": [1]}))

    def test_empty(self):
        counts = aggregate_tickets(pd.DataFrame(columns=["CLIENT_ID", "OPENED_AT"]))
        assert counts.empty
        assert "TICKETS_30D" in counts.columns

    def test_parse_opened_at(self):
        parsed = parse_opened_at(pd.Series(["05/04/2025 13:00", "2025-04-05", "garbage"]))
        assert parsed.iloc[0] == pd.Timestamp("2025-04-05")
        assert parsed.iloc[1] == pd.Timestamp("2025-04-05")
        assert pd.isna(parsed.iloc[2])


class TestNPS:
    """Tests for NPS classification helpers."""

    @pytest.mark.parametrize("rating,expected", [
        (0, NPSClassification.DETRACTOR),
        (6, NPSClassification.DETRACTOR),
        (7, NPSClassification.NEUTRAL),
        (8, NPSClassification.NEUTRAL),
        (9, NPSClassification.PROMOTER),
        (10, NPSClassification.PROMOTER),
        (11, NPSClassification.UNKNOWN),
        (None, NPSClassification.UNKNOWN),
        (float("nan"), NPSClassification.UNKNOWN),
    ])
    def test_classify_rating(self, rating, expected):
        assert classify_rating(rating) == expected

    @pytest.mark.parametrize("label,expected", [
        ("Detrator", NPSClassification.DETRACTOR),
        ("DETRATOR", NPSClassification.DETRACTOR),
        ("promotor", NPSClassification.PROMOTER),
        ("Neutro", NPSClassification.NEUTRAL),
        ("Detractor", NPSClassification.DETRACTOR),
        (NPSClassification.PROMOTER, NPSClassification.PROMOTER),
    ])
    def test_parse_classification(self, label, expected):
        assert parse_classification(label) == expected

    def test_rating_fallback_for_unknown_label(self):
        assert parse_classification("??", 2) == NPSClassification.DETRACTOR
        assert parse_classification(None, 9) == NPSClassification.PROMOTER
        assert parse_classification(None) == NPSClassification.UNKNOWN

    def test_latest_classification(self):
        responses = pd.DataFrame([
            {"CLIENT_ID": 1, "RESPONDED_AT": "2025-01-10", "RATING": 10},
            {"CLIENT_ID": 1, "RESPONDED_AT": "2025-03-02", "RATING": 3},
            {"CLIENT_ID": 2, "RESPONDED_AT": "2025-02-01", "RATING": 8},
        ])
        latest = latest_classification(responses).set_index("CLIENT_ID")

        assert latest.loc[1, "NPS_CLASSIFICATION"] == "Detractor"
        assert latest.loc[2, "NPS_CLASSIFICATION"] == "Neutral"

    def test_net_promoter_score(self):
        responses = pd.DataFrame({"RATING": [10, 9, 8, 3, 0, None]})
        # 2 promoters, 1 neutral, 2 detractors over 5 classified
        assert net_promoter_score(responses) == 0.0

        responses = pd.DataFrame({"CLASSIFICATION": ["Promotor", "Promotor", "Promotor", "Detrator"]})
        assert net_promoter_score(responses) == 50.0

    def test_net_promoter_score_empty(self):
        assert net_promoter_score(pd.DataFrame({"RATING": []})) == 0.0


class TestRiskSignal:
    """Tests for the immutable per-record signal."""

    def test_missing_values_degrade_to_zero(self):
        signal = RiskSignal.from_record({"CLIENT_ID": "X"})
        assert signal == RiskSignal()
        assert signal.nps_classification is NPSClassification.UNKNOWN

    def test_nan_values_degrade_to_zero(self):
        signal = RiskSignal.from_record({"TICKETS_30D": float("nan"), "QUALITY_SCORE": None})
        assert signal.ticket_count_30d == 0
        assert signal.quality_raw_score == 0.0

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError, match="days_overdue"):
            RiskSignal(days_overdue=-3)
        with pytest.raises(ValueError, match="ticket_count_30d"):
            RiskSignal(ticket_count_30d=-1)

    def test_negative_raw_scores_rejected(self):
        with pytest.raises(ValueError, match="quality_raw_score"):
            RiskSignal(quality_raw_score=-5)
        with pytest.raises(ValueError, match="behavioral_raw_score"):
            RiskSignal.from_record({"BEHAVIORAL_SCORE": -0.5})

    def test_immutable(self):
        signal = RiskSignal(ticket_count_30d=2)
        with pytest.raises(AttributeError):
            signal.ticket_count_30d = 5

    def test_label_normalized(self):
        assert RiskSignal(nps_classification="detrator").nps_classification is NPSClassification.DETRACTOR

    def test_rating_used_without_label(self):
        signal = RiskSignal.from_record({"NPS_RATING": 4})
        assert signal.nps_classification is NPSClassification.DETRACTOR


class TestAssembleSignals:
    """Merging status records with ticket and NPS sources."""

    def test_aggregates_override_status_counts(self, tickets):
        status = pd.DataFrame([
            {"CLIENT_ID": 1, "TICKETS_30D": 0, "TICKETS_90D": 0, "DAYS_OVERDUE": 0},
            {"CLIENT_ID": 4, "TICKETS_30D": 1, "TICKETS_90D": 1, "DAYS_OVERDUE": 10},
        ])
        merged = assemble_signals(status, ticket_counts=aggregate_tickets(tickets)).set_index("CLIENT_ID")

        assert merged.loc["1", "TICKETS_30D"] == 2
        assert merged.loc["1", "TICKETS_90D"] == 3
        # No ticket history: status counts are the fallback
        assert merged.loc["4", "TICKETS_30D"] == 1

    def test_float_status_ids_join_ticket_ids(self):
        """CSV columns with gaps load as float; 7.0 must still match ticket id 7."""
        status = pd.DataFrame({"CLIENT_ID": [7.0, 8.0, None], "DAYS_OVERDUE": [0, 0, 0]})
        tickets = pd.DataFrame([
            {"CLIENT_ID": 7, "PROTOCOL": "T1", "OPENED_AT": "2025-03-01"},
            {"CLIENT_ID": 7, "PROTOCOL": "T2", "OPENED_AT": "2025-03-02"},
        ])
        merged = assemble_signals(status, ticket_counts=aggregate_tickets(tickets))

        assert merged["CLIENT_ID"].iloc[0] == "7"
        assert merged["TICKETS_30D"].iloc[0] == 2
        assert merged["CLIENT_ID"].iloc[1] == "8"
        assert pd.isna(merged["CLIENT_ID"].iloc[2])

    def test_normalize_client_ids(self):
        ids = pd.Series([7, "7.0", " 8 ", "12.5", "CLIENT_0001", None], dtype=object)
        normalized = normalize_client_ids(ids)

        assert normalized.iloc[:5].tolist() == ["7", "7", "8", "12.5", "CLIENT_0001"]
        assert pd.isna(normalized.iloc[5])

    def test_latest_nps_overrides_status(self):
        status = pd.DataFrame([
            {"CLIENT_ID": 1, "NPS_CLASSIFICATION": "Promoter"},
            {"CLIENT_ID": 2, "NPS_CLASSIFICATION": "Neutral"},
        ])
        nps = pd.DataFrame([{"CLIENT_ID": 1, "NPS_RATING": 2, "NPS_CLASSIFICATION": "Detractor"}])
        merged = assemble_signals(status, nps=nps).set_index("CLIENT_ID")

        assert merged.loc["1", "NPS_CLASSIFICATION"] == "Detractor"
        assert merged.loc["2", "NPS_CLASSIFICATION"] == "Neutral"

    def test_pipeline_end_to_end(self, tickets):
        """Status + tickets + NPS -> customer-level scores."""
        status = pd.DataFrame([
            {"CLIENT_ID": 1, "DAYS_OVERDUE": 20, "QUALITY_SCORE": 0, "BEHAVIORAL_SCORE": 0},
            {"CLIENT_ID": 1, "DAYS_OVERDUE": 0, "QUALITY_SCORE": 0, "BEHAVIORAL_SCORE": 0},
            {"CLIENT_ID": 2, "DAYS_OVERDUE": 0, "QUALITY_SCORE": 0, "BEHAVIORAL_SCORE": 0},
        ])
        responses = pd.DataFrame([
            {"CLIENT_ID": 1, "RESPONDED_AT": "2025-03-01", "RATING": 5},
        ])
        records = assemble_signals(
            status,
            ticket_counts=aggregate_tickets(tickets),
            nps=latest_classification(responses),
        )
        scores = ChurnScorer().score(records).score_map()

        # 25 (2 tickets in 30d) + 30 (detractor) + 15 (20 days overdue)
        assert scores["1"].score == 70
        assert scores["1"].bucket.value == "CRITICAL"
        # 0 in 30d, 2 in 90d -> round(25 * 0.2)
        assert scores["2"].score == 5

    def test_missing_client_id_raises(self):
        with pytest.raises(ValueError, match="CLIENT_ID"):
            assemble_signals(pd.DataFrame({"TICKETS_30D": [1]}))
