"""
Tenant scoring configuration for the churn risk engine.

Two independent records per tenant:
- ScoreWeights: how raw signals convert into points
- BucketThresholds: where the score range is cut into OK / ALERT / CRITICAL

Defaults mirror the values the operations dashboard ships with.
Configs are plain dataclasses passed explicitly into every scoring call.
"""

from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import List, Tuple

import yaml


# Global bound for any customer's total score
SCORE_CAP = 500


class ConfigError(ValueError):
    """Raised when a weights or thresholds configuration is invalid."""


@dataclass
class ScoreWeights:
    """
    Point weights for each risk pillar.

    Default max score (baseline-normalized sub-scores): 140 points
    - Support: 0-45 (base 25 + 4 extra tickets at 5)
    - NPS Detractor: 0-30
    - Quality: 0-20
    - Behavioral: 0-20
    - Financial: 0-25 (ceiling 30)
    """

    # === Support (tickets) ===
    # Applied once the 30-day count reaches 2 tickets
    ticket_base_weight: int = 25
    # Per ticket beyond the second one (3rd = +5, 4th = +10, ...)
    ticket_increment_weight: int = 5

    # === NPS ===
    detractor_weight: int = 30

    # === Quality / Behavioral ===
    # Max points at the raw baseline (25 and 20 respectively)
    quality_weight: int = 20
    behavioral_weight: int = 20

    # === Financial (days overdue) ===
    overdue_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (5, 5),     # 1-5 days
        (15, 10),   # 6-15 days
        (30, 15),   # 16-30 days
        (60, 20),   # 31-60 days
    ])
    overdue_beyond_points: int = 25  # more than 60 days
    financial_cap: int = 30

    # Upper bounds accepted from an administrator
    LIMITS = {
        "ticket_base_weight": 50,
        "ticket_increment_weight": 30,
        "detractor_weight": 50,
        "quality_weight": 40,
        "behavioral_weight": 40,
        "overdue_beyond_points": 50,
        "financial_cap": 60,
    }
    OVERDUE_POINTS_LIMIT = 50

    def __post_init__(self):
        # YAML round-trips tuples as lists
        self.overdue_thresholds = [
            (int(days), int(points)) for days, points in self.overdue_thresholds
        ]

    @property
    def support_cap(self) -> int:
        """Ceiling of the support pillar."""
        return self.ticket_base_weight + 4 * self.ticket_increment_weight

    @property
    def max_score(self) -> int:
        """Max achievable score when quality/behavioral sit at their baselines."""
        financial_max = min(self.overdue_beyond_points, self.financial_cap)
        return min(
            SCORE_CAP,
            self.support_cap
            + self.detractor_weight
            + self.quality_weight
            + self.behavioral_weight
            + financial_max,
        )

    def validate(self) -> None:
        """Raise ConfigError unless every weight is in range and bands are ordered."""
        for name, limit in self.LIMITS.items():
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 0 or value > limit:
                raise ConfigError(f"{name} must be between 0 and {limit}, got {value}")

        if not self.overdue_thresholds:
            raise ConfigError("overdue_thresholds must define at least one band")

        prev_days, prev_points = 0, 0
        for days, points in self.overdue_thresholds:
            if days <= prev_days:
                raise ConfigError(
                    f"overdue_thresholds days must be strictly increasing, got {days} after {prev_days}"
                )
            if points <= prev_points or points > self.OVERDUE_POINTS_LIMIT:
                raise ConfigError(
                    f"overdue_thresholds points must increase within 1-{self.OVERDUE_POINTS_LIMIT}, got {points}"
                )
            prev_days, prev_points = days, points

        if self.overdue_beyond_points <= prev_points:
            raise ConfigError(
                f"overdue_beyond_points ({self.overdue_beyond_points}) must exceed the last band ({prev_points})"
            )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["overdue_thresholds"] = [list(band) for band in self.overdue_thresholds]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ScoreWeights":
        """Build from a partial mapping; unknown keys are ignored, absent keys use defaults."""
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"expected a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ScoreWeights":
        with open(path) as f:
            return cls.from_dict(yaml.safe_load(f))

    def to_yaml(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


@dataclass
class BucketThresholds:
    """
    Cut points partitioning the score range into three tiers.

    - OK:       score <= ok_max
    - ALERT:    alert_min <= score <= alert_max
    - CRITICAL: score >= critical_min
    """

    ok_max: int = 39
    alert_min: int = 40
    alert_max: int = 69
    critical_min: int = 70

    def validate(self) -> None:
        """Raise ConfigError unless ok_max < alert_min <= alert_max < critical_min."""
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{f.name} must be an integer, got {value!r}")
            if value < 0 or value > SCORE_CAP:
                raise ConfigError(f"{f.name} must be between 0 and {SCORE_CAP}, got {value}")

        if not (self.ok_max < self.alert_min <= self.alert_max < self.critical_min):
            raise ConfigError(
                "thresholds must satisfy ok_max < alert_min <= alert_max < critical_min, "
                f"got {self.ok_max} / {self.alert_min} / {self.alert_max} / {self.critical_min}"
            )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "BucketThresholds":
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"expected a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    @classmethod
    def from_yaml(cls, path: Path | str) -> "BucketThresholds":
        with open(path) as f:
            return cls.from_dict(yaml.safe_load(f))

    def to_yaml(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


# Default configuration instances
DEFAULT_WEIGHTS = ScoreWeights()
DEFAULT_THRESHOLDS = BucketThresholds()
