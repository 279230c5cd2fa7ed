"""
Tenant configuration store.

Layout under base_dir:
    <tenant>/weights.yaml
    <tenant>/thresholds.yaml
    <tenant>/changes/chg_*.json

Reads never fail: an absent, unreadable or invalid file falls back to the
defaults. Saves validate first and leave the previous file untouched when
rejected. Writes are last-writer-wins; there is no locking.
"""

import logging
import re
from dataclasses import replace
from pathlib import Path

import pandas as pd
import yaml

from .changelog import ConfigChangeLog
from .config import BucketThresholds, ConfigError, ScoreWeights

logger = logging.getLogger(__name__)

TENANT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

WEIGHTS_FILE = "weights.yaml"
THRESHOLDS_FILE = "thresholds.yaml"


class ConfigStore:
    """
    File-backed weights and thresholds, one directory per tenant.

    Usage:
        store = ConfigStore("config")
        weights = store.get_weights("isp_acme")
        store.save_thresholds("isp_acme", critical_min=80)
    """

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def tenant_dir(self, tenant: str) -> Path:
        if not isinstance(tenant, str) or not TENANT_ID_PATTERN.match(tenant):
            raise ConfigError(f"Invalid tenant id: {tenant!r}")
        return self.base_dir / tenant

    def change_log(self, tenant: str) -> ConfigChangeLog:
        return ConfigChangeLog(self.tenant_dir(tenant) / "changes")

    # === Reads ===

    def _load(self, tenant: str, filename: str, cls):
        path = self.tenant_dir(tenant) / filename
        if not path.exists():
            return cls()
        try:
            config = cls.from_yaml(path)
            config.validate()
        except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
            logger.warning(
                "Ignoring invalid %s, using defaults: %s", filename, e,
                extra={"tenant": tenant, "path": str(path)},
            )
            return cls()
        return config

    def get_weights(self, tenant: str) -> ScoreWeights:
        """Tenant weights, or defaults when absent or invalid."""
        return self._load(tenant, WEIGHTS_FILE, ScoreWeights)

    def get_thresholds(self, tenant: str) -> BucketThresholds:
        """Tenant thresholds, or defaults when absent or invalid."""
        return self._load(tenant, THRESHOLDS_FILE, BucketThresholds)

    # === Writes ===

    def _save(self, tenant: str, kind: str, filename: str, current, updates: dict):
        log = self.change_log(tenant)
        before = current.to_dict()
        try:
            merged = replace(current, **updates)
            merged.validate()
        except (TypeError, ValueError) as e:
            # TypeError: unknown field name in updates
            error = str(e)
            requested = {**before, **updates}
            log.log_change(kind, "REJECTED", before, requested, error=error)
            logger.warning(
                "Rejected %s update: %s", kind, error,
                extra={"tenant": tenant, "status": "REJECTED"},
            )
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(error) from e

        merged.to_yaml(self.tenant_dir(tenant) / filename)
        log.log_change(kind, "ACCEPTED", before, merged.to_dict())
        logger.info("Saved %s", kind, extra={"tenant": tenant, "status": "ACCEPTED"})
        return merged

    def save_weights(self, tenant: str, **updates) -> ScoreWeights:
        """
        Merge updates onto the current weights and persist them.

        Raises:
            ConfigError: If the merged weights are invalid; nothing is written
        """
        return self._save(tenant, "weights", WEIGHTS_FILE, self.get_weights(tenant), updates)

    def save_thresholds(self, tenant: str, **updates) -> BucketThresholds:
        """
        Merge updates onto the current thresholds and persist them.

        Raises:
            ConfigError: If ok_max < alert_min <= alert_max < critical_min
                does not hold; nothing is written
        """
        return self._save(tenant, "thresholds", THRESHOLDS_FILE, self.get_thresholds(tenant), updates)

    def reset(self, tenant: str) -> None:
        """Drop the tenant's weights and thresholds so defaults apply again."""
        log = self.change_log(tenant)
        for kind, filename, cls in [
            ("weights", WEIGHTS_FILE, ScoreWeights),
            ("thresholds", THRESHOLDS_FILE, BucketThresholds),
        ]:
            path = self.tenant_dir(tenant) / filename
            if path.exists():
                before = self._load(tenant, filename, cls).to_dict()
                path.unlink()
                log.log_change(kind, "RESET", before, cls().to_dict())
        logger.info("Reset configuration to defaults", extra={"tenant": tenant})

    def history(self, tenant: str) -> pd.DataFrame:
        """Change log summary for the tenant, newest first."""
        return self.change_log(tenant).get_summary_dataframe()
