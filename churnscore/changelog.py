"""
Configuration change log.

Writes one JSON entry per save attempt (accepted or rejected) and per reset,
so administrators can see who moved which threshold and when.
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd


class ConfigChangeLog:
    """Structured JSON log of tenant configuration changes."""

    def __init__(self, logs_dir: Path):
        """
        Initialize change log.

        Args:
            logs_dir: Directory to write log files
        """
        self.logs_dir = Path(logs_dir)

    def generate_change_id(self) -> str:
        """Unique, sortable change ID: chg_YYYYMMDD_HHMMSS_ffffff_XXXX"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return f"chg_{timestamp}_{uuid.uuid4().hex[:4]}"

    def log_change(
        self,
        kind: str,
        status: str,
        before: Optional[dict],
        after: Optional[dict],
        error: Optional[str] = None,
    ) -> Path:
        """
        Log a configuration change.

        Args:
            kind: "weights" or "thresholds"
            status: "ACCEPTED", "REJECTED" or "RESET"
            before: Config in effect before the change
            after: Config requested (or in effect after a reset)
            error: Validation message for rejected changes

        Returns:
            Path to log file
        """
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        change_id = self.generate_change_id()
        log_entry = {
            "change_id": change_id,
            "timestamp": datetime.now().isoformat(),
            "kind": kind,
            "status": status,
            "before": before,
            "after": after,
        }
        if error is not None:
            log_entry["error"] = error

        log_path = self.logs_dir / f"{change_id}.json"
        with open(log_path, "w") as f:
            json.dump(log_entry, f, indent=2, default=str)

        return log_path

    def get_all_logs(self) -> list[dict]:
        """
        Load all change logs.

        Returns:
            List of log dictionaries, oldest first
        """
        if not self.logs_dir.exists():
            return []
        logs = []
        for log_file in sorted(self.logs_dir.glob("chg_*.json")):
            with open(log_file) as f:
                logs.append(json.load(f))
        return logs

    def get_summary_dataframe(self) -> pd.DataFrame:
        """
        Get summary of all changes as DataFrame.

        Returns:
            DataFrame with one row per change, newest first
        """
        logs = self.get_all_logs()
        if not logs:
            return pd.DataFrame()

        summary = []
        for log in logs:
            entry = {
                "change_id": log["change_id"],
                "timestamp": log["timestamp"],
                "kind": log["kind"],
                "status": log["status"],
                "error": log.get("error"),
            }
            # Fields that actually moved
            before = log.get("before") or {}
            after = log.get("after") or {}
            changed = sorted(k for k in after if before.get(k) != after.get(k))
            entry["changed"] = ", ".join(changed)
            summary.append(entry)

        df = pd.DataFrame(summary)
        return df.sort_values("change_id", ascending=False).reset_index(drop=True)
