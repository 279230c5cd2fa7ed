#!/usr/bin/env python3
"""
CLI entry point for churn risk scoring.

Usage:
    # Score a status export with a tenant's configuration
    python -m churnscore.cli score data/status.csv --tenant isp_acme

    # Merge raw tickets and NPS responses before scoring
    python -m churnscore.cli score data/status.csv --tickets data/tickets.csv --nps data/nps.csv

    # Inspect or change configuration
    python -m churnscore.cli config show --tenant isp_acme
    python -m churnscore.cli config set-thresholds --tenant isp_acme critical_min=80 alert_max=79
    python -m churnscore.cli config reset --tenant isp_acme

    # Configuration change history
    python -m churnscore.cli history --tenant isp_acme
"""

import argparse
import logging
import os
import sys

import pandas as pd
import yaml
from pandera.errors import SchemaError

from .classifier import parse_bucket
from .config import ConfigError
from .logging_config import setup_logging
from .nps import latest_classification
from .scorer import ChurnScorer
from .signals import assemble_signals
from .store import ConfigStore
from .tickets import aggregate_tickets

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.environ.get("CHURNSCORE_CONFIG_DIR", "config")
DEFAULT_TENANT = os.environ.get("CHURNSCORE_TENANT", "default")


def parse_assignments(pairs: list[str]) -> dict:
    """
    Parse KEY=VALUE arguments into config updates.

    overdue_thresholds takes "days:points" pairs separated by commas,
    e.g. overdue_thresholds=5:5,15:10,30:15,60:20
    """
    updates = {}
    for pair in pairs:
        if "=" not in pair:
            raise ConfigError(f"Expected KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        key = key.strip()
        try:
            if key == "overdue_thresholds":
                updates[key] = [
                    tuple(int(part) for part in band.split(":"))
                    for band in value.split(",")
                ]
            else:
                updates[key] = int(value)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    return updates


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Churn risk scoring for ISP customers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m churnscore.cli score data/status.csv --tenant isp_acme --by-customer
  python -m churnscore.cli config set-weights --tenant isp_acme detractor_weight=40
  python -m churnscore.cli history --tenant isp_acme
        """,
    )
    # Shared by every subcommand so options can follow the command name
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config-dir",
        default=DEFAULT_CONFIG_DIR,
        help="Directory holding tenant configuration (default: %(default)s)",
    )
    common.add_argument(
        "--tenant",
        default=DEFAULT_TENANT,
        help="Tenant id (default: %(default)s)",
    )
    common.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: %(default)s)",
    )

    sub = parser.add_subparsers(dest="command")

    score = sub.add_parser("score", parents=[common], help="Score a CSV of customer records")
    score.add_argument("input", help="CSV with CLIENT_ID and signal columns")
    score.add_argument("--tickets", help="CSV of raw tickets (CLIENT_ID, PROTOCOL, OPENED_AT)")
    score.add_argument("--nps", help="CSV of NPS responses (CLIENT_ID, RESPONDED_AT, RATING/CLASSIFICATION)")
    score.add_argument("--output", help="Write scored rows to this CSV")
    score.add_argument(
        "--by-customer",
        action="store_true",
        help="One row per customer (riskiest record)",
    )
    score.add_argument(
        "--min-bucket",
        help="Only customers at or above this bucket (OK, ALERT, CRITICAL)",
    )

    config = sub.add_parser("config", parents=[common], help="Show or change tenant configuration")
    config.add_argument("action", choices=["show", "set-weights", "set-thresholds", "reset"])
    config.add_argument("assignments", nargs="*", help="KEY=VALUE updates")

    sub.add_parser("history", parents=[common], help="List configuration changes")

    return parser


def run_score(args, store: ConfigStore) -> int:
    weights = store.get_weights(args.tenant)
    thresholds = store.get_thresholds(args.tenant)

    status = pd.read_csv(args.input)
    ticket_counts = aggregate_tickets(pd.read_csv(args.tickets)) if args.tickets else None
    nps = latest_classification(pd.read_csv(args.nps)) if args.nps else None
    records = assemble_signals(status, ticket_counts=ticket_counts, nps=nps)

    result = ChurnScorer(weights, thresholds).score(records)

    if args.min_bucket:
        output = result.get_at_risk(parse_bucket(args.min_bucket).value)
    elif args.by_customer:
        output = result.by_customer()
    else:
        output = result.df

    if args.output:
        output.to_csv(args.output, index=False)
        print(f"Wrote {len(output)} rows to {args.output}")
    else:
        columns = ["CLIENT_ID", "RISK_SCORE", "RISK_BUCKET"] + result.component_columns
        print(output[columns].to_string(index=False))

    print("\nBucket summary:\n")
    print(result.summary().to_string())
    return 0


def run_config(args, store: ConfigStore) -> int:
    if args.action == "reset":
        store.reset(args.tenant)
        print(f"Configuration for {args.tenant} reset to defaults.")
        return 0

    if args.action == "set-weights":
        store.save_weights(args.tenant, **parse_assignments(args.assignments))
    elif args.action == "set-thresholds":
        store.save_thresholds(args.tenant, **parse_assignments(args.assignments))

    weights = store.get_weights(args.tenant)
    thresholds = store.get_thresholds(args.tenant)
    print(yaml.dump(
        {
            "tenant": args.tenant,
            "weights": weights.to_dict(),
            "max_score": weights.max_score,
            "thresholds": thresholds.to_dict(),
        },
        default_flow_style=False,
        sort_keys=False,
    ))
    return 0


def run_history(args, store: ConfigStore) -> int:
    df = store.history(args.tenant)
    if df.empty:
        print("No configuration changes found.")
    else:
        print(df.to_string(index=False))
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)

    store = ConfigStore(args.config_dir)
    handlers = {
        "score": run_score,
        "config": run_config,
        "history": run_history,
    }

    try:
        return handlers[args.command](args, store)
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1
    except (FileNotFoundError, ValueError, SchemaError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
