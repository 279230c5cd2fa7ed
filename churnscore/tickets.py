"""
Support ticket aggregation.

Turns raw ticket records into per-customer counts over trailing windows.
Windows are measured back from the most recent ticket in the export rather
than from today, so stale exports still produce meaningful counts.
"""

import logging
from typing import Optional

import pandas as pd

from .signals import normalize_client_ids, whole_number_ids

logger = logging.getLogger(__name__)

# Repeat offender: 2+ tickets in the 30-day window
REPEAT_THRESHOLD = 2


def parse_opened_at(values: pd.Series) -> pd.Series:
    """
    Parse ticket opening dates.

    Accepts ISO timestamps and Brazilian "dd/mm/yyyy [hh:mm]" strings;
    the latter are reduced to their date part. Unparseable values become NaT.
    """
    text = values.astype(str).str.strip()
    slashed = text.str.contains("/", regex=False)

    parsed = pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns]")
    if slashed.any():
        date_part = text[slashed].str.split(" ").str[0]
        parsed[slashed] = pd.to_datetime(date_part, format="%d/%m/%Y", errors="coerce")
    if (~slashed).any():
        iso = pd.to_datetime(text[~slashed], errors="coerce", utc=True, format="mixed")
        parsed[~slashed] = iso.dt.tz_localize(None)
    return parsed


def aggregate_tickets(
    tickets: pd.DataFrame,
    as_of: Optional[pd.Timestamp] = None,
    windows: tuple[int, int] = (30, 90),
) -> pd.DataFrame:
    """
    Count tickets per customer in the 30- and 90-day windows.

    Args:
        tickets: DataFrame with CLIENT_ID, OPENED_AT and optionally PROTOCOL
        as_of: Window end date; defaults to the most recent ticket date
        windows: (short, long) window sizes in days

    Returns:
        DataFrame with CLIENT_ID, TOTAL_TICKETS, TICKETS_30D, TICKETS_90D,
        REPEAT_OFFENDER
    """
    missing = {"CLIENT_ID", "OPENED_AT"} - set(tickets.columns)
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    columns = ["CLIENT_ID", "TOTAL_TICKETS", "TICKETS_30D", "TICKETS_90D", "REPEAT_OFFENDER"]

    df = tickets.copy()
    df["_opened"] = parse_opened_at(df["OPENED_AT"])

    # Keep the most recent row for each protocol
    if "PROTOCOL" in df.columns:
        before = len(df)
        df = (
            df.sort_values("_opened", ascending=False, na_position="last", kind="stable")
            .drop_duplicates(subset="PROTOCOL", keep="first")
        )
        if len(df) < before:
            logger.debug("Dropped %d duplicate ticket rows", before - len(df))

    # Ticket systems key customers by integer id
    valid = whole_number_ids(df["CLIENT_ID"]).to_numpy()
    skipped = int((~valid).sum())
    if skipped:
        logger.warning("Skipping %d tickets with invalid CLIENT_ID", skipped)
    df = df[valid].copy()
    df["CLIENT_ID"] = normalize_client_ids(df["CLIENT_ID"])

    if df.empty:
        return pd.DataFrame(columns=columns)

    if as_of is None:
        as_of = df["_opened"].max()
        if pd.isna(as_of):
            as_of = pd.Timestamp.now().normalize()
    as_of = pd.Timestamp(as_of)

    short_days, long_days = windows
    opened = df["_opened"]
    df["_in_short"] = (opened >= as_of - pd.Timedelta(days=short_days)).astype(int)
    df["_in_long"] = (opened >= as_of - pd.Timedelta(days=long_days)).astype(int)

    result = (
        df.groupby("CLIENT_ID", sort=True)
        .agg(
            TOTAL_TICKETS=("_opened", "size"),
            TICKETS_30D=("_in_short", "sum"),
            TICKETS_90D=("_in_long", "sum"),
        )
        .reset_index()
    )
    result["REPEAT_OFFENDER"] = result["TICKETS_30D"] >= REPEAT_THRESHOLD
    return result[columns]
