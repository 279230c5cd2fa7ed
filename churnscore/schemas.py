"""
Data schema definitions for churn risk scoring.

Uses Pandera for runtime validation of input DataFrames to catch pipeline
errors before scoring. Inputs are validated after nulls have been filled,
so every signal column is non-nullable here.
"""

from pandera import Column, Check, DataFrameSchema

from .classifier import BUCKET_ORDER
from .config import SCORE_CAP
from .nps import NPSClassification


# Schema for scoring input data
SCORING_INPUT_SCHEMA = DataFrameSchema(
    {
        "CLIENT_ID": Column(
            str,
            nullable=False,
            unique=False,  # One row per contract; a customer may repeat
            description="Customer identifier"
        ),
        "TICKETS_30D": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Support tickets opened in the last 30 days"
        ),
        "TICKETS_90D": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Support tickets opened in the last 90 days"
        ),
        "NPS_CLASSIFICATION": Column(
            str,
            nullable=False,
            checks=Check.isin([c.value for c in NPSClassification]),
            description="Latest NPS classification"
        ),
        "DAYS_OVERDUE": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Days since the oldest unpaid invoice became due"
        ),
        "QUALITY_SCORE": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Raw quality sub-score (baseline 25)"
        ),
        "BEHAVIORAL_SCORE": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Raw behavioral sub-score (baseline 20)"
        ),
    },
    strict=False,  # Allow extra columns (customer name, plan, city, ...)
    coerce=True,   # Try to coerce types automatically
    description="Schema for churn risk scoring input data"
)


# Schema for scoring output data
SCORING_OUTPUT_SCHEMA = DataFrameSchema(
    {
        "CLIENT_ID": Column(str, nullable=False),
        "RISK_SCORE": Column(
            int,
            nullable=False,
            checks=[
                Check.greater_than_or_equal_to(0),
                Check.less_than_or_equal_to(SCORE_CAP),
            ]
        ),
        "RISK_BUCKET": Column(
            str,
            nullable=False,
            checks=Check.isin(BUCKET_ORDER)
        ),
    },
    strict=False,  # Allow component columns
    coerce=True,   # Bucket values arrive as object dtype from np.select
    description="Schema for churn risk scoring output data"
)
