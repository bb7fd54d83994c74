"""
Runtime settings for the tickets Lambda and local scripts.

Values come from environment variables so the same code runs in Lambda,
against DynamoDB Local, and under the test suite.
"""

from dataclasses import dataclass
from typing import Optional
import os


@dataclass
class Settings:
    """Application settings with development defaults."""

    environment: str = "dev"
    service_name: str = "transit-tickets-service"

    # DynamoDB
    tickets_table: str = "transit-tickets"
    aws_region: str = "eu-west-2"
    dynamodb_endpoint_url: Optional[str] = None  # e.g. http://localhost:8000

    # IANA zone that defines a "calendar day" for the daily ticket rule
    day_boundary_tz: str = "UTC"

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            service_name=os.environ.get("SERVICE_NAME", "transit-tickets-service"),
            tickets_table=os.environ.get("TICKETS_TABLE", "transit-tickets"),
            aws_region=(
                os.environ.get("AWS_REGION")
                or os.environ.get("AWS_DEFAULT_REGION")
                or "eu-west-2"
            ),
            dynamodb_endpoint_url=os.environ.get("DYNAMODB_ENDPOINT_URL") or None,
            day_boundary_tz=os.environ.get("DAY_BOUNDARY_TZ", "UTC"),
        )
