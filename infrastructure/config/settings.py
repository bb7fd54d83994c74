"""
Environment-specific configuration settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Deployment settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"  # Default AWS region

    # Tickets table
    table_name_prefix: str = "transit-tickets"
    point_in_time_recovery: bool = False

    # Calendar day used by the one-ticket-per-day rule
    day_boundary_tz: str = "UTC"

    # Lambda Configuration
    lambda_memory_mb: int = 256
    lambda_timeout_seconds: int = 10
    log_level: str = "INFO"

    @property
    def table_name(self) -> str:
        return f"{self.table_name_prefix}-{self.environment}"

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        region = os.environ.get("AWS_REGION", "eu-west-2")
        day_tz = os.environ.get("DAY_BOUNDARY_TZ", "UTC")
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

        # Production overrides
        if env == "prod":
            return cls(
                environment="prod",
                aws_region=region,
                point_in_time_recovery=True,
                day_boundary_tz=day_tz,
                log_level=log_level,
                lambda_memory_mb=512,
                lambda_timeout_seconds=15,
            )

        return cls(
            environment=env,
            aws_region=region,
            day_boundary_tz=day_tz,
            log_level=log_level,
        )
