"""Root handler describing the service and its endpoints."""

import json
from datetime import datetime, timezone

from utils.config import Settings


def lambda_handler(event, context):
    """Handle GET /."""
    settings = Settings.from_environment()
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "message": "Tickets service is running",
                "service": settings.service_name,
                "database": "DynamoDB",
                "table": settings.tickets_table,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "endpoints": {"tickets": "/tickets", "health": "/health"},
            }
        ),
    }
