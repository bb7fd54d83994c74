#!/usr/bin/env python3
"""
Load sample tickets into the tickets table.

Each sample is dated one day further back than the previous one so the
daily-ticket rule never rejects them. Runs against whatever TICKETS_TABLE /
DYNAMODB_ENDPOINT_URL point to; with the package installed (or
PYTHONPATH=src) run::

    python seed_tickets.py [--keep] [--create-table]
"""

import argparse
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from botocore.exceptions import ClientError

from models.ticket import TicketStatus, TicketType
from repositories.dynamodb_repo import DuplicateTicketError, TicketRepository
from utils.config import Settings
from utils.logging_config import get_logger

logger = get_logger("seed_tickets")

SAMPLE_TICKETS: List[Dict] = [
    {
        "user_id": "a1b2c3d4-e5f6-4789-a123-456789abcdef",
        "ticket_type": TicketType.OUTBOUND,
        "amount": 1500,
        "status": TicketStatus.ACTIVE,
    },
    {
        "user_id": "b2c3d4e5-f6a7-4890-b234-567890bcdef1",
        "ticket_type": TicketType.RETURN,
        "amount": 1500,
        "status": TicketStatus.USED,
    },
    {
        "user_id": "c3d4e5f6-a789-4901-c345-678901cdef12",
        "ticket_type": TicketType.OUTBOUND,
        "amount": 2000,
        "status": TicketStatus.ACTIVE,
    },
    {
        "user_id": "d4e5f6a7-8901-4012-d456-789012def123",
        "ticket_type": TicketType.RETURN,
        "amount": 1800,
        "status": TicketStatus.EXPIRED,
    },
    {
        "user_id": "e5f6a789-0123-4123-e567-890123ef1234",
        "ticket_type": TicketType.OUTBOUND,
        "amount": 1500,
        "status": TicketStatus.ACTIVE,
    },
]


def dated_samples(today: Optional[datetime] = None) -> List[Dict]:
    """Attach a created_at to every sample, one day apart going back from today."""
    today = today or datetime.now(timezone.utc)
    return [
        {**sample, "created_at": today - timedelta(days=index)}
        for index, sample in enumerate(SAMPLE_TICKETS)
    ]


def seed(repository: TicketRepository, keep_existing: bool = False) -> int:
    """Insert the samples; returns how many were created."""
    if not keep_existing:
        repository.delete_all()

    created = 0
    for sample in dated_samples(repository.clock()):
        try:
            ticket = repository.insert(**sample)
        except (DuplicateTicketError, ClientError) as exc:
            logger.warning(
                "Could not create sample ticket",
                extra={"user_suffix": sample["user_id"][-4:], "error": str(exc)},
            )
            continue
        created += 1
        logger.info(
            "Sample ticket created",
            extra={"ticket_id": ticket.id, "ticket_type": ticket.ticket_type.value},
        )
    return created


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--keep", action="store_true", help="do not clear the table first")
    parser.add_argument(
        "--create-table", action="store_true", help="create the table (DynamoDB Local)"
    )
    args = parser.parse_args(argv)

    settings = Settings.from_environment()
    try:
        with TicketRepository.from_settings(settings) as repository:
            if args.create_table:
                repository.create_table()
            created = seed(repository, keep_existing=args.keep)
            total = repository.count_active()
    except ClientError:
        logger.exception("Seeding failed", extra={"table": settings.tickets_table})
        return 1

    logger.info("Seeding finished", extra={"tickets_created": created, "active_total": total})
    return 0


if __name__ == "__main__":
    sys.exit(main())
