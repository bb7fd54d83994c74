"""
Ticket lifecycle service.

Owns the business rules of the write path: one active ticket per user per
calendar day, the expired -> active ban, partial updates and soft delete.
Persistence is delegated to an explicitly injected TicketRepository.
"""

from __future__ import annotations

from typing import List, Optional
from zoneinfo import ZoneInfo

from models.ticket import Ticket, TicketCreate, TicketStatus, TicketUpdate
from repositories.dynamodb_repo import (
    DuplicateTicketError,
    ExpiredTicketError,
    TicketNotFoundError,
    TicketRepository,
)
from utils.dates import day_bounds
from utils.error_handling import ConflictError, NotFoundError, ValidationError
from utils.logging_config import get_logger

logger = get_logger(__name__)

DUPLICATE_MESSAGE = "A ticket already exists for this user today"
NOT_FOUND_MESSAGE = "Ticket not found"
REACTIVATION_MESSAGE = "An expired ticket cannot be reactivated"


class TicketService:
    """Encapsulates ticket validation and lifecycle rules."""

    def __init__(self, repository: TicketRepository, tz: Optional[ZoneInfo] = None):
        self.repository = repository
        self.tz = tz or repository.tz

    def create_ticket(self, payload: TicketCreate) -> Ticket:
        """
        Create an active ticket unless the user already has one today.

        The lookup only produces the friendly error; the repository's daily
        claim decides races, and its failure maps to the same ConflictError.
        """
        start, end = day_bounds(self.repository.clock(), self.tz)
        existing = self.repository.find_active_for_user_between(payload.user_id, start, end)
        if existing is not None:
            logger.warning(
                "Duplicate daily ticket rejected",
                extra={"user_id": payload.user_id, "existing_ticket_id": existing.id},
            )
            raise ConflictError(DUPLICATE_MESSAGE)

        try:
            ticket = self.repository.insert(
                user_id=payload.user_id,
                ticket_type=payload.ticket_type,
                amount=payload.amount,
            )
        except DuplicateTicketError:
            logger.warning(
                "Daily claim already taken", extra={"user_id": payload.user_id}
            )
            raise ConflictError(DUPLICATE_MESSAGE)

        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.id, "user_id": ticket.user_id},
        )
        return ticket

    def list_tickets(self) -> List[Ticket]:
        """All active tickets, newest first."""
        return self.repository.list_active()

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self.repository.find_active_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return ticket

    def update_ticket(self, ticket_id: str, payload: TicketUpdate) -> Ticket:
        """Apply only the supplied fields, refusing to revive expired tickets."""
        ticket = self.get_ticket(ticket_id)
        changes = payload.changes()

        if ticket.status == TicketStatus.EXPIRED and changes.get("status") == TicketStatus.ACTIVE:
            logger.warning("Reactivation of expired ticket rejected", extra={"ticket_id": ticket_id})
            raise ValidationError(REACTIVATION_MESSAGE)

        try:
            saved = self.repository.save(ticket.model_copy(update=changes), fields=changes)
        except ExpiredTicketError:
            # Expired by a concurrent update after the ticket was loaded.
            logger.warning("Reactivation of expired ticket rejected", extra={"ticket_id": ticket_id})
            raise ValidationError(REACTIVATION_MESSAGE)
        except TicketNotFoundError:
            raise NotFoundError(NOT_FOUND_MESSAGE)

        logger.info(
            "Ticket updated",
            extra={"ticket_id": ticket_id, "fields": sorted(changes)},
        )
        return saved

    def delete_ticket(self, ticket_id: str) -> None:
        """Soft delete: the record stays, flagged inactive. Not idempotent."""
        ticket = self.get_ticket(ticket_id)
        try:
            self.repository.soft_delete(ticket)
        except TicketNotFoundError:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("Ticket soft-deleted", extra={"ticket_id": ticket_id})
