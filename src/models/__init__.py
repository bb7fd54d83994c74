"""Pydantic models for API payloads and stored records."""

from models.response import ApiResponse  # noqa: F401
from models.ticket import (  # noqa: F401
    Ticket,
    TicketCreate,
    TicketStatus,
    TicketType,
    TicketUpdate,
)
