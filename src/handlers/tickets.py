"""
Ticket CRUD handlers for /tickets and /tickets/{id}.

Handlers only parse the request, call TicketService and shape the response.
Business failures arrive as AppError subclasses and keep their status code;
anything else is logged in full and reported as an opaque 500.
"""

from __future__ import annotations

import base64
import json
import uuid
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from models.response import ApiResponse
from models.ticket import Ticket, TicketCreate, TicketUpdate
from repositories.dynamodb_repo import TicketRepository
from services.ticket_service import TicketService
from utils.config import Settings
from utils.error_handling import (
    AppError,
    InternalError,
    ValidationError,
    from_pydantic,
    to_response,
)
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Built on first use and reused across warm invocations.
_ticket_service: Optional[TicketService] = None


def build_ticket_service(settings: Settings) -> TicketService:
    """Wire a TicketService to the table described by settings."""
    return TicketService(TicketRepository.from_settings(settings))


def _get_ticket_service() -> TicketService:
    global _ticket_service
    if _ticket_service is None:
        _ticket_service = build_ticket_service(Settings.from_environment())
    return _ticket_service


def _response(status: int, body: ApiResponse) -> Dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": body.model_dump_json(exclude_none=True),
    }


def _parse_body(event: Dict) -> Dict[str, Any]:
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _ticket_id(event: Dict) -> str:
    ticket_id = (event.get("pathParameters") or {}).get("id")
    if not ticket_id:
        raise ValidationError("Ticket id is required")
    return ticket_id


def _list_item(ticket: Ticket) -> Dict[str, Any]:
    item = ticket.to_public()
    item["userLabel"] = f"User {ticket.user_id[-4:]}"
    return item


def _handle(operation: str, action: Callable[[str], Dict]) -> Dict:
    """Run action with a fresh correlation id and map failures to responses."""
    correlation_id = str(uuid.uuid4())
    try:
        return action(correlation_id)
    except PydanticValidationError as exc:
        error = from_pydantic(exc)
        logger.info(
            f"{operation} rejected",
            extra={"correlation_id": correlation_id, "reason": str(error)},
        )
        return to_response(error, correlation_id)
    except AppError as exc:
        logger.info(
            f"{operation} rejected",
            extra={"correlation_id": correlation_id, "reason": str(exc)},
        )
        return to_response(exc, correlation_id)
    except Exception:
        logger.exception(f"{operation} failed", extra={"correlation_id": correlation_id})
        return to_response(InternalError(), correlation_id)


def create_handler(event, context) -> Dict:
    """Handle POST /tickets."""

    def action(correlation_id: str) -> Dict:
        payload = TicketCreate.model_validate(_parse_body(event))
        ticket = _get_ticket_service().create_ticket(payload)
        return _response(
            201,
            ApiResponse(
                message="Ticket created",
                data=ticket.to_public(),
                correlation_id=correlation_id,
            ),
        )

    return _handle("Ticket creation", action)


def list_handler(event, context) -> Dict:
    """Handle GET /tickets (privileged listing of active tickets)."""

    def action(correlation_id: str) -> Dict:
        tickets = _get_ticket_service().list_tickets()
        return _response(
            200,
            ApiResponse(
                message="Tickets retrieved",
                data=[_list_item(t) for t in tickets],
                count=len(tickets),
                correlation_id=correlation_id,
            ),
        )

    return _handle("Ticket listing", action)


def get_handler(event, context) -> Dict:
    """Handle GET /tickets/{id}."""

    def action(correlation_id: str) -> Dict:
        ticket = _get_ticket_service().get_ticket(_ticket_id(event))
        return _response(
            200,
            ApiResponse(
                message="Ticket retrieved",
                data=ticket.to_public(),
                correlation_id=correlation_id,
            ),
        )

    return _handle("Ticket lookup", action)


def update_handler(event, context) -> Dict:
    """Handle PUT /tickets/{id} with a partial body."""

    def action(correlation_id: str) -> Dict:
        ticket_id = _ticket_id(event)
        payload = TicketUpdate.model_validate(_parse_body(event))
        ticket = _get_ticket_service().update_ticket(ticket_id, payload)
        return _response(
            200,
            ApiResponse(
                message="Ticket updated",
                data=ticket.to_public(),
                correlation_id=correlation_id,
            ),
        )

    return _handle("Ticket update", action)


def delete_handler(event, context) -> Dict:
    """Handle DELETE /tickets/{id} (soft delete)."""

    def action(correlation_id: str) -> Dict:
        _get_ticket_service().delete_ticket(_ticket_id(event))
        return _response(
            200,
            ApiResponse(message="Ticket deleted", correlation_id=correlation_id),
        )

    return _handle("Ticket deletion", action)
