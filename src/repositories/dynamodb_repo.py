"""
DynamoDB repository for ticket records.

Single-table layout (partition key ``pk``):

- ``TICKET#<id>``: the ticket document.
- ``DAILY#<userId>#<YYYY-MM-DD>``: claim item reserving a user's day while
  one of their tickets for that day is active. Tickets are written together
  with their claim in one transaction, so the claim's
  ``attribute_not_exists`` condition is the authoritative duplicate guard.

The ``userId-createdAt-index`` GSI only contains ticket items (claims carry
no ``userId``) and backs the per-user day-window lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from models.ticket import Ticket, TicketStatus, TicketType
from utils.config import Settings
from utils.dates import day_key, resolve_zone, to_iso, utc_now
from utils.logging_config import get_logger

logger = get_logger(__name__)

USER_DAY_INDEX = "userId-createdAt-index"
TICKET_PREFIX = "TICKET#"
CLAIM_PREFIX = "DAILY#"

# Ticket field -> item attribute for everything an update may change.
MUTABLE_FIELDS = {"status": "status", "ticket_type": "ticketType", "amount": "amount"}


class DuplicateTicketError(Exception):
    """The user already holds an active ticket for that calendar day."""


class TicketNotFoundError(Exception):
    """The ticket is missing or no longer active."""


class ExpiredTicketError(Exception):
    """The write would move an expired ticket back to active."""


def ticket_key(ticket_id: str) -> str:
    return f"{TICKET_PREFIX}{ticket_id}"


def claim_key(user_id: str, day: str) -> str:
    return f"{CLAIM_PREFIX}{user_id}#{day}"


def _cancellation_codes(error: ClientError) -> List[str]:
    """Per-item reasons of a cancelled transaction, in TransactItems order."""
    reasons = error.response.get("CancellationReasons") or []
    if reasons:
        return [reason.get("Code", "None") for reason in reasons]
    # Some emulators only report the reasons inside the message.
    message = error.response.get("Error", {}).get("Message", "")
    if "[" in message and "]" in message:
        inner = message[message.rindex("[") + 1 : message.rindex("]")]
        return [code.strip() for code in inner.split(",")]
    return []


def _is_cancelled(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "TransactionCanceledException"


class TicketRepository:
    """Persistence contract for tickets on top of a DynamoDB table."""

    def __init__(
        self,
        table,
        tz: ZoneInfo,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.table = table
        self.tz = tz
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TicketRepository":
        """Open a table handle as described by settings."""
        resource = boto3.resource(
            "dynamodb",
            region_name=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url,
        )
        return cls(resource.Table(settings.tickets_table), resolve_zone(settings.day_boundary_tz))

    def close(self) -> None:
        """Release the HTTP connections held by the underlying client."""
        self.table.meta.client.close()

    def __enter__(self) -> "TicketRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def _client(self):
        return self.table.meta.client

    def create_table(self) -> None:
        """Create the table and GSI (DynamoDB Local / tests; CDK owns real tables)."""
        self._client.create_table(
            TableName=self.table.name,
            KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "pk", "AttributeType": "S"},
                {"AttributeName": "userId", "AttributeType": "S"},
                {"AttributeName": "createdAt", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": USER_DAY_INDEX,
                    "KeySchema": [
                        {"AttributeName": "userId", "KeyType": "HASH"},
                        {"AttributeName": "createdAt", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        self.table.wait_until_exists()
        logger.info("Tickets table created", extra={"table": self.table.name})

    # Writes -----------------------------------------------------------------

    def insert(
        self,
        user_id: str,
        ticket_type: TicketType,
        amount: float,
        status: TicketStatus = TicketStatus.ACTIVE,
        created_at: Optional[datetime] = None,
    ) -> Ticket:
        """Store a new ticket and claim its day; raises DuplicateTicketError."""
        now = created_at or self.clock()
        ticket = Ticket(
            id=str(uuid.uuid4()),
            user_id=user_id,
            ticket_type=ticket_type,
            status=status,
            amount=amount,
            is_active=True,
            created_at=now,
            updated_at=now,
            claim_pk=claim_key(user_id, day_key(now, self.tz)),
        )
        claim = {
            "pk": ticket.claim_pk,
            "ticketId": ticket.id,
            "createdAt": to_iso(now),
        }
        try:
            self._client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": self._to_item(ticket),
                            "ConditionExpression": "attribute_not_exists(pk)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": claim,
                            "ConditionExpression": "attribute_not_exists(pk)",
                        }
                    },
                ]
            )
        except ClientError as exc:
            if _is_cancelled(exc) and "ConditionalCheckFailed" in _cancellation_codes(exc):
                raise DuplicateTicketError(user_id) from exc
            raise
        return ticket

    def save(self, ticket: Ticket, fields: Optional[Iterable[str]] = None) -> Ticket:
        """
        Write back the mutable fields of an active ticket.

        ``fields`` limits the write to the named attributes (default: all of
        status, ticket_type and amount) so a stale copy cannot overwrite
        values it did not change. Raises TicketNotFoundError when the ticket
        is no longer active and ExpiredTicketError when it would set an
        expired ticket back to active.
        """
        fields = set(MUTABLE_FIELDS if fields is None else fields)
        now = self.clock()
        names = {"#updated": "updatedAt", "#active": "isActive"}
        values: Dict[str, Any] = {":updated": to_iso(now), ":true": True}
        assignments = ["#updated = :updated"]
        item = self._to_item(ticket)
        for field, attribute in MUTABLE_FIELDS.items():
            if field not in fields:
                continue
            names[f"#{attribute}"] = attribute
            values[f":{attribute}"] = item[attribute]
            assignments.append(f"#{attribute} = :{attribute}")

        condition = "#active = :true"
        if "status" in fields and ticket.status == TicketStatus.ACTIVE:
            names["#status"] = "status"
            values[":expired"] = TicketStatus.EXPIRED.value
            condition += " AND #status <> :expired"

        try:
            resp = self.table.update_item(
                Key={"pk": ticket_key(ticket.id)},
                UpdateExpression="SET " + ", ".join(assignments),
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") != "ConditionalCheckFailedException":
                raise
            current = self.table.get_item(
                Key={"pk": ticket_key(ticket.id)}, ConsistentRead=True
            ).get("Item")
            if current and current.get("isActive") and current["status"] == TicketStatus.EXPIRED.value:
                raise ExpiredTicketError(ticket.id) from exc
            raise TicketNotFoundError(ticket.id) from exc
        return self._from_item(resp["Attributes"])

    def soft_delete(self, ticket: Ticket) -> None:
        """Mark the ticket inactive and release its daily claim atomically."""
        now = self.clock()
        claim_pk = ticket.claim_pk or claim_key(ticket.user_id, day_key(ticket.created_at, self.tz))
        try:
            self._client.transact_write_items(
                TransactItems=[
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": {"pk": ticket_key(ticket.id)},
                            "UpdateExpression": "SET #active = :false, #updated = :updated",
                            "ConditionExpression": "#active = :true",
                            "ExpressionAttributeNames": {
                                "#active": "isActive",
                                "#updated": "updatedAt",
                            },
                            "ExpressionAttributeValues": {
                                ":false": False,
                                ":true": True,
                                ":updated": to_iso(now),
                            },
                        }
                    },
                    {
                        "Delete": {
                            "TableName": self.table.name,
                            "Key": {"pk": claim_pk},
                            "ConditionExpression": "attribute_not_exists(pk) OR #owner = :id",
                            "ExpressionAttributeNames": {"#owner": "ticketId"},
                            "ExpressionAttributeValues": {":id": ticket.id},
                        }
                    },
                ]
            )
        except ClientError as exc:
            codes = _cancellation_codes(exc) if _is_cancelled(exc) else []
            if codes and codes[0] == "ConditionalCheckFailed":
                raise TicketNotFoundError(ticket.id) from exc
            raise

    def delete_all(self) -> int:
        """Physically remove every item. Only meant for reseeding."""
        removed = 0
        with self.table.batch_writer() as batch:
            for item in self._scan(ProjectionExpression="pk"):
                batch.delete_item(Key={"pk": item["pk"]})
                removed += 1
        logger.info("Tickets table cleared", extra={"table": self.table.name, "removed": removed})
        return removed

    # Reads ------------------------------------------------------------------

    def find_active_by_id(self, ticket_id: str) -> Optional[Ticket]:
        resp = self.table.get_item(Key={"pk": ticket_key(ticket_id)}, ConsistentRead=True)
        item = resp.get("Item")
        if not item or not item.get("isActive"):
            return None
        return self._from_item(item)

    def find_active_for_user_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> Optional[Ticket]:
        """First active ticket of user_id created in [start, end)."""
        # Timestamps carry microseconds, so BETWEEN up to end-1µs is [start, end).
        key_condition = Key("userId").eq(user_id) & Key("createdAt").between(
            to_iso(start), to_iso(end - timedelta(microseconds=1))
        )
        kwargs: Dict[str, Any] = {
            "IndexName": USER_DAY_INDEX,
            "KeyConditionExpression": key_condition,
            "FilterExpression": Attr("isActive").eq(True),
        }
        while True:
            resp = self.table.query(**kwargs)
            items = resp.get("Items", [])
            if items:
                return self._from_item(items[0])
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return None
            kwargs["ExclusiveStartKey"] = last_key

    def list_active(self) -> List[Ticket]:
        """All active tickets, newest first."""
        items = self._scan(
            FilterExpression=Attr("pk").begins_with(TICKET_PREFIX) & Attr("isActive").eq(True)
        )
        tickets = [self._from_item(item) for item in items]
        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return tickets

    def count_active(self) -> int:
        return len(self.list_active())

    # Helpers ----------------------------------------------------------------

    def _scan(self, **kwargs) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        while True:
            resp = self.table.scan(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    @staticmethod
    def _to_item(ticket: Ticket) -> Dict[str, Any]:
        return {
            "pk": ticket_key(ticket.id),
            "id": ticket.id,
            "userId": ticket.user_id,
            "ticketType": ticket.ticket_type.value,
            "status": ticket.status.value,
            "amount": Decimal(str(ticket.amount)),
            "isActive": ticket.is_active,
            "createdAt": to_iso(ticket.created_at),
            "updatedAt": to_iso(ticket.updated_at),
            "claimPk": ticket.claim_pk,
        }

    @staticmethod
    def _from_item(item: Dict[str, Any]) -> Ticket:
        return Ticket(
            id=item["id"],
            user_id=item["userId"],
            ticket_type=TicketType(item["ticketType"]),
            status=TicketStatus(item["status"]),
            amount=float(item["amount"]),
            is_active=bool(item["isActive"]),
            created_at=datetime.fromisoformat(item["createdAt"]),
            updated_at=datetime.fromisoformat(item["updatedAt"]),
            claim_pk=item.get("claimPk"),
        )
