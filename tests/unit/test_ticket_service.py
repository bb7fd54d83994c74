"""
TicketService business rules: daily uniqueness, status transitions,
partial updates and soft delete.

Run with: pytest tests/unit/test_ticket_service.py -v
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from models.ticket import TicketCreate, TicketStatus, TicketType, TicketUpdate
from services.ticket_service import (
    DUPLICATE_MESSAGE,
    REACTIVATION_MESSAGE,
    TicketService,
)
from utils.error_handling import ConflictError, NotFoundError, ValidationError


def _create(user_id="u1", ticket_type="outbound", amount=1500, **extra) -> TicketCreate:
    return TicketCreate.model_validate(
        {"userId": user_id, "ticketType": ticket_type, "amount": amount, **extra}
    )


def _update(**fields) -> TicketUpdate:
    return TicketUpdate.model_validate(fields)


class TestCreate:
    def test_new_ticket_is_active(self, service):
        ticket = service.create_ticket(_create())
        assert ticket.status is TicketStatus.ACTIVE
        assert ticket.is_active is True
        assert ticket.amount == 1500

    def test_supplied_status_never_sticks(self, service):
        ticket = service.create_ticket(_create(status="expired"))
        assert ticket.status is TicketStatus.ACTIVE

    def test_same_user_same_day_conflicts(self, service, clock):
        service.create_ticket(_create())
        clock.advance(hours=3)

        with pytest.raises(ConflictError) as exc_info:
            service.create_ticket(_create(ticket_type="return"))
        assert str(exc_info.value) == DUPLICATE_MESSAGE
        assert exc_info.value.status_code == 409

    def test_other_user_same_day_allowed(self, service):
        service.create_ticket(_create("u1"))
        service.create_ticket(_create("u2"))
        assert len(service.list_tickets()) == 2

    def test_next_day_allowed(self, service, clock):
        clock.now = datetime(2025, 3, 14, 23, 59, 59, tzinfo=timezone.utc)
        service.create_ticket(_create())
        clock.advance(seconds=2)

        service.create_ticket(_create())
        assert len(service.list_tickets()) == 2

    def test_deleted_ticket_frees_the_day(self, service):
        ticket = service.create_ticket(_create())
        service.delete_ticket(ticket.id)

        again = service.create_ticket(_create())
        assert again.id != ticket.id

    def test_race_past_precheck_still_conflicts(self, service):
        """If the lookup misses a concurrent insert, the claim still wins."""
        service.create_ticket(_create())

        with patch.object(
            service.repository, "find_active_for_user_between", return_value=None
        ):
            with pytest.raises(ConflictError):
                service.create_ticket(_create())

        assert len(service.list_tickets()) == 1

    def test_expired_ticket_still_blocks_the_day(self, service):
        ticket = service.create_ticket(_create())
        service.update_ticket(ticket.id, _update(status="expired"))

        with pytest.raises(ConflictError):
            service.create_ticket(_create())


class TestRead:
    def test_list_is_newest_first_and_hides_deleted(self, service, clock):
        first = service.create_ticket(_create("u1"))
        clock.advance(minutes=1)
        second = service.create_ticket(_create("u2"))
        clock.advance(minutes=1)
        third = service.create_ticket(_create("u3"))
        service.delete_ticket(second.id)

        assert [t.id for t in service.list_tickets()] == [third.id, first.id]

    def test_get_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.get_ticket("does-not-exist")

    def test_get_deleted_ticket(self, service):
        ticket = service.create_ticket(_create())
        service.delete_ticket(ticket.id)

        with pytest.raises(NotFoundError):
            service.get_ticket(ticket.id)


class TestUpdate:
    def test_expired_cannot_be_reactivated(self, service):
        ticket = service.create_ticket(_create())
        service.update_ticket(ticket.id, _update(status="expired"))

        with pytest.raises(ValidationError) as exc_info:
            service.update_ticket(ticket.id, _update(status="active", amount=99))
        assert str(exc_info.value) == REACTIVATION_MESSAGE

        stored = service.get_ticket(ticket.id)
        assert stored.status is TicketStatus.EXPIRED
        assert stored.amount == 1500

    @pytest.mark.parametrize(
        "start, target",
        [
            ("active", "used"),
            ("active", "expired"),
            ("used", "active"),
            ("used", "expired"),
            ("expired", "used"),
            ("expired", "expired"),
        ],
    )
    def test_other_transitions_allowed(self, service, start, target):
        ticket = service.create_ticket(_create())
        if start != "active":
            service.update_ticket(ticket.id, _update(status=start))

        updated = service.update_ticket(ticket.id, _update(status=target))
        assert updated.status is TicketStatus(target)

    def test_amount_only_leaves_other_fields(self, service):
        ticket = service.create_ticket(_create(ticket_type="return"))
        service.update_ticket(ticket.id, _update(status="used"))

        updated = service.update_ticket(ticket.id, _update(amount=1800))

        assert updated.amount == 1800
        assert updated.status is TicketStatus.USED
        assert updated.ticket_type is TicketType.RETURN

    def test_type_only_leaves_amount_and_status(self, service):
        ticket = service.create_ticket(_create())

        updated = service.update_ticket(ticket.id, _update(ticketType="return"))

        assert updated.ticket_type is TicketType.RETURN
        assert updated.amount == 1500
        assert updated.status is TicketStatus.ACTIVE

    def test_empty_update_returns_record_unchanged(self, service, clock):
        ticket = service.create_ticket(_create())
        clock.advance(minutes=5)

        updated = service.update_ticket(ticket.id, _update())

        assert updated.model_dump(exclude={"updated_at"}) == ticket.model_dump(exclude={"updated_at"})
        assert updated.updated_at == clock.now

    def test_concurrent_expiry_blocks_reactivation(self, service):
        """A copy loaded before another request expired the ticket cannot revive it."""
        ticket = service.create_ticket(_create())
        stale = service.get_ticket(ticket.id)
        service.update_ticket(ticket.id, _update(status="expired"))

        with patch.object(service.repository, "find_active_by_id", return_value=stale):
            with pytest.raises(ValidationError) as exc_info:
                service.update_ticket(ticket.id, _update(status="active"))
        assert str(exc_info.value) == REACTIVATION_MESSAGE

        assert service.get_ticket(ticket.id).status is TicketStatus.EXPIRED

    def test_concurrent_expiry_survives_amount_update(self, service):
        ticket = service.create_ticket(_create())
        stale = service.get_ticket(ticket.id)
        service.update_ticket(ticket.id, _update(status="expired"))

        with patch.object(service.repository, "find_active_by_id", return_value=stale):
            service.update_ticket(ticket.id, _update(amount=30))

        stored = service.get_ticket(ticket.id)
        assert stored.status is TicketStatus.EXPIRED
        assert stored.amount == 30

    def test_update_unknown_ticket(self, service):
        with pytest.raises(NotFoundError):
            service.update_ticket("missing", _update(status="used"))

    def test_update_deleted_ticket(self, service):
        ticket = service.create_ticket(_create())
        service.delete_ticket(ticket.id)

        with pytest.raises(NotFoundError):
            service.update_ticket(ticket.id, _update(amount=10))


class TestDelete:
    def test_delete_is_soft(self, service, repository):
        ticket = service.create_ticket(_create())

        service.delete_ticket(ticket.id)

        item = repository.table.get_item(Key={"pk": f"TICKET#{ticket.id}"})["Item"]
        assert item["isActive"] is False
        assert item["status"] == "active"

    def test_second_delete_is_not_found(self, service):
        ticket = service.create_ticket(_create())
        service.delete_ticket(ticket.id)

        with pytest.raises(NotFoundError):
            service.delete_ticket(ticket.id)

    def test_delete_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.delete_ticket("missing")


def test_service_defaults_to_repository_zone(repository):
    assert TicketService(repository).tz is repository.tz
