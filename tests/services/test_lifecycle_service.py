"""
DcLifecycleService tests.

Verifies:
- Creation defaults and validation.
- Every transition appends exactly one history entry and persists once.
- Rejected transitions leave storage untouched.
- Reverse moves clear fields and snapshot them into history.
- Protected deletion.
"""

from decimal import Decimal

import pytest

from challan_kernel.domain.challan import DcAction, DcDraft, DcStatus
from challan_kernel.domain.session import SessionContext
from challan_kernel.exceptions import (
    DcNotFoundError,
    DeletionNotAuthorizedError,
    InvalidTransitionError,
    NotAuthenticatedError,
    ValidationError,
)
from challan_kernel.services.dc_store import DcStore
from challan_kernel.services.lifecycle_service import DcLifecycleService


@pytest.fixture
def created(lifecycle, draft):
    return lifecycle.create(draft)


@pytest.fixture
def returned(lifecycle, created, deterministic_clock):
    deterministic_clock.advance_days(3)
    return lifecycle.mark_returned(created.id, "Asha")


class TestCreate:

    def test_store_satisfies_protocol(self, store):
        assert isinstance(store, DcStore)

    def test_created_dc_is_pending_with_one_entry(self, created, store, deterministic_clock):
        assert created.status == DcStatus.PENDING
        assert created.saved_at == deterministic_clock.now()
        assert [(h.action, h.to_status) for h in created.history] == [
            (DcAction.CREATED, DcStatus.PENDING),
        ]
        assert store.records[created.id] == created

    def test_ids_are_unique(self, lifecycle, draft):
        assert lifecycle.create(draft).id != lifecycle.create(draft).id

    @pytest.mark.parametrize("field, message", [
        ("hospital_name", "Hospital name is required"),
        ("dc_no", "DC number is required"),
    ])
    def test_header_fields_required(self, lifecycle, store, field, message):
        values = {"hospital_name": "City", "dc_no": "DC-1", field: "  "}
        with pytest.raises(ValidationError, match=message):
            lifecycle.create(DcDraft(**values))
        assert store.writes == 0

    def test_logged_out_session_cannot_create(self, store, deterministic_clock, draft):
        service = DcLifecycleService(store, deterministic_clock, session=SessionContext())
        with pytest.raises(NotAuthenticatedError):
            service.create(draft)
        assert store.records == {}

    def test_creation_is_logged_with_context(self, lifecycle, draft, captured_logs):
        dc = lifecycle.create(draft)
        record = next(r for r in captured_logs() if r["message"] == "dc_created")
        assert record["dc_id"] == dc.id
        assert record["actor"] == "asha"
        assert record["dc_no"] == "DC-101"


class TestForwardTransitions:

    def test_mark_returned(self, lifecycle, created, store, deterministic_clock):
        deterministic_clock.advance_days(1)
        dc = lifecycle.mark_returned(created.id, "Asha")

        assert dc.status == DcStatus.RETURNED
        assert dc.returned_by == "Asha"
        assert dc.returned_at == deterministic_clock.now()
        assert len(dc.history) == 2
        last = dc.history[1]
        assert (last.action, last.from_status, last.to_status) == (
            DcAction.MARK_RETURNED, DcStatus.PENDING, DcStatus.RETURNED,
        )
        assert store.records[dc.id] == dc

    def test_blank_remarks_are_stored_as_none(self, returned):
        assert returned.returned_remarks is None

    def test_returned_by_required(self, lifecycle, created, store):
        writes = store.writes
        with pytest.raises(ValidationError, match="Returned By is required") as exc_info:
            lifecycle.mark_returned(created.id, "   ")
        assert exc_info.value.action == "MARK_RETURNED"
        assert store.writes == writes
        assert store.records[created.id].status == DcStatus.PENDING

    def test_link_invoice(self, lifecycle, returned):
        dc = lifecycle.link_invoice(returned.id, " INV-104 ", "billed")
        assert dc.status == DcStatus.COMPLETED
        assert dc.invoice_ref == "INV-104"
        assert dc.invoice_remarks == "billed"
        assert dc.history[-1].action == DcAction.LINK_INVOICE

    def test_invoice_required(self, lifecycle, returned):
        with pytest.raises(ValidationError, match="Invoice number is required"):
            lifecycle.link_invoice(returned.id, "")

    def test_move_to_cash(self, lifecycle, returned, deterministic_clock):
        dc = lifecycle.move_to_cash(returned.id, "1500.50", "paid at counter")
        assert dc.status == DcStatus.CASH
        assert dc.cash_amount == Decimal("1500.50")
        assert dc.cash_at == deterministic_clock.now()
        assert dc.cash_remarks == "paid at counter"

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "", "NaN", None])
    def test_cash_amount_must_be_positive(self, lifecycle, returned, amount):
        with pytest.raises(ValidationError, match="Valid cash amount is required"):
            lifecycle.move_to_cash(returned.id, amount)


class TestReverseTransitions:

    def test_back_to_pending_clears_return(self, lifecycle, returned):
        dc = lifecycle.move_back_to_pending(returned.id)
        assert dc.status == DcStatus.PENDING
        assert (dc.returned_by, dc.returned_at, dc.returned_remarks) == (None, None, None)
        assert [h.action for h in dc.history] == [
            DcAction.CREATED, DcAction.MARK_RETURNED, DcAction.MOVE_BACK_TO_PENDING,
        ]
        assert dc.history[-1].meta["cleared"]["returnedBy"] == "Asha"

    def test_cash_to_completed_snapshots_cash_fields(self, lifecycle, returned, deterministic_clock):
        cash = lifecycle.move_to_cash(returned.id, "1500.50", "paid at counter")
        deterministic_clock.advance_days(1)
        dc = lifecycle.link_invoice(cash.id, "INV-9")

        assert dc.status == DcStatus.COMPLETED
        assert (dc.cash_at, dc.cash_amount, dc.cash_remarks) == (None, None, None)
        last = dc.history[-1]
        assert last.action == DcAction.MOVE_CASH_TO_COMPLETED
        assert last.from_status == DcStatus.CASH
        assert last.meta["cleared"] == {
            "cashAt": cash.cash_at.isoformat(),
            "cashAmount": "1500.50",
            "cashRemarks": "paid at counter",
        }

    def test_back_to_returned_clears_invoice(self, lifecycle, returned):
        done = lifecycle.link_invoice(returned.id, "INV-1", "x")
        dc = lifecycle.move_back_to_returned(done.id)
        assert dc.status == DcStatus.RETURNED
        assert (dc.invoice_ref, dc.invoice_remarks) == (None, None)
        assert dc.returned_by == "Asha"
        assert dc.history[-1].meta["cleared"] == {"invoiceRef": "INV-1", "invoiceRemarks": "x"}


class TestRejectedTransitions:

    def test_invalid_transition(self, lifecycle, created, store, captured_logs):
        writes = store.writes
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.transition(created.id, "LINK_INVOICE", {"invoice_ref": "INV-1"})
        assert exc_info.value.from_status == "pending"
        assert store.writes == writes
        assert any(r["message"] == "dc_transition_rejected" for r in captured_logs())

    def test_cash_from_pending(self, lifecycle, created):
        with pytest.raises(InvalidTransitionError):
            lifecycle.move_to_cash(created.id, "10")

    def test_unknown_dc(self, lifecycle):
        with pytest.raises(DcNotFoundError) as exc_info:
            lifecycle.mark_returned("missing", "Asha")
        assert str(exc_info.value) == "DC not found with id: missing"

    def test_logged_out_session_cannot_transition(self, lifecycle, created, session):
        session.logout()
        with pytest.raises(NotAuthenticatedError):
            lifecycle.mark_returned(created.id, "Asha")


class TestQueries:

    def test_list_all_newest_first(self, lifecycle, draft, deterministic_clock):
        first = lifecycle.create(draft)
        deterministic_clock.advance_days(1)
        second = lifecycle.create(draft)
        assert [dc.id for dc in lifecycle.list_all()] == [second.id, first.id]

    def test_available_actions(self, lifecycle, created, returned):
        assert lifecycle.available_actions(created) == (DcAction.MARK_RETURNED,)
        assert lifecycle.available_actions(returned) == (
            DcAction.LINK_INVOICE, DcAction.MOVE_TO_CASH, DcAction.MOVE_BACK_TO_PENDING,
        )

    def test_transition_is_logged(self, lifecycle, created, captured_logs):
        lifecycle.mark_returned(created.id, "Asha")
        record = next(r for r in captured_logs() if r["message"] == "dc_transitioned")
        assert record["dc_id"] == created.id
        assert record["action"] == "MARK_RETURNED"
        assert record["history_length"] == 2


class TestDelete:

    def test_delete_removes_record(self, lifecycle, created):
        lifecycle.delete(created.id)
        assert lifecycle.list_all() == []

    def test_delete_unknown(self, lifecycle):
        with pytest.raises(DcNotFoundError):
            lifecycle.delete("missing")

    def test_pending_needs_no_password(self, lifecycle, created):
        lifecycle.delete_protected(created.id)
        assert lifecycle.list_all() == []

    def test_returned_needs_password(self, lifecycle, returned, captured_logs):
        with pytest.raises(DeletionNotAuthorizedError):
            lifecycle.delete_protected(returned.id, "wrong")
        assert any(r["message"] == "dc_delete_refused" for r in captured_logs())
        lifecycle.delete_protected(returned.id, "srrortho")
        assert lifecycle.list_all() == []

    def test_without_configured_password_nothing_past_pending_is_deleted(
        self, store, deterministic_clock, draft
    ):
        service = DcLifecycleService(store, deterministic_clock)
        dc = service.mark_returned(service.create(draft).id, "Asha")
        with pytest.raises(DeletionNotAuthorizedError):
            service.delete_protected(dc.id, "srrortho")
