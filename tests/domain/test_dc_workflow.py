"""
DC workflow definition.

Verifies:
- Every status is reachable and each (action, from_state) pair is unique.
- The transition table matches the lifecycle diagram.
- Workflow construction rejects inconsistent definitions.
"""

import pytest

from challan_kernel.domain.challan import DcAction, DcStatus
from challan_kernel.domain.dc_workflow import DC_WORKFLOW, GUARD_MESSAGES
from challan_kernel.domain.workflow import Transition, Workflow, actions_from, find_transition


class TestTransitionTable:

    @pytest.mark.parametrize("action, from_state, to_state", [
        (DcAction.MARK_RETURNED, DcStatus.PENDING, DcStatus.RETURNED),
        (DcAction.LINK_INVOICE, DcStatus.RETURNED, DcStatus.COMPLETED),
        (DcAction.MOVE_CASH_TO_COMPLETED, DcStatus.CASH, DcStatus.COMPLETED),
        (DcAction.MOVE_TO_CASH, DcStatus.RETURNED, DcStatus.CASH),
        (DcAction.MOVE_BACK_TO_PENDING, DcStatus.RETURNED, DcStatus.PENDING),
        (DcAction.MOVE_BACK_TO_RETURNED, DcStatus.COMPLETED, DcStatus.RETURNED),
    ])
    def test_allowed(self, action, from_state, to_state):
        t = find_transition(DC_WORKFLOW, action.value, from_state.value)
        assert t is not None
        assert t.to_state == to_state.value

    @pytest.mark.parametrize("action, from_state", [
        (DcAction.MARK_RETURNED, DcStatus.RETURNED),
        (DcAction.LINK_INVOICE, DcStatus.PENDING),
        (DcAction.MOVE_TO_CASH, DcStatus.PENDING),
        (DcAction.MOVE_BACK_TO_RETURNED, DcStatus.CASH),
        (DcAction.CREATED, DcStatus.PENDING),
    ])
    def test_not_allowed(self, action, from_state):
        assert find_transition(DC_WORKFLOW, action.value, from_state.value) is None

    def test_actions_from_returned(self):
        assert actions_from(DC_WORKFLOW, DcStatus.RETURNED.value) == (
            DcAction.LINK_INVOICE.value,
            DcAction.MOVE_TO_CASH.value,
            DcAction.MOVE_BACK_TO_PENDING.value,
        )

    def test_reverse_moves_clear_fields(self):
        back = find_transition(DC_WORKFLOW, "MOVE_BACK_TO_PENDING", "returned")
        assert back.clears == ("returned_by", "returned_at", "returned_remarks")
        cash_done = find_transition(DC_WORKFLOW, "MOVE_CASH_TO_COMPLETED", "cash")
        assert cash_done.clears == ("cash_at", "cash_amount", "cash_remarks")

    def test_every_guard_has_a_message(self):
        guards = {t.guard.name for t in DC_WORKFLOW.transitions if t.guard}
        assert guards == set(GUARD_MESSAGES)


class TestWorkflowValidation:

    def test_unknown_initial_state(self):
        with pytest.raises(ValueError, match="initial state"):
            Workflow("w", "", initial_state="x", states=("a",), transitions=())

    def test_unknown_transition_state(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow("w", "", "a", ("a",), (Transition("a", "b", "GO"),))

    def test_duplicate_transition(self):
        with pytest.raises(ValueError, match="duplicate"):
            Workflow(
                "w", "", "a", ("a", "b"),
                (Transition("a", "b", "GO"), Transition("a", "a", "GO")),
            )
