"""
Workflow types (``challan_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for document state machines: ``Guard``,
``Transition`` and ``Workflow``, plus lookup helpers used by the
lifecycle service.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/`` or outer packages.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* At most one transition exists per ``(action, from_state)`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Descriptive only; the lifecycle service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``requires`` names record fields that must be present after the
    caller's updates are applied.  ``stamps`` names fields set to the
    transition time unless the caller supplies them.  ``clears`` names
    fields reset to None (their previous values are snapshotted into the
    history entry).
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    requires: tuple[str, ...] = ()
    stamps: tuple[str, ...] = ()
    clears: tuple[str, ...] = ()


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state "
                f"'{self.initial_state}' is not a declared state"
            )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self.states:
                    raise ValueError(
                        f"Workflow {self.name}: transition {t.action} "
                        f"references unknown state '{state}'"
                    )
            key = (t.action, t.from_state)
            if key in seen:
                raise ValueError(
                    f"Workflow {self.name}: duplicate transition "
                    f"{t.action} from '{t.from_state}'"
                )
            seen.add(key)


def find_transition(
    workflow: Workflow, action: str, from_state: str
) -> Transition | None:
    """Return the transition for ``action`` out of ``from_state``, if any."""
    for t in workflow.transitions:
        if t.action == action and t.from_state == from_state:
            return t
    return None


def actions_from(workflow: Workflow, from_state: str) -> tuple[str, ...]:
    """Actions available from ``from_state``, in declaration order."""
    return tuple(t.action for t in workflow.transitions if t.from_state == from_state)
