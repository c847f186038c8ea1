"""
Typed exception hierarchy for the delivery-challan kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the lifecycle engine and the storage clients branch on the kind
of failure: a missing "Returned By" is shown next to a form field, an
unknown DC id refreshes the tracker, a transport failure keeps the local
state untouched and asks the operator to retry.  Matching on message text
for that is fragile, so:

  1. Every error has a typed exception class (catch by type, not message).
  2. Every exception has a ``code`` attribute (machine-readable, log-safe).
  3. Exceptions carry structured data, not just a message string.

    try:
        service.mark_returned(dc_id, returned_by="")
    except ValidationError as e:
        form.show_error(e.field, str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ChallanError (base)
    |
    +-- ConfigurationError
    |
    +-- NotFoundError
    |   +-- DcNotFoundError
    |   +-- ProcedureNotFoundError
    |
    +-- ValidationError
    +-- InvalidTransitionError
    +-- TransportError
    +-- DeletionNotAuthorizedError
    +-- NotAuthenticatedError

    ParseWarning (Warning subclass, recovered locally)

===============================================================================
PROPAGATION
===============================================================================

    ParseWarning              -> logged, the value or entry replaced or dropped
    ValidationError           -> surfaced to the operator, no state change
    InvalidTransitionError    -> surfaced to the operator, no state change
    DcNotFoundError           -> surfaced, caller refreshes its view
    TransportError            -> surfaced, never retried automatically
    ConfigurationError        -> surfaced before any network call
"""

from __future__ import annotations


class ChallanError(Exception):
    """
    Base exception for all challan errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "CHALLAN_ERROR"


class ConfigurationError(ChallanError):
    """A required setting (e.g. the storage endpoint URL) is missing."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, detail: str | None = None):
        self.setting = setting
        message = f"Configuration missing or invalid: {setting}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# Lookup failures


class NotFoundError(ChallanError):
    """Base exception for lookups that found nothing."""

    code: str = "NOT_FOUND"


class DcNotFoundError(NotFoundError):
    """No saved DC exists with the given id."""

    code: str = "DC_NOT_FOUND"

    def __init__(self, dc_id: str):
        self.dc_id = dc_id
        super().__init__(f"DC not found with id: {dc_id}")


class ProcedureNotFoundError(NotFoundError):
    """No catalog procedure exists with the given name."""

    code: str = "PROCEDURE_NOT_FOUND"

    def __init__(self, procedure_name: str):
        self.procedure_name = procedure_name
        super().__init__(f"Procedure not found: {procedure_name}")


# Lifecycle failures


class ValidationError(ChallanError):
    """A field required by the requested operation is missing or invalid."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, action: str | None = None):
        self.field = field
        self.action = action
        super().__init__(message)


class InvalidTransitionError(ChallanError):
    """The action is not allowed from the record's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, dc_id: str, action: str, from_status: str):
        self.dc_id = dc_id
        self.action = action
        self.from_status = from_status
        super().__init__(
            f"Action {action} is not allowed for DC {dc_id} "
            f"in status '{from_status}'"
        )


class DeletionNotAuthorizedError(ChallanError):
    """Deleting a non-pending DC requires the delete password."""

    code: str = "DELETION_NOT_AUTHORIZED"

    def __init__(self, dc_id: str, status: str):
        self.dc_id = dc_id
        self.status = status
        super().__init__(
            f"Deleting DC {dc_id} in status '{status}' requires authorization"
        )


class NotAuthenticatedError(ChallanError):
    """The operation needs a logged-in session."""

    code: str = "NOT_AUTHENTICATED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Login required for: {operation}")


# Remote storage / feed failures


class TransportError(ChallanError):
    """Network failure, non-2xx status, malformed JSON or ``success: false``."""

    code: str = "TRANSPORT_ERROR"

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
    ):
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")


# Recovered conditions


class ParseWarning(UserWarning):
    """A stored value could not be decoded and was replaced or dropped."""

    code: str = "PARSE_WARNING"

    def __init__(self, field: str, dc_id: str | None, detail: str):
        self.field = field
        self.dc_id = dc_id
        self.detail = detail
        super().__init__(
            f"Could not parse field '{field}' of DC {dc_id}: {detail}"
        )
