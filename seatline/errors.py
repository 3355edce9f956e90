"""Exception hierarchy shared by the RSVP engine and the notification pipeline.

Boundary layers translate these into user-facing responses:
``DomainRuleError`` -> 409, ``NotFoundError`` -> 404, ``ValidationError`` -> 422.
"""


class SeatlineError(Exception):
    """Base class for all application errors."""


class DomainRuleError(SeatlineError):
    """A request that is well-formed but violates a domain rule."""


class NotFoundError(SeatlineError):
    """A related entity required to complete an operation does not exist."""

    entity: str = "entity"

    def __init__(self, entity_id=None) -> None:
        self.entity_id = entity_id
        message = f"{self.entity} not found"
        if entity_id is not None:
            message = f"{self.entity} {entity_id} not found"
        super().__init__(message)


class ValidationError(SeatlineError):
    """Malformed input rejected before it reaches the engine."""


class PermissionDeniedError(SeatlineError):
    """The actor is not allowed to perform the requested action."""
