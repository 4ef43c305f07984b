"""Errors raised by the store, the assignment engine and the template loader.

Each carries the HTTP status the API answers with.
"""


class LayoutError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidRequestError(LayoutError):
    """Input is well formed but breaks a domain rule (desk not assignable, ...)."""

    status_code = 400


class NotFoundError(LayoutError):
    status_code = 404

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(LayoutError):
    """A concurrent write won; the whole operation was rolled back and may be retried."""

    status_code = 409
