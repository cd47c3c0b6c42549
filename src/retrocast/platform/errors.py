"""Error taxonomy shared by the dispatcher, worker and routes.

Routes translate these into HTTP responses; the worker records them on the
job and stops.
"""


class RetroCastError(Exception):
    """Base class for all domain errors."""


class ValidationError(RetroCastError):
    """Bad or missing input, or a reference the caller does not own (400)."""


class ConflictError(RetroCastError):
    """The user already has a job in flight (409)."""


class NotFoundError(RetroCastError):
    """The requested record does not exist (404)."""


class AuthorizationError(RetroCastError):
    """The requester does not own the record (403)."""


class ExternalServiceError(RetroCastError):
    """Storage, analyzer, transcoder or queue failure."""
