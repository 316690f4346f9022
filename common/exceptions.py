"""Engine exception taxonomy.

Services raise these before (or instead of) writing anything. The API views
translate them into HTTP responses; nothing in the engine retries on its own.
"""


class EngineError(Exception):
    """Base class for all errors raised by the commercial engine."""

    default_message = "Operation failed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EngineError):
    """A precondition of the operation is not met (nothing was written)."""

    default_message = "Invalid input."

    def __init__(self, message=None, field=None):
        super().__init__(message)
        self.field = field

    def as_dict(self):
        if self.field:
            return {self.field: [self.message]}
        return {"detail": self.message}


class ConflictError(EngineError):
    """Accepting an offer would double-book products already accepted elsewhere."""

    default_message = "Products are already included in an accepted offer for this project."

    def __init__(self, product_ids, message=None):
        super().__init__(message)
        self.product_ids = list(product_ids)


class DocumentNotFound(EngineError):
    default_message = "Document not found."


class PersistenceError(EngineError):
    """The storage layer failed; surfaced verbatim to the caller."""

    default_message = "Storage failure."


class StaleWriteError(PersistenceError):
    """The document was changed by someone else since it was loaded."""

    default_message = "The document was modified concurrently; reload and retry."
