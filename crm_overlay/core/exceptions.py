class CrmOverlayError(Exception):
    """Base class for all domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except CrmOverlayError`` clause can catch any domain
    error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class ConfigValidationError(CrmOverlayError):
    """Raised when a configuration write violates an invariant.

    Weight sums, weight ranges, threshold bounds and risk-rule shape are
    checked before anything is persisted, so the stored documents stay
    valid in normal operation.
    """

    def __init__(self, detail: str = "Invalid configuration"):
        super().__init__(detail)


class ConfigStoreUnavailableError(CrmOverlayError):
    """Raised when configuration or tier overrides cannot be read or written."""

    def __init__(self, detail: str = "Configuration store unavailable"):
        super().__init__(detail)


class RecordNotFoundError(CrmOverlayError):
    """Raised when the CRM has no record with the requested id."""

    def __init__(self, detail: str = "Record not found"):
        super().__init__(detail)


class CrmUnavailableError(CrmOverlayError):
    """Raised when the CRM collaborator cannot be reached or is not configured."""

    def __init__(
        self, detail: str = "Could not score this record. Please try again."
    ):
        super().__init__(detail)


class BatchTooLargeError(CrmOverlayError):
    """Raised when a batch evaluation asks for more records than allowed."""

    def __init__(self, detail: str = "Too many records in batch"):
        super().__init__(detail)
