# landplots/errors.py
# Error kinds surfaced by the plot core. Every failure path raises one of these.


class LandPlotError(Exception):
    kind = "LandPlotError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class MissingFieldError(LandPlotError):
    kind = "MissingField"

    def __init__(self, field: str, message: str = ""):
        super().__init__(message or f"'{field}' is required")
        self.field = field


class DecodeError(LandPlotError):
    kind = "DecodeError"


class ValidationError(LandPlotError):
    kind = "ValidationError"
    reason = "Invalid"


class NotClosedError(ValidationError):
    reason = "NotClosed"


class TooFewVerticesError(ValidationError):
    reason = "TooFewVertices"


class NonFiniteCoordinateError(ValidationError):
    reason = "NonFiniteCoordinate"


class SelfIntersectingError(ValidationError):
    reason = "SelfIntersecting"


class NotFoundError(LandPlotError):
    kind = "NotFound"

    def __init__(self, plot_id, message: str = ""):
        super().__init__(message or f"Land plot {plot_id} not found")
        self.plot_id = plot_id


class DuplicateKeyError(LandPlotError):
    kind = "DuplicateKey"


class StorageError(LandPlotError):
    """Transaction or connection failure. The core never retries these."""

    kind = "StorageError"
    transient = True


def error_kind(exc: LandPlotError) -> str:
    """Most specific kind name, e.g. 'TooFewVertices' for validation failures."""
    if isinstance(exc, ValidationError):
        return exc.reason
    return exc.kind
