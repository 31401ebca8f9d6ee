from __future__ import annotations


class VaneError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VaneError):
    status_code = 400


class NotFoundError(VaneError):
    status_code = 404

    def __init__(self, message: str = "not found"):
        super().__init__(message)


class TrackingError(VaneError):
    status_code = 400


class CsvImportError(VaneError):
    """The CSV upload could not be parsed, or its transaction was rejected."""

    status_code = 400

    def __init__(self, message: str = "CSV is not valid", status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class IdentityError(VaneError):
    status_code = 502
