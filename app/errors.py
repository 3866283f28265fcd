"""
Record store errors.

Every failure is local to one operation and leaves no partial write behind;
the HTTP layer maps each class to a status code in app/main.py.
"""


class RecordStoreError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class AuthorizationDenied(RecordStoreError):
    """A row policy evaluated to false for the caller."""
    status_code = 403


class ConstraintViolation(RecordStoreError):
    """Unique, foreign-key or check constraint rejected the write."""
    status_code = 409


class NotFound(RecordStoreError):
    """The row does not exist or is not visible to the caller."""
    status_code = 404
