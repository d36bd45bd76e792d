"""
Typed failures raised by the ledger services.

Every error carries a stable ``code`` and the HTTP status the API layer
answers with. None of them is retried automatically.
"""


class LedgerError(Exception):
    """Base exception for all ledger errors"""

    code = "LEDGER_ERROR"
    status_code = 400

    def __init__(self, message: str, *, errors: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        body = {"ok": False, "error": self.code, "detail": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(LedgerError):
    """Raised when an item draft breaks one or more rules"""

    code = "VALIDATION_ERROR"
    status_code = 422


class NotFound(LedgerError):
    """Raised when a purchase, item, account or record is missing or out of scope"""

    code = "NOT_FOUND"
    status_code = 404


class InvalidState(LedgerError):
    """Raised when the target's current state forbids the operation"""

    code = "INVALID_STATE"
    status_code = 409


class InsufficientBalance(LedgerError):
    """Raised when a debit would drive a program balance below zero"""

    code = "INSUFFICIENT_BALANCE"
    status_code = 409
