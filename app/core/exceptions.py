"""
Gateway error taxonomy

Every failure the gateway reports carries a stable `code` plus a
human-readable message. Controllers turn these into the
`{ok: false, error, code}` envelope.
"""
from typing import Optional


class GatewayError(Exception):
    """Base class for errors surfaced to API callers"""

    code: str = "GatewayError"
    default_message: str = "Gateway error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConnectivityError(GatewayError):
    """The backend could not be reached or rejected the credentials"""

    code = "ConnectivityError"
    default_message = "Could not connect to the database server."


class NoActiveConnection(GatewayError):
    """An execute/catalog call arrived while the session is disconnected"""

    code = "NoActiveConnection"
    default_message = "No open connection."


class ExecutionError(GatewayError):
    """The backend rejected the SQL text"""

    code = "ExecutionError"
    default_message = "The database server rejected the statement."


class MalformedConnectionString(GatewayError):
    """A connection string could not be parsed"""

    code = "MalformedConnectionString"
    default_message = "Malformed connection string."


class RequestValidationFailed(GatewayError):
    """A request body failed validation before reaching the executor"""

    code = "RequestValidationFailed"
    default_message = "Invalid request body."

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message)


class MissingField(RequestValidationFailed):
    code = "MissingField"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(field, message or f"Missing required field '{field}'.")


class WrongType(RequestValidationFailed):
    code = "WrongType"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(field, message or f"Field '{field}' has the wrong type.")


def validation_failure(errors: list) -> RequestValidationFailed:
    """
    Turn FastAPI/pydantic validation errors into a typed failure.

    Only the first error is reported; a missing field wins over a type error.
    """
    if not errors:
        return WrongType("body", "Invalid request body.")

    ordered = sorted(errors, key=lambda err: 0 if err.get("type") == "missing" else 1)
    err = ordered[0]
    loc = [str(part) for part in err.get("loc", ()) if part != "body"]
    if err.get("type") == "json_invalid":
        return WrongType("body", "Request body is not valid JSON.")

    field = ".".join(loc) or "body"
    if err.get("type") == "missing":
        return MissingField(field)
    return WrongType(field, f"Field '{field}': {err.get('msg', 'wrong type')}.")
