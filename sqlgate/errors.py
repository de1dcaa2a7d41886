from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base error for failures the API turns into an ``{"error": ...}`` response."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def client_message(self) -> str:
        return self.message


class StoreUnavailable(GatewayError):
    status_code = 503
    public_message = "Database unavailable"


class TableNotFound(GatewayError):
    status_code = 404

    def __init__(self, table_name: str):
        super().__init__(f"table '{table_name}' not found")
        self.table_name = table_name


# Upstream errors keep their detail for logs only; clients get the generic text.
class UpstreamError(GatewayError):
    status_code = 502
    public_message = "Language model service error"

    def client_message(self) -> str:
        return self.public_message


class UpstreamUnavailable(UpstreamError):
    public_message = "Language model service unavailable"


class UpstreamTimeout(UpstreamUnavailable):
    status_code = 504
    public_message = "Language model service timed out"


class UpstreamRejected(UpstreamError):
    public_message = "Language model service rejected the request"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UpstreamMalformed(UpstreamError):
    public_message = "Language model returned an unexpected response"


class QueryRejected(GatewayError):
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"Query rejected: {reason}")
        self.reason = reason


class QueryExecutionFailed(GatewayError):
    status_code = 500

    def __init__(self, store_message: str):
        super().__init__(f"Query execution failed: {store_message}")
        self.store_message = store_message
