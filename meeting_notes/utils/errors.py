"""
Relay error type rendered as a JSON error body
"""
from typing import Any, Dict, Optional


class RelayError(Exception):
    """Raised by relay endpoints; the app handler turns it into a JSON response."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: Optional[str] = None,
        hint: Optional[str] = None,
        **extra: Any,
    ):
        super().__init__(error if details is None else f"{error}: {details}")
        self.status_code = status_code
        self.error = error
        self.details = details
        self.hint = hint
        self.extra = extra

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        if self.hint is not None:
            body["hint"] = self.hint
        body.update(self.extra)
        return body
