from typing import Any, Dict, List, Optional, Sequence


class OrderError(Exception):
    """Base class for expected order failures rendered as JSON responses."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, error: Optional[str] = None) -> None:
        if error is not None:
            self.error = error
        super().__init__(self.error)

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error}


class BadRequest(OrderError):
    status_code = 400
    error = "Bad request"


class OrderValidationError(OrderError):
    status_code = 400
    error = "Validation failed"

    def __init__(self, details: Sequence[str]) -> None:
        self.details: List[str] = list(details)
        super().__init__()

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.details}


class OrderNotFound(OrderError):
    status_code = 404
    error = "Order not found"

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__()


class InvalidStatus(OrderError):
    status_code = 400
    error = "Invalid status"

    def __init__(self, requested: Any, valid_statuses: Sequence[str]) -> None:
        self.requested = requested
        self.valid_statuses: List[str] = list(valid_statuses)
        super().__init__()

    def payload(self) -> Dict[str, Any]:
        return {"error": self.error, "validStatuses": self.valid_statuses}


class PersistenceError(OrderError):
    """The store failed or was unreachable. ``detail`` holds the raw store text."""

    status_code = 500
    error = "Database operation failed"

    def __init__(self, detail: str, error: Optional[str] = None) -> None:
        self.detail = detail
        self.expose_detail = False
        super().__init__(error)

    def payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.expose_detail:
            body["details"] = self.detail
        return body
