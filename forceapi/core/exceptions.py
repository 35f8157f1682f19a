# forceapi/core/exceptions.py
from pydantic import BaseModel
from typing import Any, Iterable, List, Optional

# Error payload models shared by the client layer and the HTTP service

class RecordFailure(BaseModel):
    """One failing record as reported by Salesforce: the record (or reference) id plus one error entry."""
    identifier: Optional[str] = None
    status_code: Optional[str] = None
    message: Optional[str] = None

class ErrorResponse(BaseModel):
    success: bool = False
    detail: str
    error_type: str
    failures: Optional[List[RecordFailure]] = None


class ForceAPIError(Exception):
    """Base class for every error raised by the SObject access layer."""
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(detail=self.message, error_type=type(self).__name__)


class SObjectValidationError(ForceAPIError):
    """Raised before any network call when the input records cannot be sent."""
    status_code = 400


class SObjectTypeNotFoundError(SObjectValidationError):
    status_code = 404

    def __init__(self, sobject_type: str, message: Optional[str] = None):
        super().__init__(message or f"SObject type not found: {sobject_type}")
        self.sobject_type = sobject_type


class TransportError(ForceAPIError):
    """
    Network failure or non-2xx response from Salesforce.
    `detail` holds the decoded Salesforce error body when one was returned.
    """
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message, status_code)
        self.detail = detail


class BatchOperationError(ForceAPIError):
    """
    Per-record failures reported inside otherwise successful batch responses.

    The message summarizes every failing record; `failures` keeps the
    structured (identifier, status code, message) entries.
    """
    status_code = 400

    def __init__(self, operation: str, failures: Iterable[RecordFailure]):
        self.operation = operation
        self.failures: List[RecordFailure] = list(failures)
        super().__init__(self._summarize())

    @property
    def identifiers(self) -> List[Optional[str]]:
        seen: List[Optional[str]] = []
        for failure in self.failures:
            if failure.identifier not in seen:
                seen.append(failure.identifier)
        return seen

    def _summarize(self) -> str:
        if self.operation == "insert":
            ref_ids = ", ".join(str(i) for i in self.identifiers)
            return f"error creating objects, refIDs: {ref_ids}"

        verb = {"update": "updating", "delete": "deleting"}.get(self.operation, self.operation)
        parts = []
        for identifier in self.identifiers:
            codes = [f.status_code for f in self.failures if f.identifier == identifier and f.status_code]
            parts.append(f"{identifier}: {', '.join(codes)}" if codes else f"{identifier}")
        return f"error {verb} objects: {'; '.join(parts)}"

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(detail=self.message, error_type=type(self).__name__, failures=self.failures)
