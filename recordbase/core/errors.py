# File: /recordbase/core/errors.py | Version: 1.1 | Title: Error taxonomy + standardized error envelope
from __future__ import annotations

from typing import Any, Dict, List, Optional

_CODE_MAP = {
    400: "BAD_REQUEST",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_SERVER_ERROR",
}


def _err(code: int, message: str) -> Dict[str, Any]:
    return {"error": {"code": _CODE_MAP.get(code, "ERROR"), "message": message}}


class RecordbaseError(Exception):
    """Base class for every error the engine raises on purpose."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return _CODE_MAP.get(self.status_code, "ERROR")

    def to_dict(self) -> Dict[str, Any]:
        return _err(self.status_code, self.message)


class NotFoundError(RecordbaseError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        message = f"{entity} not found"
        if entity_id:
            message = f"{entity} '{entity_id}' not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(RecordbaseError):
    """
    One or more field-level failures. `errors` keeps every failure so a
    client can highlight all offending properties at once.
    """

    status_code = 422

    def __init__(self, errors: List[Any], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> Dict[str, Any]:
        body = _err(self.status_code, self.message)
        body["error"]["errors"] = [
            e.model_dump(mode="json") if hasattr(e, "model_dump") else e
            for e in self.errors
        ]
        return body


class UnsupportedOperatorError(RecordbaseError):
    status_code = 400

    def __init__(self, operator: str, property_type: str, property_id: Optional[str] = None):
        where = f" (property '{property_id}')" if property_id else ""
        super().__init__(
            f"Operator '{operator}' is not supported for {property_type} properties{where}"
        )
        self.operator = operator
        self.property_type = property_type
        self.property_id = property_id


class CoercionError(RecordbaseError):
    status_code = 400

    def __init__(self, property_type: str, value: Any, reason: Optional[str] = None):
        message = reason or f"Value {value!r} is not a valid {property_type}"
        super().__init__(message)
        self.property_type = property_type
        self.value = value


class ForbiddenError(RecordbaseError):
    status_code = 403


class ConflictError(RecordbaseError):
    status_code = 409


class OperationNotAllowedError(RecordbaseError):
    status_code = 400
