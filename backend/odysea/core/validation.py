"""
Request validation helpers.

Pydantic does the field checking; this module turns its error list into the
``{"path": [...], "message": "..."}`` issues returned to API clients.
"""

from typing import Any, Dict, Iterable, List, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

# FastAPI prefixes request errors with where the value came from
REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class PayloadValidationError(Exception):
    """A request payload failed validation"""

    def __init__(self, message: str, issues: List[Dict[str, Any]]):
        super().__init__(message)
        self.message = message
        self.issues = issues


def format_issues(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    issues = []
    for error in errors:
        loc: Sequence[Any] = error.get("loc", ())
        if loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        message = str(error.get("msg", "Invalid value"))
        # "Value error, ..." is pydantic's wrapper around our own ValueErrors
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append({
            "path": [part for part in loc],
            "message": message,
            "code": error.get("type", "invalid"),
        })
    return issues


def validate_payload(schema: Type[ModelT], data: Any, message: str = "Validation failed") -> ModelT:
    """Validate ``data`` against ``schema`` or raise PayloadValidationError"""
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise PayloadValidationError(message, format_issues(exc.errors())) from exc


def validate_each(schema: Type[ModelT], items: Sequence[Any], label: str) -> List[ModelT]:
    """Validate a list item by item, reporting the first failing index"""
    return [
        validate_payload(schema, item, f"Validation failed for {label} {index}")
        for index, item in enumerate(items)
    ]
