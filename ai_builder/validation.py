"""Schema validation for structured LLM output."""

import logging
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import SchemaValidationError
from .models import AuditReport, Vulnerability


logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def validate_payload(schema: Type[T], payload: Any) -> T:
    """
    Validate a decoded JSON payload against a pydantic schema.

    Args:
        schema: Model class describing the expected shape
        payload: Decoded JSON value

    Returns:
        Validated model instance

    Raises:
        SchemaValidationError: If the payload does not conform
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(x) for x in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        logger.warning(f"{schema.__name__} payload rejected: {errors}")
        raise SchemaValidationError(
            f"Payload does not match {schema.__name__} schema",
            details=errors,
        ) from e


def validate_audit_payload(payload: Any) -> List[Vulnerability]:
    """Validate an auditor response and return its findings."""
    return validate_payload(AuditReport, payload).audits
