"""Exception hierarchy for the contract builder.

Inside a pipeline run these are caught at the stage boundary and become the
stage's error state. Direct API calls let them propagate to the exception
handlers in ``middleware.error_handler``, which map ``status_code`` onto the
HTTP response.
"""

from typing import Any, Optional


class BuilderError(Exception):
    """Base class for all contract builder errors."""

    status_code = 500
    title = "Builder Error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class LLMGatewayError(BuilderError):
    """The language-model provider call failed."""

    status_code = 502
    title = "LLM Provider Error"


class StructuredOutputError(LLMGatewayError):
    """The model answered, but not in the expected structured shape."""

    title = "Malformed LLM Output"


class SchemaValidationError(BuilderError):
    """A structured payload did not conform to its schema."""

    status_code = 502
    title = "Schema Validation Error"


class CompilerUnavailableError(BuilderError):
    """The compiler service could not be reached."""

    status_code = 503
    title = "Compiler Unavailable"


class EmptyGenerationError(BuilderError):
    """Generation returned no code."""

    status_code = 502
    title = "Empty Generation"


class DocumentNotFoundError(BuilderError):
    status_code = 404
    title = "Document Not Found"


class RunNotFoundError(BuilderError):
    status_code = 404
    title = "Run Not Found"


class PipelineBusyError(BuilderError):
    """A run was triggered while the previous one is still in flight."""

    status_code = 409
    title = "Pipeline Busy"
