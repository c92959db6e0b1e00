"""
LLM Gateway: single-shot completions through litellm.

Decoding parameters are fixed (low temperature, constant seed) so the same
prompt reproduces the same contract as closely as the provider allows.
Nothing is retried; one failed call fails the calling stage.
"""

import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import litellm
from pydantic import BaseModel

from ..agents import ChatPrompt
from ..core.config import settings
from ..errors import LLMGatewayError, StructuredOutputError
from ..llm_providers import ProviderConfig, get_provider_config
from ..validation import validate_payload


logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

CompletionFn = Callable[..., Awaitable[Any]]

OUTPUT_FUNCTION_NAME = "output_formatter"
OUTPUT_FUNCTION_DESCRIPTION = "Should always be used to properly format output"

_FENCED_BLOCK = re.compile(r"```[^\n`]*\n(.*?)```", re.DOTALL)


def extract_code_block(text: str) -> str:
    """
    Return the code inside the first fenced block, or the trimmed text.

    Args:
        text: Raw model output, possibly wrapped in ```lang ... ```

    Returns:
        Inner code when a fence is present, otherwise the input trimmed
    """
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()

    stripped = text.strip()
    # Truncated output, or a fence opened and closed on one line
    if stripped.startswith("```"):
        if "\n" not in stripped:
            return stripped.strip("`").strip()
        _, _, rest = stripped.partition("\n")
        return rest.strip()
    return stripped


class LLMGateway:
    """Sends templated prompts to the configured completion provider."""

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        temperature: float = settings.LLM_TEMPERATURE,
        structured_temperature: float = settings.LLM_STRUCTURED_TEMPERATURE,
        seed: int = settings.LLM_SEED,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
        completion: Optional[CompletionFn] = None,
    ):
        self.config = config or get_provider_config()
        self.temperature = temperature
        self.structured_temperature = structured_temperature
        self.seed = seed
        self.timeout = timeout
        self._completion = completion or litellm.acompletion

    async def generate(self, prompt: ChatPrompt) -> str:
        """
        Run one completion and return the raw text.

        Raises:
            LLMGatewayError: If the provider call fails
            StructuredOutputError: If the response carries no text
        """
        response = await self._complete(prompt, temperature=self.temperature)
        content = getattr(self._first_message(response), "content", None)
        if not isinstance(content, str):
            raise StructuredOutputError("Model response contained no text content")
        return content

    async def generate_code(self, prompt: ChatPrompt) -> str:
        """Run a completion and strip any code fence around the answer."""
        return extract_code_block(await self.generate(prompt))

    async def generate_structured(self, prompt: ChatPrompt, schema: Type[T]) -> T:
        """
        Force the model to answer through a function call shaped by ``schema``.

        Args:
            prompt: The prompt to send
            schema: Pydantic model whose JSON schema the arguments must follow

        Returns:
            Validated schema instance

        Raises:
            LLMGatewayError: If the provider call fails
            StructuredOutputError: If the function call is missing or not decodable
            SchemaValidationError: If the decoded arguments do not match the schema
        """
        response = await self._complete(
            prompt,
            temperature=self.structured_temperature,
            tools=[{
                "type": "function",
                "function": {
                    "name": OUTPUT_FUNCTION_NAME,
                    "description": OUTPUT_FUNCTION_DESCRIPTION,
                    "parameters": schema.model_json_schema(),
                },
            }],
            tool_choice={"type": "function", "function": {"name": OUTPUT_FUNCTION_NAME}},
        )

        tool_calls = getattr(self._first_message(response), "tool_calls", None)
        if not tool_calls:
            raise StructuredOutputError(f"Model did not call {OUTPUT_FUNCTION_NAME}")

        arguments = getattr(tool_calls[0].function, "arguments", None)
        try:
            payload = json.loads(arguments) if isinstance(arguments, str) else arguments
        except json.JSONDecodeError as e:
            raise StructuredOutputError(f"{OUTPUT_FUNCTION_NAME} arguments are not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise StructuredOutputError(f"{OUTPUT_FUNCTION_NAME} arguments must be a JSON object")

        return validate_payload(schema, payload)

    async def _complete(self, prompt: ChatPrompt, **params: Any) -> Any:
        request: Dict[str, Any] = {
            **self.config.completion_kwargs(),
            "messages": prompt.to_messages(),
            "seed": self.seed,
            "timeout": self.timeout,
            **params,
        }
        logger.debug(f"LLM request: model={request['model']}, temperature={request.get('temperature')}")

        try:
            return await self._completion(**request)
        except Exception as e:
            logger.error(f"LLM call to {request['model']} failed: {e}")
            raise LLMGatewayError(f"LLM provider call failed: {e}") from e

    @staticmethod
    def _first_message(response: Any) -> Any:
        choices = getattr(response, "choices", None)
        if not choices:
            raise StructuredOutputError("Model response contained no choices")
        return choices[0].message
