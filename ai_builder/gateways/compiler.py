"""Compiler Gateway: client for the remote Starknet compilation service."""

import logging
from typing import Any, Optional

import httpx

from ..errors import CompilerUnavailableError
from ..models import BuildResult


logger = logging.getLogger(__name__)


class CompilerGateway:
    """
    Posts contract source to the compiler service.

    Logical failures (non-2xx responses, ``success: false``, malformed bodies)
    come back as a failed ``BuildResult``. Only transport failures raise.
    """

    def __init__(self, client: httpx.AsyncClient, url: str, api_key: str):
        self._client = client
        self.url = url
        self.api_key = api_key

    async def compile(self, code: str) -> BuildResult:
        """
        Compile source code remotely.

        Args:
            code: Contract source

        Returns:
            BuildResult carrying the submitted source in ``code``

        Raises:
            CompilerUnavailableError: If the service cannot be reached or times out
        """
        try:
            response = await self._client.post(
                self.url,
                json={"code": code},
                headers={"X-API-KEY": self.api_key},
            )
        except httpx.TransportError as e:
            logger.error(f"Compiler service unreachable at {self.url}: {e}")
            raise CompilerUnavailableError(f"Compiler service unreachable: {e}") from e

        payload = self._decode(response)

        if response.is_error:
            message = self._message(payload) or f"Compiler service returned HTTP {response.status_code}"
            logger.warning(f"Compilation request failed with HTTP {response.status_code}: {message}")
            return BuildResult(success=False, message=message, code=code)

        if not isinstance(payload, dict):
            logger.warning("Compiler service returned a non-object body")
            return BuildResult(success=False, message="Malformed response from compiler service", code=code)

        result = BuildResult(
            success=payload.get("success") is True,
            message=self._message(payload) or "",
            artifact=payload.get("artifact"),
            code=code,
        )
        if not result.success:
            logger.info(f"Compilation failed: {result.message}")
        return result

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _message(payload: Any) -> Optional[str]:
        if isinstance(payload, dict) and payload.get("message") is not None:
            return str(payload["message"])
        return None
