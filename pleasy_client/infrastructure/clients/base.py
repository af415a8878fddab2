"""Shared HTTP plumbing for banking backend clients"""

import logging
from typing import Any, Optional

import httpx

from pleasy_client.config import settings
from pleasy_client.domain.exceptions import BankAPIError
from pleasy_client.infrastructure.observability.metrics import backend_failures_counter

logger = logging.getLogger(__name__)


class BackendClient:
    """Base client for the banking backend REST API"""

    service = "backend"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.bank_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.token = token
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send one request and return the decoded JSON body.

        Raises:
            BankAPIError: On timeout, network failure, HTTP errors, or a non-JSON body
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=self._headers(),
                    **kwargs,
                )
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()

            except httpx.TimeoutException as e:
                self._record_failure(method, path, None)
                raise BankAPIError(f"{self.service} API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                self._record_failure(method, path, status)
                detail = _error_message(e.response)
                message = f"{self.service} API error: {status}"
                if detail:
                    message = f"{message} ({detail})"
                raise BankAPIError(message, status_code=status) from e
            except httpx.RequestError as e:
                self._record_failure(method, path, None)
                raise BankAPIError(f"{self.service} API unreachable: {e}") from e
            except ValueError as e:
                self._record_failure(method, path, None)
                raise BankAPIError(f"Invalid JSON from {self.service} API: {e}") from e

    def _record_failure(self, method: str, path: str, status: Optional[int]) -> None:
        backend_failures_counter.labels(service=self.service).inc()
        logger.warning(
            "Backend call failed",
            extra={"service": self.service, "method": method, "path": path, "status": status},
        )


def _error_message(response: httpx.Response) -> Optional[str]:
    """Business error message from the backend's error body, if any"""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        return str(message) if message else None
    return None


def page_content(data: Any) -> list:
    """Records from either a bare list or a {content: [...]} page"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("content", "transactions", "accounts", "res_list"):
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []
