"""Sends a finished order to the order endpoint."""

import logging
from typing import Optional, Protocol

import httpx

from errors import SubmissionError
from order_state import FormValues

logger = logging.getLogger(__name__)


class OrderTransport(Protocol):
    async def submit_order(self, values: FormValues) -> str:
        """Send the order and return the server's confirmation message.

        Raises ``SubmissionError`` for every kind of failure.
        """
        ...


class HTTPXOrderTransport:
    """POSTs the order as JSON with an httpx ``AsyncClient``.

    No retries: a failed submission is reported back to the form and the
    customer decides whether to try again.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_s: Optional[float] = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.timeout_s = timeout_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def submit_order(self, values: FormValues) -> str:
        payload = values.to_payload()
        try:
            response = await self._client.post(
                self.endpoint, json=payload, timeout=self.timeout_s
            )
        except httpx.TimeoutException as e:
            raise SubmissionError(
                context={"url": self.endpoint, "timeout_s": self.timeout_s}, cause=e
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SubmissionError(context={"url": self.endpoint}, cause=e)

        body = _json_body(response)
        if not response.is_success:
            raise SubmissionError(
                _message_of(body),
                status_code=response.status_code,
                context={"url": self.endpoint, "body": response.text[:500]},
            )
        message = _message_of(body)
        if message is None:
            raise SubmissionError(
                status_code=response.status_code,
                context={"url": self.endpoint, "body": response.text[:500]},
            )
        logger.info(f"Order accepted by {self.endpoint}: {message}")
        return message


def _json_body(response: httpx.Response) -> Optional[dict]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _message_of(body: Optional[dict]) -> Optional[str]:
    if body is None:
        return None
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    return None
