"""Webhook delivery over HTTP using httpx."""

from __future__ import annotations

import errno
import os

import httpx

from queuecord.delivery.types import Delivered, Failed, FailureCategory, SendOutcome
from queuecord.infrastructure.config import SEND_TIMEOUT
from queuecord.infrastructure.logger import logger


# Connect failures whose OS text (e.g. asyncio's "Connect call failed") hides the cause.
_NETWORK_ERRNOS = frozenset({errno.ECONNREFUSED, errno.ENETUNREACH, errno.EHOSTUNREACH})


def build_payload(content: str) -> dict[str, str]:
    return {"content": content}


def _os_reasons(err: BaseException) -> list[str]:
    """OS-level error texts chained under an httpx error, outermost first.

    httpx wraps the socket error (sometimes inside an ExceptionGroup of
    per-address attempts) and its own message drops the OS text.
    """
    reasons: list[str] = []
    seen: set[int] = set()
    pending: list[BaseException] = [err]
    while pending:
        exc = pending.pop(0)
        if id(exc) in seen:
            continue
        seen.add(id(exc))

        if isinstance(exc, OSError):
            if exc.errno in _NETWORK_ERRNOS:
                reason = os.strerror(exc.errno)
            else:
                reason = exc.strerror or str(exc)
            if reason and reason not in reasons:
                reasons.append(reason)

        if isinstance(exc, BaseExceptionGroup):
            pending.extend(exc.exceptions)
        for linked in (exc.__cause__, exc.__context__):
            if linked is not None:
                pending.append(linked)
    return reasons


class WebhookSender:
    """Posts one message to a webhook per call. No retries, no state.

    A client passed in by the caller is left open by aclose().
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout_s: float = SEND_TIMEOUT) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout_s = timeout_s

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # retries=0: one network attempt per send() call
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_s),
                transport=httpx.AsyncHTTPTransport(retries=0),
            )
        return self._client

    async def send(self, endpoint: str, content: str) -> SendOutcome:
        try:
            response = await self._get_client().post(endpoint, json=build_payload(content))
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as err:
            return Failed(FailureCategory.INVALID_ENDPOINT, f"Invalid webhook URL: {err}")
        except httpx.TimeoutException as err:
            return Failed(FailureCategory.TIMEOUT, f"Timed out sending message: {str(err) or type(err).__name__}")
        except httpx.ConnectError as err:
            detail = f"Unable to connect to webhook: {err}"
            reasons = [reason for reason in _os_reasons(err) if reason not in detail]
            if reasons:
                detail += f" ({'; '.join(reasons)})"
            return Failed(FailureCategory.CONNECTION, detail)
        except httpx.HTTPError as err:
            return Failed(FailureCategory.TRANSPORT, f"Failed to send message: {str(err) or type(err).__name__}")

        if response.is_success:
            logger.debug("Webhook accepted message", status=response.status_code, chars=len(content))
            return Delivered(status_code=response.status_code)

        body = response.text[:500]
        logger.debug("Webhook rejected message", status=response.status_code, body=body)
        return Failed(
            FailureCategory.HTTP_STATUS,
            f"Failed to send message: {response.status_code} {response.reason_phrase}".rstrip(),
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
