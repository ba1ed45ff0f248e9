"""DeliveryClient: POSTs serialized cards to the webhook."""

import asyncio
import time
from typing import Protocol

import httpx

from ..errors import DeliveryError, DeliveryErrorKind
from ..logging_config import get_logger
from ..models import DeliveryResult

logger = get_logger(__name__)

BODY_EXCERPT_LIMIT = 200


class IDeliveryClient(Protocol):
    """Sends one payload to one URL."""

    async def send(
        self,
        payload: bytes,
        url: str,
        timeout: float,
        cancel: asyncio.Event | None = None,
    ) -> DeliveryResult:
        """POST the payload. Never raises for delivery failures."""
        ...

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        ...


class DeliveryClient:
    """httpx-backed webhook client. One POST per call, no retries."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def send(
        self,
        payload: bytes,
        url: str,
        timeout: float,
        cancel: asyncio.Event | None = None,
    ) -> DeliveryResult:
        """POST the payload and translate the outcome into a DeliveryResult."""
        started = time.monotonic()

        if cancel is not None and cancel.is_set():
            return _failed(DeliveryErrorKind.CANCELLED, "delivery cancelled", started)

        request = asyncio.create_task(self._post(payload, url, timeout))
        waiters: set[asyncio.Future] = {request}
        cancel_waiter = None
        if cancel is not None:
            cancel_waiter = asyncio.create_task(cancel.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request.cancel()
            raise
        finally:
            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()

        if request not in done:
            await _abandon(request)
            if cancel_waiter is not None and cancel_waiter in done:
                return _failed(DeliveryErrorKind.CANCELLED, "delivery cancelled", started)
            return _failed(
                DeliveryErrorKind.TIMEOUT, f"no response within {timeout:.1f}s", started
            )

        try:
            response = request.result()
        except httpx.TimeoutException as e:
            return _failed(DeliveryErrorKind.TIMEOUT, f"request timed out: {e}", started, e)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            return _failed(
                DeliveryErrorKind.TRANSPORT,
                f"{type(e).__name__}: {e}",
                started,
                e,
            )

        elapsed = time.monotonic() - started
        if response.is_success:
            logger.debug("Delivered card to webhook: %s in %.3fs", response.status_code, elapsed)
            return DeliveryResult(status_code=response.status_code, elapsed=elapsed)

        excerpt = response.text[:BODY_EXCERPT_LIMIT]
        error = DeliveryError(
            DeliveryErrorKind.STATUS,
            f"webhook returned HTTP {response.status_code}",
            status_code=response.status_code,
            body_excerpt=excerpt,
        )
        return DeliveryResult(status_code=response.status_code, error=error, elapsed=elapsed)

    async def _post(self, payload: bytes, url: str, timeout: float) -> httpx.Response:
        return await self._client.post(
            url,
            content=payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        """Close the httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()


async def _abandon(request: asyncio.Task) -> None:
    """Cancel an in-flight request and wait for it to unwind."""
    request.cancel()
    try:
        await request
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.debug("Abandoned request finished with %s", e)


def _failed(
    kind: DeliveryErrorKind,
    message: str,
    started: float,
    cause: Exception | None = None,
) -> DeliveryResult:
    error = DeliveryError(kind, message)
    error.__cause__ = cause
    return DeliveryResult(error=error, elapsed=time.monotonic() - started)
