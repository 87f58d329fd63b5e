"""USD-BRL quote fetcher with bounded retries and exponential backoff.

Talks to the AwesomeAPI "last quote" endpoint, which returns every numeric
field as a string:

    {"USDBRL": {"code": "USD", "codein": "BRL", "name": "...",
                "high": "5.3012", "low": "5.2401", "bid": "5.2788",
                "ask": "5.2795", "timestamp": "1700000000", ...}}

Only transport failures (connection errors, timeouts, non-2xx status) are
retried. A delivered body that is malformed fails immediately: asking again
returns the same body.
"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from fxalert.config import RateSourceSettings
from fxalert.exceptions import FetchError
from fxalert.logging import get_logger
from fxalert.models import ExchangeRate
from fxalert.rates.market import format_rate

logger = get_logger(__name__)

QUOTE_KEY = "USDBRL"


class RateFetcher:
    """Fetches the current USD-BRL quote.

    Args:
        settings: Endpoint URL, per-attempt timeout and retry policy.
        client: Optional externally owned ``httpx.AsyncClient``. When omitted
            a short-lived client is opened for each fetch.
    """

    def __init__(
        self,
        settings: RateSourceSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client

    async def fetch_current_rate(self) -> ExchangeRate:
        """Return the current quote or raise FetchError.

        The raised FetchError message embeds the last underlying error and
        the error itself is available as ``last_error`` / ``__cause__``.
        """
        logger.info("fetching_rate", url=self._settings.url)

        try:
            if self._client is not None:
                response = await self._get_with_retry(self._client)
            else:
                async with httpx.AsyncClient(
                    timeout=self._settings.timeout_seconds
                ) as client:
                    response = await self._get_with_retry(client)
            rate = _parse_rate(response)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("rate_fetch_failed", error=str(exc))
            raise FetchError(
                f"Unable to fetch current exchange rate: {exc}", last_error=exc
            ) from exc

        logger.info("rate_fetched", ask=format_rate(rate.ask))
        return rate

    async def _get_with_retry(self, client: httpx.AsyncClient) -> httpx.Response:
        """GET the quote endpoint, retrying transport and status failures.

        Sleeps ``backoff_base * 2**attempt`` seconds between attempts, never
        after the last one, then re-raises the last error.
        """
        max_attempts = self._settings.max_attempts
        last_error: httpx.HTTPError | None = None

        for attempt in range(max_attempts):
            try:
                response = await self._request(client)
                response.raise_for_status()
                return response
            except httpx.HTTPError as exc:
                last_error = exc
                logger.warning(
                    "rate_fetch_attempt_failed",
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    error=str(exc),
                )
                if attempt < max_attempts - 1:
                    await asyncio.sleep(self._settings.backoff_base_seconds * 2**attempt)

        if last_error is None:
            raise httpx.TransportError("no fetch attempts were made")
        raise last_error

    async def _request(self, client: httpx.AsyncClient) -> httpx.Response:
        """Single attempt, bounded by the per-attempt timeout end to end."""
        timeout = self._settings.timeout_seconds
        try:
            return await asyncio.wait_for(
                client.get(self._settings.url, timeout=timeout), timeout=timeout
            )
        except TimeoutError as exc:
            raise httpx.TimeoutException(
                f"Request timed out after {timeout:g}s"
            ) from exc


def _parse_rate(response: httpx.Response) -> ExchangeRate:
    """Turn a successful response into an ExchangeRate (ValueError if malformed)."""
    try:
        payload: Any = response.json()
    except ValueError as exc:
        raise ValueError("Invalid response format: body is not valid JSON") from exc

    quote = payload.get(QUOTE_KEY) if isinstance(payload, dict) else None
    if not isinstance(quote, dict):
        raise ValueError(f"Invalid response format: missing {QUOTE_KEY} data")

    try:
        observed_at = int(quote["timestamp"]) * 1000
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Invalid rate data: timestamp is not a valid integer") from exc

    return ExchangeRate(
        ask=_parse_decimal(quote, "ask"),
        bid=_parse_decimal(quote, "bid"),
        high=_parse_decimal(quote, "high"),
        low=_parse_decimal(quote, "low"),
        observed_at=observed_at,
        name=str(quote.get("name") or ""),
    )


def _parse_decimal(quote: dict, field: str) -> Decimal:
    raw = quote.get(field)
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        value = None
    if raw is None or value is None or not value.is_finite() or value <= 0:
        raise ValueError(f"Invalid rate data: {field} is not a valid number")
    return value
