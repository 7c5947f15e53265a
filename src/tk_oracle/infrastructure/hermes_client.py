"""HermesPriceClient — Pyth Hermes REST implementation of PriceOracleClientProtocol.

Response shape of GET /v2/updates/price/latest?ids[]=<feed>&parsed=true:
    {"parsed": [{"id": "...", "price": {"price": "6512345678901", "conf": "...",
                                        "expo": -8, "publish_time": 1700000000}}]}

Every failure mode (transport, HTTP status, payload shape, unknown market,
non-positive or stale price, rescale overflow) surfaces as StalePriceError so
callers have a single retryable condition to handle.
"""

import logging
from typing import Any

import httpx

from config.settings import settings
from src.tk_common.datetime_utils import Clock, unix_now
from src.tk_common.errors import PriceScaleOverflowError, StalePriceError
from src.tk_common.fixed_point import rescale_price
from src.tk_oracle.domain.models import PriceReading

logger = logging.getLogger(__name__)

_LATEST_PATH = "/v2/updates/price/latest"


class HermesPriceClient:
    def __init__(
        self,
        base_url: str | None = None,
        feed_ids: dict[str, str] | None = None,
        target_decimals: int | None = None,
        timeout_seconds: float | None = None,
        clock: Clock = unix_now,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.HERMES_URL).rstrip("/")
        self._feed_ids = feed_ids if feed_ids is not None else settings.ORACLE_FEED_IDS
        self._target_decimals = (
            target_decimals if target_decimals is not None else settings.PRICE_DECIMALS
        )
        self._timeout = timeout_seconds or settings.ORACLE_TIMEOUT_SECONDS
        self._clock = clock
        self._transport = transport

    async def get_price_with_freshness(
        self, market: str, max_age_seconds: int
    ) -> PriceReading:
        feed_id = self._feed_ids.get(market)
        if feed_id is None:
            raise StalePriceError(f"no price feed configured for {market}")

        payload = await self._fetch_latest(feed_id)
        price, expo, publish_time = _parse_latest(payload, feed_id)

        if price <= 0:
            raise StalePriceError(f"no price for {market}")
        age = self._clock() - publish_time
        if age > max_age_seconds:
            raise StalePriceError(
                f"{market} price is {age}s old (max {max_age_seconds}s)"
            )

        try:
            scaled = rescale_price(price, expo, self._target_decimals)
        except PriceScaleOverflowError as e:
            raise StalePriceError(e.message) from e
        if scaled <= 0:
            raise StalePriceError(
                f"{market} price {price}e{expo} rounds to zero at {self._target_decimals} decimals"
            )

        logger.debug(
            "Oracle price: market=%s price=%d expo=%d age=%ds", market, price, expo, age
        )
        return PriceReading(
            price=scaled, decimals=self._target_decimals, observed_at=publish_time
        )

    async def _fetch_latest(self, feed_id: str) -> Any:
        params = {"ids[]": feed_id, "parsed": "true"}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(_LATEST_PATH, params=params)
        except httpx.HTTPError as e:
            logger.warning("Hermes request failed: %s", e)
            raise StalePriceError(f"price source unreachable: {e}") from e

        if resp.status_code != 200:
            raise StalePriceError(f"price source returned HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise StalePriceError("price source returned invalid JSON") from e


def _parse_latest(payload: Any, feed_id: str) -> tuple[int, int, int]:
    """Extract (price, expo, publish_time) for feed_id from a Hermes payload."""
    wanted = feed_id.lower().removeprefix("0x")
    try:
        for item in payload["parsed"]:
            if str(item["id"]).lower().removeprefix("0x") != wanted:
                continue
            p = item["price"]
            return int(p["price"]), int(p["expo"]), int(p["publish_time"])
    except (KeyError, TypeError, ValueError) as e:
        raise StalePriceError("malformed price payload") from e
    raise StalePriceError(f"feed {feed_id} missing from price payload")
