# src/tk_oracle/application/service.py
"""Time-bounded oracle access shared by betting and settlement."""
import asyncio
import logging

from config.settings import settings
from src.tk_common.errors import StalePriceError
from src.tk_oracle.domain.client import PriceOracleClientProtocol
from src.tk_oracle.domain.models import PriceReading
from src.tk_oracle.infrastructure.hermes_client import HermesPriceClient

logger = logging.getLogger(__name__)

_client: PriceOracleClientProtocol | None = None


def get_oracle_client() -> PriceOracleClientProtocol:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = HermesPriceClient()
    return _client


async def fetch_fresh_price(
    oracle: PriceOracleClientProtocol,
    market: str,
    max_age_seconds: int | None = None,
    timeout_seconds: float | None = None,
) -> PriceReading:
    """Read a fresh price or raise StalePriceError; never blocks past the timeout."""
    max_age = max_age_seconds if max_age_seconds is not None else settings.ORACLE_MAX_AGE_SECONDS
    timeout = timeout_seconds if timeout_seconds is not None else settings.ORACLE_TIMEOUT_SECONDS
    try:
        reading = await asyncio.wait_for(
            oracle.get_price_with_freshness(market, max_age), timeout=timeout
        )
    except TimeoutError as e:
        logger.warning("Oracle timed out after %.1fs for market=%s", timeout, market)
        raise StalePriceError(f"price source timed out after {timeout}s") from e
    if reading.price <= 0:
        logger.warning("Oracle returned non-positive price %d for market=%s", reading.price, market)
        raise StalePriceError(f"no usable price for {market}")
    return reading
