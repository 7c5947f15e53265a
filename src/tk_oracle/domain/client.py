# src/tk_oracle/domain/client.py
"""PriceOracleClient Protocol — the only price dependency of the engine.

Betting (first bet of a round) and settlement consume a fresh reading through
this Protocol; unit tests inject an AsyncMock that conforms to it.
"""

from typing import Protocol

from src.tk_oracle.domain.models import PriceReading


class PriceOracleClientProtocol(Protocol):
    async def get_price_with_freshness(
        self, market: str, max_age_seconds: int
    ) -> PriceReading:
        """Return a reading no older than max_age_seconds.

        The price is strictly positive and already scaled to the reading's
        decimals. Raises StalePriceError when no price exists, it is too old,
        or it does not survive scaling as a positive value.
        """
        ...
