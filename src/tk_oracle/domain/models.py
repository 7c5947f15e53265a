"""Domain models for tk_oracle — pure dataclasses."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceReading:
    price: int          # signed, scaled to `decimals`
    decimals: int
    observed_at: int    # unix seconds of publication
