"""Integer arithmetic for stakes, fees and oracle prices.

All amounts are int (smallest credit unit). All prices are signed ints scaled
to a fixed number of decimals. No float, no Decimal.
"""

from src.tk_common.errors import PriceScaleOverflowError

BPS_DENOMINATOR = 10_000
INT64_MAX = (1 << 63) - 1
INT64_MIN = -(1 << 63)


def floor_fee(total: int, fee_bps: int) -> int:
    """Platform fee rounded down: floor(total * fee_bps / 10000).

    Payouts are computed from (total - fee), so rounding the fee down never
    takes more than the configured rate from winners.
    """
    if total == 0 or fee_bps == 0:
        return 0
    return (total * fee_bps) // BPS_DENOMINATOR


def rescale_price(price: int, expo: int, target_decimals: int) -> int:
    """Convert price x 10^expo into an integer with target_decimals decimals.

    Pyth-style feeds publish (price, expo) with expo usually negative, e.g.
    (6512345678901, -8) for BTC/USD. Result must fit a signed 64-bit integer.
    Down-scaling truncates toward zero.
    """
    shift = expo + target_decimals
    if shift >= 0:
        scaled = price * (10 ** shift)
    else:
        divisor = 10 ** (-shift)
        scaled = abs(price) // divisor
        if price < 0:
            scaled = -scaled
    if not (INT64_MIN <= scaled <= INT64_MAX):
        raise PriceScaleOverflowError(price, expo, target_decimals)
    return scaled


def units_to_display(units: int, decimals: int = 8) -> str:
    """Render an integer amount with its decimal point: 150000000 -> '1.50000000'."""
    sign = "-" if units < 0 else ""
    whole, frac = divmod(abs(units), 10 ** decimals)
    if decimals == 0:
        return f"{sign}{whole:,}"
    return f"{sign}{whole:,}.{frac:0{decimals}d}"
