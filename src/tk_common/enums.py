"""Global enums — must match DB CHECK constraints exactly.

Outcome values are stored as SMALLINT (0-3); everything else as VARCHAR.
"""

from enum import Enum, IntEnum


class Outcome(IntEnum):
    NONE = 0
    UP = 1
    DOWN = 2
    FLAT = 3


class Side(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class RoundStatus(str, Enum):
    """Derived from (now, timestamps, resolved); never stored."""
    UPCOMING = "UPCOMING"
    BETTING = "BETTING"
    LOCKED = "LOCKED"
    RESOLVING = "RESOLVING"
    RESOLVED = "RESOLVED"


class UserRole(str, Enum):
    PARTICIPANT = "PARTICIPANT"
    OPERATOR = "OPERATOR"


class LedgerEntryType(str, Enum):
    # Deposit/Withdraw
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Round stake (user side)
    BET_STAKE = "BET_STAKE"
    # Claim (user side)
    CLAIM_PAYOUT = "CLAIM_PAYOUT"
    # Fee (sink side)
    FEE_REVENUE = "FEE_REVENUE"


class RoundEventType(str, Enum):
    ROUND_CREATED = "RoundCreated"
    BET_PLACED = "BetPlaced"
    ROUND_RESOLVED = "RoundResolved"
    CLAIMED = "Claimed"
    FEE_CHARGED = "FeeCharged"
