"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User/Operator
  2xxx: Custody (credit ledger, value sinks)
  3xxx: Round registry
  4xxx: Betting
  5xxx: Settlement/Claim
  9xxx: System

Every failure is local to one operation and leaves no partial state behind,
so every error is retryable once its condition clears.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class OperatorRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Operator authority required", 403)


# --- 2xxx: Custody ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} units, available {available} units",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


class SinkTransferFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Sink transfer failed: {detail}", 502)


# --- 3xxx: Round registry ---

class RoundNotFoundError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(3001, f"Round not found: {round_id}", 404)


class InvalidTimingError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid round timing: {detail}", 422)


class InvalidMarketError(AppError):
    def __init__(self) -> None:
        super().__init__(3003, "Market identifier must be non-empty and non-zero", 422)


class InvalidFeeError(AppError):
    def __init__(self, fee_bps: int, max_fee_bps: int) -> None:
        super().__init__(
            3004, f"Fee too high: {fee_bps} bps (allowed 0-{max_fee_bps})", 422
        )


# --- 4xxx: Betting ---

class NotStartedError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(4001, f"Round not started: {round_id}", 422)


class BettingClosedError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(4002, f"Betting closed for round {round_id}", 422)


class InvalidAmountError(AppError):
    """Zero or over-ceiling bet amount."""


class ZeroAmountError(InvalidAmountError):
    def __init__(self) -> None:
        super().__init__(4003, "Bet amount must be greater than zero", 422)


class AmountTooLargeError(InvalidAmountError):
    def __init__(self, amount: int, ceiling: int) -> None:
        super().__init__(4004, f"Bet amount {amount} exceeds ceiling {ceiling}", 422)


class ReferencePriceUnavailableError(AppError):
    def __init__(self, market: str) -> None:
        super().__init__(
            4005, f"Reference price unavailable for {market}; refresh price and retry", 503
        )


# --- 5xxx: Settlement/Claim ---

class TooEarlyError(AppError):
    def __init__(self, round_id: int, resolve_ts: int) -> None:
        super().__init__(
            5001, f"Round {round_id} not yet resolvable (resolve_ts={resolve_ts})", 422
        )


class AlreadyResolvedError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(5002, f"Round already resolved: {round_id}", 409)


class StalePriceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5003, f"Price stale or unavailable: {detail}", 503)


class NotResolvedError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(5004, f"Round not resolved yet: {round_id}", 422)


class NothingToClaimError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(5005, f"No stake in round {round_id}", 422)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class PriceScaleOverflowError(AppError):
    def __init__(self, price: int, expo: int, target_decimals: int) -> None:
        super().__init__(
            9003,
            f"Price rescale overflow: {price} x 10^{expo} -> {target_decimals} decimals",
            500,
        )
