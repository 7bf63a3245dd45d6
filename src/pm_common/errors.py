"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity / wallet
  3xxx: Market
  4xxx: Local validation (rejected before any network call)
  6xxx: Ledger read/write
  9xxx: System

"Position not found" is deliberately absent: the read gateway returns None
for it instead of raising.
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


# --- 1xxx: Identity ---

class NotConnectedError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Wallet not connected", 401)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class ActionNotAllowedError(AppError):
    def __init__(self, action: str, market_id: str) -> None:
        super().__init__(3002, f"Cannot {action} on market {market_id} in its current state", 409)


# --- 4xxx: Validation ---

class ValidationFailureError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class InvalidStakeAmountError(ValidationFailureError):
    def __init__(self, raw: object, reason: str) -> None:
        super().__init__(4001, f"Invalid stake amount {raw!r}: {reason}")


class InvalidIdentifierError(ValidationFailureError):
    def __init__(self, field: str) -> None:
        super().__init__(4002, f"Identifier must be a non-empty string: {field}")


class InvalidCloseTimeError(ValidationFailureError):
    def __init__(self, detail: str) -> None:
        super().__init__(4003, f"Invalid close time: {detail}")


class InvalidDescriptionError(ValidationFailureError):
    def __init__(self) -> None:
        super().__init__(4004, "Market description must not be empty")


# --- 6xxx: Ledger ---

class ReadFailureError(AppError):
    """Transport or deserialization failure on a view call."""

    def __init__(self, detail: str, code: int = 6001, source: str = "Ledger") -> None:
        super().__init__(code, f"{source} read failed: {detail}", 502)


class LedgerAbortError(ReadFailureError):
    """The view function itself aborted (e.g. the requested resource does not exist)."""

    def __init__(self, function: str, detail: str) -> None:
        self.function = function
        super().__init__(f"{function} aborted: {detail}", code=6002)


class WalletUnavailableError(ReadFailureError):
    """The wallet bridge could not say whether a wallet is connected."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail, code=6006, source="Wallet bridge")


class WriteRejectedError(AppError):
    def __init__(self, detail: str, code: int = 6003) -> None:
        super().__init__(code, f"Transaction rejected: {detail}", 422)


class SigningRejectedError(WriteRejectedError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"signing failed: {detail}", code=6004)


class FinalityUnknownError(AppError):
    """Submitted, but finality was not observed before the deadline.

    Rendered with HTTP 202: the ledger may still commit the transaction, so
    callers must not resubmit blindly.
    """

    def __init__(self, tx_hash: str | None) -> None:
        self.tx_hash = tx_hash
        super().__init__(
            6005,
            f"Transaction {tx_hash or '<unknown>'} submitted but not confirmed yet",
            202,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
