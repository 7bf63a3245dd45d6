"""Global enums shared by the ledger, market and API layers."""

from enum import Enum


class Side(str, Enum):
    """Outcome side. The ledger encodes it as a direction flag: A=true, B=false."""

    A = "A"  # bullish / "Yes"
    B = "B"  # bearish / "No"

    @property
    def direction(self) -> bool:
        return self is Side.A

    @classmethod
    def from_direction(cls, direction: bool) -> "Side":
        return cls.A if direction else cls.B


class MarketStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED_UNSETTLED = "CLOSED_UNSETTLED"
    SETTLED_A = "SETTLED_A"
    SETTLED_B = "SETTLED_B"


class LoadState(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    READY = "READY"
    FAILED = "FAILED"


class RefreshTrigger(str, Enum):
    MOUNT = "MOUNT"
    IDENTITY_CHANGED = "IDENTITY_CHANGED"
    WRITE_COMPLETED = "WRITE_COMPLETED"
    USER = "USER"


class WriteOutcome(str, Enum):
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"
    UNKNOWN = "UNKNOWN"


class MarketFunction(str, Enum):
    """Function names exposed by the market module."""

    # Entry functions
    CLAIM_WINNINGS = "claim_winnings"
    CREATE_MARKET = "create_market"
    ENTER_POSITION = "enter_position"
    SETTLE_MARKET = "settle_market"

    # View functions
    GET_MARKET_INFO = "get_market_info"
    GET_PLAYER_POSITION_INFO = "get_player_position_info"
    GET_A_POOL_BALANCE_AMOUNT = "get_a_pool_balance_amount"
    GET_B_POOL_BALANCE_AMOUNT = "get_b_pool_balance_amount"


class NotificationLevel(str, Enum):
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"
