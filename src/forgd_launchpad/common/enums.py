from enum import Enum


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def from_str(cls, side_str):
        if side_str.upper() == OrderSide.BUY.name:
            return OrderSide.BUY
        elif side_str.upper() == OrderSide.SELL.name:
            return OrderSide.SELL
        else:
            raise NotImplementedError(f"No order side enum for {side_str}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class LaunchPhase(Enum):
    """Lifecycle of a launch instance. Only GRADUATED is terminal."""
    UNCONFIGURED = "UNCONFIGURED"
    OPEN = "OPEN"
    ACTIVE = "ACTIVE"
    MATURED_OR_FULL = "MATURED_OR_FULL"
    GRADUATED = "GRADUATED"

    @classmethod
    def from_str(cls, phase_str: str) -> "LaunchPhase":
        """
        Convert a string to a LaunchPhase enum.
        :param phase_str: str
        :return: LaunchPhase or NotImplementedError
        """
        for phase in cls:
            if phase_str.upper() == phase.name:
                return phase
        raise NotImplementedError(f"No launch phase enum for {phase_str}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class ErrorCode(Enum):
    # configuration
    INVALID_CURVE_PARAMS = "INVALID_CURVE_PARAMS"
    FEE_BPS_TOO_HIGH = "FEE_BPS_TOO_HIGH"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    HOOK_NOT_SET = "HOOK_NOT_SET"
    INVALID_TIME_WINDOW = "INVALID_TIME_WINDOW"
    DEGENERATE_LIQUIDITY = "DEGENERATE_LIQUIDITY"
    CALIBRATION_FAILED = "CALIBRATION_FAILED"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    # state machine
    NOT_OWNER = "NOT_OWNER"
    NOT_ACTIVE = "NOT_ACTIVE"
    OUTSIDE_WINDOW = "OUTSIDE_WINDOW"
    NOT_OPEN_YET = "NOT_OPEN_YET"
    ALREADY_GRADUATED = "ALREADY_GRADUATED"
    NO_RESERVE = "NO_RESERVE"
    NOT_YET_PERMISSIONLESS = "NOT_YET_PERMISSIONLESS"
    ZERO_AMOUNT = "ZERO_AMOUNT"
    EXCEEDS_BONDING_SUPPLY = "EXCEEDS_BONDING_SUPPLY"
    EXCEEDS_SOLD_SUPPLY = "EXCEEDS_SOLD_SUPPLY"
    REENTRANT_CALL = "REENTRANT_CALL"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    MATURITY_LOCKED = "MATURITY_LOCKED"
    # arithmetic
    OVERFLOW = "OVERFLOW"
    UNDERFLOW = "UNDERFLOW"
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"
    INVALID_RANGE = "INVALID_RANGE"
    # slippage
    MAX_COST_EXCEEDED = "MAX_COST_EXCEEDED"
    INSUFFICIENT_PAYMENT = "INSUFFICIENT_PAYMENT"
    MIN_REFUND_NOT_MET = "MIN_REFUND_NOT_MET"
    # settlement
    POOL_NOT_INITIALIZED = "POOL_NOT_INITIALIZED"
    CURRENCY_NOT_SETTLED = "CURRENCY_NOT_SETTLED"
    SETTLEMENT_REJECTED = "SETTLEMENT_REJECTED"

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()
