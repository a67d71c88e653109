from typing import Any, Dict, Optional

from forgd_launchpad.common.enums import ErrorCode


class LaunchError(ValueError):
    """
    Base class for every failure raised by the launchpad.

    Carries a closed ErrorCode plus a context dict with the values that caused the failure, so callers
    (and the web API) can surface a structured reason instead of parsing the message.
    """

    def __init__(self, code: ErrorCode, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "category": type(self).__name__,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }

    def __str__(self):
        return f"[{self.code}] {self.message}"


class ConfigError(LaunchError):
    """Bad coefficients, fee caps, missing treasury/hook. Never retried."""


class CalibrationError(ConfigError):
    """Curve calibration could not reach the requested raise."""


class StateError(LaunchError):
    """Call made in the wrong phase or by the wrong caller."""


class CurveArithmeticError(LaunchError):
    """Overflow, underflow or division by zero in fixed-point math."""


class SlippageError(LaunchError):
    """Caller-supplied bounds not met."""


class SettlementError(LaunchError):
    """The AMM coordinator rejected or could not balance the liquidity request."""
