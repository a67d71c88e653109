from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from forgd_launchpad.common.enums import ErrorCode, OrderSide
from forgd_launchpad.common.errors import ConfigError


MAX_GRADUATION_FEE_BPS = 500
MAX_POL_BPS = 300
MAX_BONDING_FEE_BPS = 10_000

NATIVE = "0x0000000000000000000000000000000000000000"


def address_value(address: str, field_name: str = "address") -> int:
    """Numeric value of a hex address; the ordering key for pool currencies."""
    try:
        return int(address, 16)
    except (TypeError, ValueError):
        raise ConfigError(
            ErrorCode.INVALID_ADDRESS,
            f"'{field_name}' is not a hex address.",
            {field_name: address},
        )


@dataclass(frozen=True)
class CurveParams:
    """
    Coefficients of P(s) = quartic*ŝ^4 + cubic*ŝ^3 + quadratic*ŝ^2 + initial_price, ŝ = s / normalization_factor.

    Prices and coefficients are 18-decimal fixed point (wei per whole token); normalization_factor is a
    plain count of whole tokens.
    """
    initial_price: int
    quartic_coeff: int
    cubic_coeff: int
    quadratic_coeff: int
    normalization_factor: int

    def __post_init__(self):
        if self.normalization_factor <= 0:
            raise ConfigError(
                ErrorCode.INVALID_CURVE_PARAMS,
                "Normalization factor must be positive.",
                {"normalization_factor": self.normalization_factor},
            )
        for name in ("initial_price", "quartic_coeff", "cubic_coeff", "quadratic_coeff"):
            if getattr(self, name) < 0:
                raise ConfigError(
                    ErrorCode.INVALID_CURVE_PARAMS,
                    f"Curve coefficient '{name}' must be non-negative.",
                    {name: getattr(self, name)},
                )


@dataclass(frozen=True)
class FeeConfig:
    """Fee schedule of one instance, all values in basis points over 10,000."""
    bonding_fee_bps: int = 0
    graduation_fee_bps: int = 0
    pol_bps: int = 0
    creator_graduation_fee_bps: int = 0
    protocol_treasury: Optional[str] = None
    factory_creator: Optional[str] = None

    def __post_init__(self):
        caps = {
            "bonding_fee_bps": MAX_BONDING_FEE_BPS,
            "graduation_fee_bps": MAX_GRADUATION_FEE_BPS,
            "pol_bps": MAX_POL_BPS,
            "creator_graduation_fee_bps": MAX_BONDING_FEE_BPS,
        }
        for name, cap in caps.items():
            value = getattr(self, name)
            if value < 0 or value > cap:
                raise ConfigError(
                    ErrorCode.FEE_BPS_TOO_HIGH,
                    f"'{name}' must be within [0, {cap}].",
                    {name: value},
                )

    @property
    def has_treasury(self) -> bool:
        return bool(self.protocol_treasury)

    @property
    def has_creator(self) -> bool:
        return bool(self.factory_creator)


@dataclass
class LaunchState:
    """Mutable per-instance state. Only LaunchInstance writes it."""
    reserve_balance: int = 0
    total_sold: int = 0
    bonding_active: bool = False
    bonding_open_time: Optional[datetime] = None
    bonding_maturity_time: Optional[datetime] = None
    graduated: bool = False
    hook_address: Optional[str] = None


@dataclass(frozen=True)
class DeployResult:
    """Graduation split, produced once per instance."""
    graduation_fee: int
    creator_grad_cut: int
    eth_for_pool: int
    tokens_for_pool: int
    pol_eth: int
    pol_tokens: int
    liquidity: int = 0

    @property
    def after_grad(self) -> int:
        return self.pol_eth + self.eth_for_pool

    @property
    def treasury_grad_cut(self) -> int:
        return self.graduation_fee - self.creator_grad_cut


@dataclass(frozen=True)
class PoolKey:
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: Optional[str] = None

    @property
    def pool_id(self) -> str:
        return f"{self.currency0}:{self.currency1}:{self.fee}:{self.tick_spacing}:{self.hooks}"


@dataclass
class PoolPosition:
    """What the coordinator reports back for a deposited position."""
    pool_key: PoolKey
    tick_lower: int
    tick_upper: int
    liquidity: int
    salt: str


@dataclass
class TransactionResult:
    """Outcome of a buy or sell on the bonding curve."""
    side: OrderSide
    executed_amount: int
    curve_amount: int
    fee: int
    total: int
    excess_refunded: int
    new_supply: int
    timestamp: datetime


@dataclass
class FeePaid:
    payer: str
    amount: int
    recipient: Optional[str]
    timestamp: datetime


@dataclass
class Graduated:
    instance_id: str
    caller: str
    deploy_result: DeployResult
    timestamp: datetime


@dataclass
class EventLog:
    """Append-only event sink attached to an instance."""
    events: List[object] = field(default_factory=list)

    def emit(self, event: object):
        self.events.append(event)

    def of_type(self, event_type) -> List[object]:
        return [e for e in self.events if isinstance(e, event_type)]

    def snapshot(self) -> int:
        return len(self.events)

    def restore(self, mark: int):
        del self.events[mark:]


@dataclass
class QuoteSummary:
    """Read-only quote used by the web API and validators."""
    supply: int
    amount: int
    curve_amount: int
    fee: int
    extra: Dict = field(default_factory=dict)
