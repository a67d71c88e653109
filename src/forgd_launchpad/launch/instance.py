import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from forgd_launchpad.amm.deployer import LiquidityDeployer
from forgd_launchpad.common.enums import ErrorCode, LaunchPhase, OrderSide
from forgd_launchpad.common.errors import ConfigError, SlippageError, StateError
from forgd_launchpad.common.model import (
    NATIVE,
    CurveParams,
    DeployResult,
    EventLog,
    FeeConfig,
    FeePaid,
    Graduated,
    LaunchState,
    QuoteSummary,
    TransactionResult,
    address_value,
)
from forgd_launchpad.curves.single.polynomial import PolynomialBondingCurve
from forgd_launchpad.fees.waterfall import FeeWaterfall
from forgd_launchpad.ledger import Ledger


class LaunchInstance:
    """
        One token launch: bonding-curve sale followed by graduation into an AMM position.

        Phases:
          UNCONFIGURED -> OPEN (open time set) -> ACTIVE (owner activates) -> MATURED_OR_FULL -> GRADUATED

        MATURED_OR_FULL is not a stored flag: it is true once the clock passes the maturity time or the
        bonding ceiling is sold out. Until then only the owner may graduate; afterwards anyone may. The
        maturity time is fixed once bonding has been activated, so the owner cannot push it back.

        Options (kwargs, with defaults):
          - max_bonding_supply: tokens sellable on the curve (required, > 0)
          - liquidity_token_reserve: tokens set aside for the pool at graduation
          - pool_fee: AMM fee tier, hundredths of a bip
          - tick_spacing: AMM tick spacing
          - paired_asset: None for native value, else the wrapper token address

        Every entry point that changes state runs inside _transaction(): a re-entry on the same instance is
        rejected and any failure restores state, ledger balances and events.

        Token inventory is minted once at creation: the bonding ceiling for curve sales plus the pool reserve.
        Whatever is left after graduation (unsold inventory, deposit rounding) is swept to the treasury, or
        to the owner when no treasury is set.
    """

    def __init__(
        self,
        instance_id: str,
        owner: str,
        token: str,
        params: CurveParams,
        fee_config: FeeConfig,
        ledger: Ledger,
        deployer_factory: Callable[[str], LiquidityDeployer],
        clock: Optional[Callable[[], datetime]] = None,
        salt_provider: Optional[Callable[[], str]] = None,
        **kwargs,
    ):
        self.instance_id = instance_id
        self.owner = owner
        self.token = token
        self.address = f"launch:{instance_id}"
        self.fee_config = fee_config
        self.ledger = ledger
        self.clock = clock or datetime.now
        self.salt_provider = salt_provider or (lambda: f"{instance_id}:0")

        self.options = {
            "max_bonding_supply": None,
            "liquidity_token_reserve": 0,
            "pool_fee": 3000,
            "tick_spacing": 60,
            "paired_asset": None,
        }
        for k, v in kwargs.items():
            if k in self.options:
                self.options[k] = v
            else:
                if "custom" not in self.options:
                    self.options["custom"] = {}
                self.options["custom"][k] = v

        ceiling = self.options["max_bonding_supply"]
        if not ceiling or ceiling <= 0:
            raise ConfigError(
                ErrorCode.NOT_CONFIGURED,
                "'max_bonding_supply' is required and must be > 0.",
                {"max_bonding_supply": ceiling},
            )
        if self.options["liquidity_token_reserve"] < 0:
            raise ConfigError(
                ErrorCode.NOT_CONFIGURED,
                "'liquidity_token_reserve' cannot be negative.",
                {"liquidity_token_reserve": self.options["liquidity_token_reserve"]},
            )
        address_value(token, "token")
        if self.options["paired_asset"] is not None:
            address_value(self.options["paired_asset"], "paired_asset")

        self.state = LaunchState()
        self.curve = PolynomialBondingCurve(params, self.state)
        self.events = EventLog()
        self.deployer = deployer_factory(self.address)
        self._locked = False

        self.ledger.mint(self.token, self.address, ceiling + self.options["liquidity_token_reserve"])

    # ------------------------------------------------------------------ guards

    @contextmanager
    def _transaction(self):
        if self._locked:
            raise StateError(ErrorCode.REENTRANT_CALL, "Re-entrant call rejected.", {"instance": self.instance_id})
        self._locked = True
        state_before = copy.copy(self.state)
        balances_before = self.ledger.snapshot()
        events_mark = self.events.snapshot()
        try:
            yield
        except Exception:
            # same object stays bound to self.curve
            self.state.__dict__.update(state_before.__dict__)
            self.ledger.restore(balances_before)
            self.events.restore(events_mark)
            raise
        finally:
            self._locked = False

    def _require_owner(self, caller: str):
        if caller != self.owner:
            raise StateError(ErrorCode.NOT_OWNER, "Only the owner may call this.", {"caller": caller})

    def _require_not_graduated(self):
        if self.state.graduated:
            raise StateError(ErrorCode.ALREADY_GRADUATED, "Launch has already graduated.")

    def _require_trading_window(self, now: datetime):
        self._require_not_graduated()
        if not self.state.bonding_active:
            raise StateError(ErrorCode.NOT_ACTIVE, "Bonding is not active.")
        open_time = self.state.bonding_open_time
        maturity = self.state.bonding_maturity_time
        if now < open_time or (maturity is not None and now >= maturity):
            raise StateError(
                ErrorCode.OUTSIDE_WINDOW,
                "Outside the bonding window.",
                {"now": now, "open": open_time, "maturity": maturity},
            )

    # ------------------------------------------------------------------ views

    @property
    def params(self) -> CurveParams:
        return self.curve.params

    @property
    def bonding_ceiling(self) -> int:
        return self.options["max_bonding_supply"]

    def is_matured_or_full(self, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        maturity = self.state.bonding_maturity_time
        if maturity is not None and now >= maturity:
            return True
        return self.state.total_sold >= self.bonding_ceiling

    @property
    def phase(self) -> LaunchPhase:
        if self.state.graduated:
            return LaunchPhase.GRADUATED
        if self.state.bonding_open_time is None:
            return LaunchPhase.UNCONFIGURED
        if not self.state.bonding_active:
            return LaunchPhase.OPEN
        if self.is_matured_or_full():
            return LaunchPhase.MATURED_OR_FULL
        return LaunchPhase.ACTIVE

    def quote_buy(self, amount: int) -> QuoteSummary:
        cost = self.curve.calculate_purchase_cost(amount)
        fee = FeeWaterfall.bonding_fee(cost, self.fee_config)
        return QuoteSummary(supply=self.state.total_sold, amount=amount, curve_amount=cost, fee=fee,
                            extra={"total": cost + fee})

    def quote_sell(self, amount: int) -> QuoteSummary:
        refund = self.curve.calculate_sale_return(amount)
        fee = FeeWaterfall.bonding_fee(refund, self.fee_config)
        return QuoteSummary(supply=self.state.total_sold, amount=amount, curve_amount=refund, fee=fee,
                            extra={"total": refund - fee})

    # ------------------------------------------------------------------ admin

    def set_bonding_open_time(self, caller: str, open_time: datetime):
        with self._transaction():
            self._require_owner(caller)
            self._require_not_graduated()
            if self.state.bonding_active:
                raise StateError(ErrorCode.NOT_ACTIVE, "Cannot move the open time while bonding is active.")
            maturity = self.state.bonding_maturity_time
            if maturity is not None and open_time >= maturity:
                raise ConfigError(
                    ErrorCode.INVALID_TIME_WINDOW,
                    "Open time must precede maturity.",
                    {"open": open_time, "maturity": maturity},
                )
            self.state.bonding_open_time = open_time
            logger.info(f"[LAUNCH] {self.instance_id} open time set to {open_time.isoformat()}")

    def set_bonding_maturity_time(self, caller: str, maturity_time: datetime):
        with self._transaction():
            self._require_owner(caller)
            self._require_not_graduated()
            if self.state.bonding_active or self.state.total_sold > 0 or self.is_matured_or_full():
                raise StateError(
                    ErrorCode.MATURITY_LOCKED,
                    "Maturity is fixed once bonding has started.",
                    {"maturity": self.state.bonding_maturity_time, "total_sold": self.state.total_sold},
                )
            open_time = self.state.bonding_open_time
            if open_time is None:
                raise ConfigError(ErrorCode.NOT_CONFIGURED, "Set the open time before the maturity time.")
            if maturity_time <= open_time:
                raise ConfigError(
                    ErrorCode.INVALID_TIME_WINDOW,
                    "Maturity must come after the open time.",
                    {"open": open_time, "maturity": maturity_time},
                )
            self.state.bonding_maturity_time = maturity_time
            logger.info(f"[LAUNCH] {self.instance_id} maturity set to {maturity_time.isoformat()}")

    def set_hook(self, caller: str, hook_address: str):
        with self._transaction():
            self._require_owner(caller)
            self._require_not_graduated()
            if not hook_address:
                raise ConfigError(ErrorCode.HOOK_NOT_SET, "Hook address cannot be empty.")
            self.state.hook_address = hook_address
            logger.info(f"[LAUNCH] {self.instance_id} hook set to {hook_address}")

    def set_bonding_active(self, caller: str, active: bool):
        with self._transaction():
            self._require_owner(caller)
            self._require_not_graduated()
            if active:
                if self.state.bonding_open_time is None:
                    raise ConfigError(ErrorCode.NOT_CONFIGURED, "Open time is not set.")
                if self.state.bonding_maturity_time is None:
                    raise ConfigError(ErrorCode.NOT_CONFIGURED, "Maturity time is not set.")
                if not self.state.hook_address:
                    raise ConfigError(ErrorCode.HOOK_NOT_SET, "Liquidity hook is not set.")
                now = self.clock()
                if now < self.state.bonding_open_time:
                    raise StateError(
                        ErrorCode.NOT_OPEN_YET,
                        "Bonding cannot be activated before the open time.",
                        {"now": now, "open": self.state.bonding_open_time},
                    )
            self.state.bonding_active = active
            logger.info(f"[LAUNCH] {self.instance_id} bonding {'activated' if active else 'paused'}")

    # ------------------------------------------------------------------ trading

    def _pay_fee(self, payer: str, fee: int):
        if fee == 0:
            return
        treasury = self.fee_config.protocol_treasury
        self.ledger.transfer(NATIVE, self.address, treasury, fee)
        self.events.emit(FeePaid(payer=payer, amount=fee, recipient=treasury, timestamp=self.clock()))
        logger.debug(f"[FEE] {payer} paid {fee} to {treasury}")

    def buy(self, caller: str, amount: int, payment: int, max_cost: Optional[int] = None) -> TransactionResult:
        """
        Buy `amount` tokens for `payment` wei. Anything above cost + fee goes back to the caller.

        :param max_cost: optional cap on cost + fee; exceeded raises SlippageError
        """
        with self._transaction():
            now = self.clock()
            self._require_trading_window(now)
            if amount <= 0:
                raise StateError(ErrorCode.ZERO_AMOUNT, "Amount must be positive.")
            ceiling = self.bonding_ceiling
            if self.state.total_sold + amount > ceiling:
                raise StateError(
                    ErrorCode.EXCEEDS_BONDING_SUPPLY,
                    "Purchase exceeds the bonding supply.",
                    {"total_sold": self.state.total_sold, "amount": amount, "ceiling": ceiling},
                )

            cost = self.curve.calculate_purchase_cost(amount)
            fee = FeeWaterfall.bonding_fee(cost, self.fee_config)
            total = cost + fee
            if max_cost is not None and total > max_cost:
                raise SlippageError(
                    ErrorCode.MAX_COST_EXCEEDED, "Cost exceeds the caller's cap.", {"total": total, "max_cost": max_cost}
                )
            if payment < total:
                raise SlippageError(
                    ErrorCode.INSUFFICIENT_PAYMENT, "Payment below cost plus fee.", {"total": total, "payment": payment}
                )

            self.ledger.transfer(NATIVE, caller, self.address, payment)
            excess = payment - total
            self.ledger.transfer(NATIVE, self.address, caller, excess)
            self._pay_fee(caller, fee)

            self.state.reserve_balance += cost
            self.state.total_sold += amount
            self.ledger.transfer(self.token, self.address, caller, amount)

            logger.debug(f"[BUY] {caller} bought {amount} for {cost} (+{fee} fee) supply={self.state.total_sold}")
            return TransactionResult(
                side=OrderSide.BUY,
                executed_amount=amount,
                curve_amount=cost,
                fee=fee,
                total=total,
                excess_refunded=excess,
                new_supply=self.state.total_sold,
                timestamp=now,
            )

    def sell(self, caller: str, amount: int, min_refund: Optional[int] = None) -> TransactionResult:
        """
        Sell `amount` tokens back into the curve. The reserve gives up the full curve refund; the bonding fee
        comes out of what the caller receives.

        :param min_refund: optional floor on the caller's net proceeds
        """
        with self._transaction():
            now = self.clock()
            self._require_not_graduated()
            if not self.state.bonding_active:
                raise StateError(ErrorCode.NOT_ACTIVE, "Bonding is not active.")
            if amount <= 0:
                raise StateError(ErrorCode.ZERO_AMOUNT, "Amount must be positive.")
            if amount > self.state.total_sold:
                raise StateError(
                    ErrorCode.EXCEEDS_SOLD_SUPPLY,
                    "Cannot sell more than has been sold.",
                    {"total_sold": self.state.total_sold, "amount": amount},
                )

            refund = self.curve.calculate_sale_return(amount)
            if self.state.reserve_balance < refund:
                raise StateError(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    "Reserve cannot cover the refund.",
                    {"reserve": self.state.reserve_balance, "refund": refund},
                )
            fee = FeeWaterfall.bonding_fee(refund, self.fee_config)
            proceeds = refund - fee
            if min_refund is not None and proceeds < min_refund:
                raise SlippageError(
                    ErrorCode.MIN_REFUND_NOT_MET,
                    "Proceeds below the caller's floor.",
                    {"proceeds": proceeds, "min_refund": min_refund},
                )

            self.ledger.transfer(self.token, caller, self.address, amount)
            self.state.reserve_balance -= refund
            self.state.total_sold -= amount
            self.ledger.transfer(NATIVE, self.address, caller, proceeds)
            self._pay_fee(caller, fee)

            logger.debug(f"[SELL] {caller} sold {amount} for {refund} (-{fee} fee) supply={self.state.total_sold}")
            return TransactionResult(
                side=OrderSide.SELL,
                executed_amount=amount,
                curve_amount=refund,
                fee=fee,
                total=proceeds,
                excess_refunded=0,
                new_supply=self.state.total_sold,
                timestamp=now,
            )

    # ------------------------------------------------------------------ graduation

    def deploy_liquidity(self, caller: str) -> DeployResult:
        """
        Graduate: split the reserve, pay the treasury and creator, seed the AMM position, mark graduated.

        Preconditions are checked in a fixed order so the first unmet one names the failure.
        """
        with self._transaction():
            self._require_not_graduated()
            token_reserve = self.options["liquidity_token_reserve"]
            if not token_reserve:
                raise ConfigError(ErrorCode.NOT_CONFIGURED, "No token reserve configured for the pool.")
            hook = self.state.hook_address
            if not hook:
                raise ConfigError(ErrorCode.HOOK_NOT_SET, "Liquidity hook is not set.")
            if self.state.reserve_balance == 0:
                raise StateError(ErrorCode.NO_RESERVE, "Nothing in the reserve to deploy.")
            if caller != self.owner and not self.is_matured_or_full():
                raise StateError(
                    ErrorCode.NOT_YET_PERMISSIONLESS,
                    "Only the owner may graduate before maturity or sell-out.",
                    {"caller": caller},
                )

            split = FeeWaterfall.split(self.state.reserve_balance, token_reserve, self.fee_config)
            self._pay_graduation(caller, split)

            position = self.deployer.deploy(
                split,
                token=self.token,
                paired_asset=self.options["paired_asset"],
                fee=self.options["pool_fee"],
                tick_spacing=self.options["tick_spacing"],
                hooks=hook,
                salt=self.salt_provider(),
            )
            result = replace(split, liquidity=position.liquidity)
            self._sweep_leftovers()

            self.state.reserve_balance = 0
            self.state.bonding_active = False
            self.state.graduated = True
            self.events.emit(
                Graduated(instance_id=self.instance_id, caller=caller, deploy_result=result, timestamp=self.clock())
            )
            logger.info(
                f"[GRADUATE] {self.instance_id} by {caller}: pool_eth={result.eth_for_pool} "
                f"pool_tokens={result.tokens_for_pool} liquidity={result.liquidity}"
            )
            return result

    def _pay_graduation(self, caller: str, split: DeployResult):
        treasury = self.fee_config.protocol_treasury
        creator = self.fee_config.factory_creator

        if split.treasury_grad_cut:
            self._pay_fee(caller, split.treasury_grad_cut)
        if split.creator_grad_cut:
            self.ledger.transfer(NATIVE, self.address, creator, split.creator_grad_cut)
            self.events.emit(
                FeePaid(payer=caller, amount=split.creator_grad_cut, recipient=creator, timestamp=self.clock())
            )
        if split.pol_eth:
            self.ledger.transfer(NATIVE, self.address, treasury, split.pol_eth)
        if split.pol_tokens:
            self.ledger.transfer(self.token, self.address, treasury, split.pol_tokens)

        if not self.fee_config.has_treasury:
            logger.warning(f"[GRADUATE] {self.instance_id} has no treasury; graduation fee and POL skipped")

    def _sweep_leftovers(self):
        recipient = self.fee_config.protocol_treasury if self.fee_config.has_treasury else self.owner
        assets = [NATIVE, self.token]
        paired = self.options["paired_asset"]
        if paired is not None and paired != NATIVE:
            assets.append(paired)
        for asset in assets:
            leftover = self.ledger.balance_of(asset, self.address)
            if leftover:
                self.ledger.transfer(asset, self.address, recipient, leftover)
                logger.info(f"[GRADUATE] {self.instance_id} swept {leftover} of {asset} to {recipient}")
