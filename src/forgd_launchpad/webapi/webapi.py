from dataclasses import asdict
from enum import Enum
from typing import Optional

from flask import jsonify
from flask_openapi3 import Info, Tag
from flask_openapi3 import OpenAPI
from loguru import logger
from pydantic import BaseModel, Field

from forgd_launchpad.common.errors import LaunchError
from forgd_launchpad.common.math import from_wad
from forgd_launchpad.common.model import CurveParams, FeeConfig
from forgd_launchpad.common.settings import settings
from forgd_launchpad.curves.single.polynomial import PolynomialBondingCurve
from forgd_launchpad.curves.utils.curve_calibrator import CurveCalibrator
from forgd_launchpad.curves.utils.polynomial_curve_helper import PolynomialCurveHelper as helper
from forgd_launchpad.fees.waterfall import FeeWaterfall


info = Info(title="Launchpad Bonding Curve API", version="1.0.0")
app = OpenAPI(__name__, info=info)


@app.errorhandler(LaunchError)
def handle_launch_error(err: LaunchError):
    logger.warning(f"[API] {err}")
    return jsonify(err.to_dict()), 400


class CurveTransactionAction(Enum):
    buy = "buy"
    sell = "sell"


class CurveParamsModel(BaseModel):
    initial_price: int = Field(ge=0, description="Base price, wei per whole token")
    quartic_coeff: int = Field(ge=0)
    cubic_coeff: int = Field(ge=0)
    quadratic_coeff: int = Field(ge=0)
    normalization_factor: int = Field(gt=0, description="Whole tokens that map to a normalized supply of 1")

    def to_params(self) -> CurveParams:
        return CurveParams(**self.model_dump())


class CurveQuoteRequest(BaseModel):
    curve_params: CurveParamsModel
    supply: int = Field(ge=0, description="Supply already sold, 18-decimal units")
    action: CurveTransactionAction = Field(description="API action to quote")
    amount: int = Field(gt=0, description="amount to buy / sell, 18-decimal units")
    bonding_fee_bps: int = Field(0, ge=0, le=10_000)
    protocol_treasury: Optional[str] = Field(None, description="Fees are only charged when a treasury is set")


class CalibrateRequest(BaseModel):
    target_raise: int = Field(gt=0, description="Wei the full curve should raise")
    max_supply: int = Field(gt=0, description="Sellable supply, 18-decimal units")
    tolerance_bps: int = Field(settings.calibration_tolerance_bps, gt=0, le=10_000)


class GraduationSplitRequest(BaseModel):
    gross_amount: int = Field(ge=0, description="Reserve being graduated, wei")
    token_gross_amount: int = Field(ge=0, description="Token-side reserve, 18-decimal units")
    graduation_fee_bps: int = Field(0, ge=0)
    creator_graduation_fee_bps: int = Field(0, ge=0)
    pol_bps: int = Field(0, ge=0)
    protocol_treasury: Optional[str] = None
    factory_creator: Optional[str] = None


class CurveStatusRequest(BaseModel):
    initial_price: int = Field(ge=0)
    quartic_coeff: int = Field(ge=0)
    cubic_coeff: int = Field(ge=0)
    quadratic_coeff: int = Field(ge=0)
    normalization_factor: int = Field(gt=0)
    max_supply: int = Field(gt=0)
    allocated_supply: int = Field(0, ge=0, description="Already allocated token supply")
    points: int = Field(settings.status_sample_points, ge=2, le=500)


curve_action_tag = Tag(
    name="Bonding Curve Transaction",
    description="Quote a buy or sell on a curve and get the execution information",
)
curve_calibration_tag = Tag(
    name="Bonding Curve Calibration",
    description="Solve curve coefficients for a target raise",
)
fee_tag = Tag(
    name="Graduation Fees",
    description="Split a graduating reserve between fees, protocol-owned liquidity and the pool",
)
curve_status_tag = Tag(
    name="Bonding Curve Status",
    description="Get the shape of a bonding curve for plotting and additional info",
)


@app.post("/curve/quote", summary="Curve Quote", tags=[curve_action_tag])
def quote(body: CurveQuoteRequest):
    """
    Prices a buy or sell at the given supply without touching any launch state
    """
    params = body.curve_params.to_params()
    if body.action == CurveTransactionAction.buy:
        curve_amount = helper.cost(params, body.supply, body.amount)
        new_supply = body.supply + body.amount
    else:
        curve_amount = helper.refund(params, body.supply, body.amount)
        new_supply = body.supply - body.amount

    fee_config = FeeConfig(bonding_fee_bps=body.bonding_fee_bps, protocol_treasury=body.protocol_treasury)
    fee = FeeWaterfall.bonding_fee(curve_amount, fee_config)
    total = curve_amount + fee if body.action == CurveTransactionAction.buy else curve_amount - fee

    return jsonify({
        "action": body.action.value,
        "curve_amount": curve_amount,
        "fee": fee,
        "total": total,
        "new_supply": new_supply,
        "spot_price_before": helper.spot_price(params, body.supply),
        "spot_price_after": helper.spot_price(params, new_supply),
    })


@app.post("/curve/calibrate", summary="Curve Calibration", tags=[curve_calibration_tag])
def calibrate(body: CalibrateRequest):
    """
    Returns curve coefficients whose full-range cost lands within tolerance of the target raise
    """
    params = CurveCalibrator.calibrate(body.target_raise, body.max_supply, body.tolerance_bps)
    return jsonify({
        "curve_params": asdict(params),
        "achieved_raise": CurveCalibrator.simulate_raise(params, body.max_supply),
    })


@app.post("/fees/graduation-split", summary="Graduation Split", tags=[fee_tag])
def graduation_split(body: GraduationSplitRequest):
    fee_config = FeeConfig(
        graduation_fee_bps=body.graduation_fee_bps,
        creator_graduation_fee_bps=body.creator_graduation_fee_bps,
        pol_bps=body.pol_bps,
        protocol_treasury=body.protocol_treasury,
        factory_creator=body.factory_creator,
    )
    split = FeeWaterfall.split(body.gross_amount, body.token_gross_amount, fee_config)
    return jsonify(asdict(split))


@app.get("/curve/status", summary="Curve Status", tags=[curve_status_tag])
def status(query: CurveStatusRequest):
    """
    Return a representation of the curve which can be plotted visually by the caller.
    Return the 'midprice' of the curve based on the allocated amount specified by the caller.
    """
    params = CurveParams(
        initial_price=query.initial_price,
        quartic_coeff=query.quartic_coeff,
        cubic_coeff=query.cubic_coeff,
        quadratic_coeff=query.quadratic_coeff,
        normalization_factor=query.normalization_factor,
    )
    curve = PolynomialBondingCurve(params)
    samples = curve.sample(query.max_supply, query.points)
    midprice = curve.get_spot_price(query.allocated_supply)
    total_raise = curve.total_raise(query.max_supply)
    return jsonify({
        "samples": [{"supply": s, "price": p} for s, p in samples],
        "midprice": midprice,
        "total_raise": total_raise,
        "display": {"midprice": str(from_wad(midprice)), "total_raise": str(from_wad(total_raise))},
    })


if __name__ == "__main__":
    app.run(debug=True)
