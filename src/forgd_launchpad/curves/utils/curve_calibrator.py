from loguru import logger

from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import CalibrationError, CurveArithmeticError
from forgd_launchpad.common.math import BPS_DENOMINATOR, WAD
from forgd_launchpad.common.model import CurveParams
from forgd_launchpad.curves.utils.polynomial_curve_helper import PolynomialCurveHelper


# Coefficient family, relative to one base unit b:
#   q4 = 3b, q3 = 4b/3, q2 = 2b, p0 = b/40
# At ŝ = 1 the raise is N*b*(3/5 + 1/3 + 2/3 + 1/40) = N*b*65/40.
RAISE_NUMERATOR = 65
RAISE_DENOMINATOR = 40
MAX_SEARCH_ITERATIONS = 256
DEFAULT_TOLERANCE_BPS = 100


class CurveCalibrator:
    """
    Turns business parameters (target raise in wei, max sellable supply in 18-decimal units) into CurveParams.

    The base unit is first estimated in closed form and then refined with a bounded bisection, because the
    fixed-point truncation in the integral makes the real raise slightly lower than the closed form.
    """

    @staticmethod
    def params_for_base_unit(base_unit: int, normalization_factor: int) -> CurveParams:
        return CurveParams(
            initial_price=base_unit // 40,
            quartic_coeff=base_unit * 3,
            cubic_coeff=base_unit * 4 // 3,
            quadratic_coeff=base_unit * 2,
            normalization_factor=normalization_factor,
        )

    @staticmethod
    def simulate_raise(params: CurveParams, max_supply: int) -> int:
        """cost(params, 0, max_supply)."""
        return PolynomialCurveHelper.cost(params, 0, max_supply)

    @staticmethod
    def calibrate(target_raise: int, max_supply: int, tolerance_bps: int = DEFAULT_TOLERANCE_BPS) -> CurveParams:
        """
        :param target_raise: wei the full curve should collect
        :param max_supply: tokens sellable on the curve, 18-decimal units
        :param tolerance_bps: allowed relative miss, in bps of target_raise
        :return: CurveParams whose full-range cost is within tolerance of target_raise
        :raises CalibrationError: for non-positive inputs or when no base unit lands within tolerance
        """
        if target_raise <= 0 or max_supply <= 0:
            raise CalibrationError(
                ErrorCode.CALIBRATION_FAILED,
                "Target raise and max supply must both be positive.",
                {"target_raise": target_raise, "max_supply": max_supply},
            )

        normalization_factor = max_supply // WAD
        if normalization_factor == 0:
            raise CalibrationError(
                ErrorCode.CALIBRATION_FAILED,
                "Max supply must be at least one whole token.",
                {"max_supply": max_supply},
            )

        def raise_for(base_unit: int) -> int:
            params = CurveCalibrator.params_for_base_unit(base_unit, normalization_factor)
            return CurveCalibrator.simulate_raise(params, max_supply)

        estimate = (target_raise * RAISE_DENOMINATOR) // (normalization_factor * RAISE_NUMERATOR)

        try:
            lo, hi = 0, max(estimate * 2, 1)
            while raise_for(hi) < target_raise:
                lo, hi = hi, hi * 2

            # smallest base unit whose raise reaches the target
            for _ in range(MAX_SEARCH_ITERATIONS):
                if hi - lo <= 1:
                    break
                mid = (lo + hi) // 2
                if raise_for(mid) >= target_raise:
                    hi = mid
                else:
                    lo = mid

            best = min((lo, hi), key=lambda b: abs(raise_for(b) - target_raise))
            achieved = raise_for(best)
        except CurveArithmeticError as exc:
            raise CalibrationError(
                ErrorCode.CALIBRATION_FAILED,
                f"Curve math failed during calibration: {exc.message}",
                {"target_raise": target_raise, "max_supply": max_supply},
            ) from exc

        miss = abs(achieved - target_raise)
        if miss * BPS_DENOMINATOR > target_raise * tolerance_bps:
            raise CalibrationError(
                ErrorCode.CALIBRATION_FAILED,
                "Calibrated curve misses the target raise by more than the tolerance.",
                {"target_raise": target_raise, "achieved": achieved, "tolerance_bps": tolerance_bps},
            )

        params = CurveCalibrator.params_for_base_unit(best, normalization_factor)
        logger.debug(
            f"[CALIBRATE] target={target_raise} achieved={achieved} base_unit={best} "
            f"normalization={normalization_factor}"
        )
        return params
