from typing import Any, Dict, List

from forgd_launchpad.common.model import CurveParams, FeeConfig
from forgd_launchpad.curves.utils.polynomial_curve_helper import PolynomialCurveHelper as helper
from forgd_launchpad.fees.waterfall import FeeWaterfall


class LaunchValidator:
    """
    Pre-flight checks for a launch configuration (curve + fee schedule + options), before any instance exists.
    Performs:
      1) Param checks (coefficients, fee schedule, ceiling / token reserve)
      2) Boundary tests (spot price at 0, zero-amount cost, full-range integral)
      3) Scenario tests (buy/sell round trips, graduation split of the projected raise)

    Each step returns a dict with:
      {
        "errors": [str...],
        "warnings": [str...],
        "info": {...}
      }
    and 'run_all_validations' aggregates them into a single result.
    """

    @staticmethod
    def validate_params(params: 'CurveParams', fee_config: 'FeeConfig', options: Dict[str, Any]) -> Dict[str, Any]:
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        if params.initial_price == 0:
            warnings.append("Curve: 'initial_price' is 0, the first tokens are free.")
        if params.quartic_coeff == params.cubic_coeff == params.quadratic_coeff == 0:
            warnings.append("Curve: all growth coefficients are 0, price is flat.")

        if not fee_config.has_treasury:
            if fee_config.bonding_fee_bps or fee_config.graduation_fee_bps or fee_config.pol_bps:
                warnings.append("Fees: no protocol treasury, configured fees will not be deducted.")
        if fee_config.creator_graduation_fee_bps > fee_config.graduation_fee_bps:
            warnings.append("Fees: creator cut exceeds the graduation fee and will be capped to it.")
        if fee_config.creator_graduation_fee_bps and not fee_config.has_creator:
            warnings.append("Fees: creator cut configured without a factory creator, it will be skipped.")

        max_bonding_supply = options.get("max_bonding_supply", None)
        if not max_bonding_supply or max_bonding_supply <= 0:
            errors.append("Launch: 'max_bonding_supply' is required and must be > 0.")

        token_reserve = options.get("liquidity_token_reserve", None)
        if not token_reserve or token_reserve <= 0:
            errors.append("Launch: 'liquidity_token_reserve' is required and must be > 0.")

        info["param_summary"] = {
            "initial_price": str(params.initial_price),
            "quartic_coeff": str(params.quartic_coeff),
            "cubic_coeff": str(params.cubic_coeff),
            "quadratic_coeff": str(params.quadratic_coeff),
            "normalization_factor": str(params.normalization_factor),
            "max_bonding_supply": str(max_bonding_supply),
            "liquidity_token_reserve": str(token_reserve),
        }

        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def boundary_tests(params: 'CurveParams', options: Dict[str, Any]) -> Dict[str, Any]:
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        # 1) Spot price at supply=0
        try:
            price_at_zero = helper.spot_price(params, 0)
            info["spot_price_at_zero"] = str(price_at_zero)
        except Exception as e:
            errors.append(f"Exception calling spot_price(0): {e}")

        # 2) Cost to buy 0 tokens => should be 0
        try:
            cost_zero = helper.cost(params, 0, 0)
            if cost_zero != 0:
                warnings.append(f"Cost to buy 0 tokens is not zero: got {cost_zero}")
        except Exception as e:
            errors.append(f"Exception calling cost(0, 0): {e}")

        # 3) Full range must evaluate without overflow
        max_bonding_supply = options.get("max_bonding_supply", None)
        if max_bonding_supply:
            try:
                full_raise = helper.integral_from_zero(params, max_bonding_supply)
                info["projected_raise"] = str(full_raise)
                if full_raise == 0:
                    errors.append("Selling the full bonding supply raises nothing.")
                price_at_ceiling = helper.spot_price(params, max_bonding_supply)
                info["spot_price_at_ceiling"] = str(price_at_ceiling)
            except Exception as e:
                errors.append(f"Exception evaluating the curve at the ceiling: {e}")

        info["boundary_tests_run"] = True
        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def scenario_tests(params: 'CurveParams', fee_config: 'FeeConfig', options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Runs a small paper scenario at 10%, 50% and 90% of the ceiling:
          buy 1% of the ceiling, sell it straight back, the two must match exactly.
        Then splits the projected raise the way graduation would.
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        max_bonding_supply = options.get("max_bonding_supply", None)
        if not max_bonding_supply:
            info["scenario_skipped"] = True
            return {"errors": errors, "warnings": warnings, "info": info}

        chunk = max(max_bonding_supply // 100, 1)
        for pct in (10, 50, 90):
            supply = max_bonding_supply * pct // 100
            try:
                paid = helper.cost(params, supply, chunk)
                returned = helper.refund(params, supply + chunk, chunk)
                if paid != returned:
                    errors.append(f"Round trip at {pct}% is asymmetric: paid {paid}, returned {returned}.")
            except Exception as e:
                errors.append(f"Exception in round trip at {pct}%: {e}")

        try:
            projected = helper.integral_from_zero(params, max_bonding_supply)
            split = FeeWaterfall.split(projected, options.get("liquidity_token_reserve", 0) or 0, fee_config)
            info["projected_split"] = {
                "graduation_fee": str(split.graduation_fee),
                "creator_grad_cut": str(split.creator_grad_cut),
                "eth_for_pool": str(split.eth_for_pool),
                "tokens_for_pool": str(split.tokens_for_pool),
                "pol_eth": str(split.pol_eth),
                "pol_tokens": str(split.pol_tokens),
            }
        except Exception as e:
            errors.append(f"Projected graduation split failed: {e}")

        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def run_all_validations(params: 'CurveParams', fee_config: 'FeeConfig', options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Aggregates:
          - param check
          - boundary tests
          - scenario tests
        Returns a dict with keys: errors, warnings, info
        """
        results = {
            "errors": [],
            "warnings": [],
            "info": {}
        }

        for check in (
            LaunchValidator.validate_params(params, fee_config, options),
            LaunchValidator.boundary_tests(params, options),
            LaunchValidator.scenario_tests(params, fee_config, options),
        ):
            results["errors"].extend(check["errors"])
            results["warnings"].extend(check["warnings"])
            results["info"].update(check["info"])

        return results
