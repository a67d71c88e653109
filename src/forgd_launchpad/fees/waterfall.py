from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import ConfigError
from forgd_launchpad.common.math import bps_of
from forgd_launchpad.common.model import DeployResult, FeeConfig


class FeeWaterfall:
    """
    Splits inflows among the reserve, the protocol treasury, the factory creator and protocol-owned liquidity.

    Graduation split, in order:
      1. graduation_fee = gross * graduation_fee_bps            (treasury set and bps > 0)
      2. creator_grad_cut = min(gross * creator_bps, graduation_fee)   (carved out of the fee)
      3. after_grad = gross - graduation_fee
      4. pol_eth = after_grad * pol_bps, pol_tokens = token_gross * pol_bps   (treasury set)
      5. eth_for_pool = after_grad - pol_eth, tokens_for_pool = token_gross - pol_tokens
    """

    @staticmethod
    def bonding_fee(amount: int, fee_config: FeeConfig) -> int:
        """Flat fee on a curve trade. Nothing is deducted without a treasury to send it to."""
        if not fee_config.has_treasury or fee_config.bonding_fee_bps == 0:
            return 0
        return bps_of(amount, fee_config.bonding_fee_bps)

    @staticmethod
    def split(gross_amount: int, token_gross_amount: int, fee_config: FeeConfig) -> DeployResult:
        graduation_fee = 0
        creator_grad_cut = 0
        if fee_config.has_treasury and fee_config.graduation_fee_bps > 0:
            graduation_fee = bps_of(gross_amount, fee_config.graduation_fee_bps)
            if fee_config.has_creator:
                creator_grad_cut = min(
                    bps_of(gross_amount, fee_config.creator_graduation_fee_bps),
                    graduation_fee,
                )

        after_grad = gross_amount - graduation_fee

        pol_eth = 0
        pol_tokens = 0
        if fee_config.has_treasury and fee_config.pol_bps > 0:
            pol_eth = bps_of(after_grad, fee_config.pol_bps)
            pol_tokens = bps_of(token_gross_amount, fee_config.pol_bps)

        eth_for_pool = after_grad - pol_eth
        tokens_for_pool = token_gross_amount - pol_tokens

        if eth_for_pool <= 0 or tokens_for_pool <= 0:
            raise ConfigError(
                ErrorCode.DEGENERATE_LIQUIDITY,
                "Fee schedule leaves nothing to deposit on one side of the pool.",
                {"eth_for_pool": eth_for_pool, "tokens_for_pool": tokens_for_pool},
            )

        return DeployResult(
            graduation_fee=graduation_fee,
            creator_grad_cut=creator_grad_cut,
            eth_for_pool=eth_for_pool,
            tokens_for_pool=tokens_for_pool,
            pol_eth=pol_eth,
            pol_tokens=pol_tokens,
        )
