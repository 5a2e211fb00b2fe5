from __future__ import annotations

from eth_utils import to_checksum_address

from brava_actions.core.actions.ActionBase import ActionBase
from brava_actions.core.actions.context import ActionContext
from brava_actions.core.actions.params import SwapParams
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.errors import (
    ExternalCallError,
    InvalidInputError,
    SlippageExceededError,
    ZeroAmountError,
)
from brava_actions.core.event_log import SwapLog


class ParaswapSwap(ActionBase):
    """Swap through the Paraswap router with caller-built swap call data.

    The router is trusted for nothing: the amount received is measured from
    the wallet's balance and must meet ``min_to_amount``.
    """

    action_type = ActionType.SWAP
    protocol_name = "Paraswap"
    params_model = SwapParams

    def __init__(self, *, router: str, **kwargs):
        super().__init__(**kwargs)
        self.router = to_checksum_address(router)

    async def _execute(self, ctx: ActionContext, params: SwapParams) -> None:
        if params.token_in == params.token_out:
            raise InvalidInputError("token_in and token_out must differ")
        if params.from_amount == 0:
            raise ZeroAmountError("nothing to swap")

        balance_before = await ctx.chain.balance_of(params.token_out, ctx.wallet)
        await ctx.chain.approve(
            params.token_in, ctx.wallet, self.router, params.from_amount
        )
        router = ctx.chain.contract_at(self.router)
        if not await router.call(params.swap_call_data, caller=ctx.wallet):
            raise ExternalCallError("Paraswap__SwapFailed")

        amount_out = (
            await ctx.chain.balance_of(params.token_out, ctx.wallet) - balance_before
        )
        if amount_out < params.min_to_amount:
            raise SlippageExceededError(amount_out, params.min_to_amount)

        await self._emit(
            ctx,
            SwapLog(
                wallet=ctx.wallet,
                token_in=params.token_in,
                token_out=params.token_out,
                amount_in=params.from_amount,
                amount_out=amount_out,
            ),
        )
        ctx.logger.debug(
            f"Swapped {params.from_amount} {params.token_in} for {amount_out} "
            f"{params.token_out}"
        )
