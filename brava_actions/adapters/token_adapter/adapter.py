from __future__ import annotations

from brava_actions.core.actions.ActionBase import ActionBase
from brava_actions.core.actions.context import ActionContext
from brava_actions.core.actions.params import PullTokenParams, SendTokenParams
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.constants.base import BRAVA_PROTOCOL, MAX_UINT256
from brava_actions.core.errors import ZeroAmountError
from brava_actions.core.event_log import PullTokenLog, SendTokenLog


class SendToken(ActionBase):
    """Transfer a token from the wallet to ``to``. ``MAX_UINT256`` sends everything."""

    action_type = ActionType.TRANSFER
    protocol_name = BRAVA_PROTOCOL
    params_model = SendTokenParams

    async def _execute(self, ctx: ActionContext, params: SendTokenParams) -> None:
        amount = params.amount
        if amount == MAX_UINT256:
            amount = await ctx.chain.balance_of(params.token, ctx.wallet)
        if amount == 0:
            raise ZeroAmountError("nothing to send")

        await ctx.chain.transfer(params.token, ctx.wallet, params.to, amount)
        await self._emit(
            ctx,
            SendTokenLog(
                wallet=ctx.wallet,
                token=params.token,
                counterparty=params.to,
                amount=amount,
            ),
        )


class PullToken(ActionBase):
    """Pull a token into the wallet from ``sender``, using the sender's allowance."""

    action_type = ActionType.TRANSFER
    protocol_name = BRAVA_PROTOCOL
    params_model = PullTokenParams

    async def _execute(self, ctx: ActionContext, params: PullTokenParams) -> None:
        if params.amount == 0:
            raise ZeroAmountError("nothing to pull")

        await ctx.chain.transfer_from(
            params.token, ctx.wallet, params.sender, ctx.wallet, params.amount
        )
        await self._emit(
            ctx,
            PullTokenLog(
                wallet=ctx.wallet,
                token=params.token,
                counterparty=params.sender,
                amount=params.amount,
            ),
        )
