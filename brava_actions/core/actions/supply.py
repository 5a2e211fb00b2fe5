from __future__ import annotations

from abc import abstractmethod

from brava_actions.core.actions.ActionBase import ActionBase
from brava_actions.core.actions.context import ActionContext, BalanceUpdate
from brava_actions.core.actions.fees import process_fee
from brava_actions.core.actions.params import SupplyParams
from brava_actions.core.actions.traits import SupplyBinding
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.constants.base import MAX_UINT256
from brava_actions.core.errors import SlippageExceededError, ZeroAmountError


async def run_supply(
    ctx: ActionContext,
    binding: SupplyBinding,
    *,
    pool: str,
    fee_basis: int,
    amount: int,
    min_shares_received: int = 0,
) -> BalanceUpdate:
    """Charge (or start) the position's fee, then deposit.

    ``amount == 0`` is a fee-only call: the deposit step is skipped entirely.
    ``amount == MAX_UINT256`` deposits the wallet's whole underlying balance.
    """
    balance_before = await binding.position_balance(ctx.wallet)
    fee_in_tokens = await process_fee(
        ctx, pool, fee_basis, binding.fee_token, balance_before
    )

    if amount != 0:
        underlying = await binding.underlying()
        if amount == MAX_UINT256:
            amount = await ctx.chain.balance_of(underlying, ctx.wallet)
        if amount == 0:
            raise ZeroAmountError("deposit amount resolved to zero")

        await ctx.chain.approve(
            underlying, ctx.wallet, await binding.deposit_spender(), amount
        )
        shares_received = await binding.deposit(ctx.wallet, amount)
        if shares_received < min_shares_received:
            raise SlippageExceededError(shares_received, min_shares_received)

    balance_after = await binding.position_balance(ctx.wallet)
    return BalanceUpdate(balance_before, balance_after, fee_in_tokens)


class SupplyAction(ActionBase):
    action_type = ActionType.DEPOSIT
    params_model = SupplyParams

    @abstractmethod
    async def _binding(self, pool: str) -> SupplyBinding:
        pass

    async def _execute(self, ctx: ActionContext, params: SupplyParams) -> None:
        pool = await self._pool_for(params)
        update = await run_supply(
            ctx,
            await self._binding(pool),
            pool=pool,
            fee_basis=params.fee_basis,
            amount=params.amount,
            min_shares_received=params.min_shares_received,
        )
        await self._log_balance_update(ctx, params.pool_id, update)
