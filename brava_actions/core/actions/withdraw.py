from __future__ import annotations

from abc import abstractmethod

from brava_actions.core.actions.ActionBase import ActionBase
from brava_actions.core.actions.context import ActionContext, BalanceUpdate
from brava_actions.core.actions.fees import process_fee
from brava_actions.core.actions.params import (
    ShareWithdrawParams,
    WithdrawParams,
    WithdrawRequestParams,
)
from brava_actions.core.actions.traits import (
    ShareWithdrawBinding,
    WithdrawBinding,
    WithdrawRequestBinding,
)
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.constants.base import MAX_UINT256
from brava_actions.core.errors import BoundExceededError, ZeroAmountError
from brava_actions.core.event_log import WithdrawalRequestLog


async def run_withdraw(
    ctx: ActionContext,
    binding: WithdrawBinding,
    *,
    pool: str,
    fee_basis: int,
    amount: int,
    max_shares_burned: int = MAX_UINT256,
) -> BalanceUpdate:
    """Charge the fee, then withdraw up to ``amount`` underlying.

    Over-requests (including ``MAX_UINT256``) are capped to the position's
    current max-withdrawable. A request that resolves to zero is an error.
    """
    balance_before = await binding.position_balance(ctx.wallet)
    fee_in_tokens = await process_fee(
        ctx, pool, fee_basis, binding.fee_token, balance_before
    )

    amount = min(amount, await binding.max_withdraw(ctx.wallet))
    if amount == 0:
        raise ZeroAmountError("nothing to withdraw")

    shares_burned = await binding.withdraw(ctx.wallet, amount)
    if shares_burned > max_shares_burned:
        raise BoundExceededError(
            f"burned {shares_burned} shares, above maximum {max_shares_burned}",
            actual=shares_burned,
            bound=max_shares_burned,
        )

    balance_after = await binding.position_balance(ctx.wallet)
    return BalanceUpdate(balance_before, balance_after, fee_in_tokens)


async def run_share_withdraw(
    ctx: ActionContext,
    binding: ShareWithdrawBinding,
    *,
    pool: str,
    fee_basis: int,
    shares_to_burn: int,
    min_underlying_received: int = 0,
) -> BalanceUpdate:
    balance_before = await binding.position_balance(ctx.wallet)
    fee_in_tokens = await process_fee(
        ctx, pool, fee_basis, binding.fee_token, balance_before
    )

    # the fee was paid in shares, so clamp against what is left
    shares_to_burn = min(shares_to_burn, await binding.position_balance(ctx.wallet))
    if shares_to_burn == 0:
        raise ZeroAmountError("no shares to burn")

    underlying_received = await binding.redeem(ctx.wallet, shares_to_burn)
    if underlying_received < min_underlying_received:
        raise BoundExceededError(
            f"received {underlying_received} underlying, below minimum "
            f"{min_underlying_received}",
            actual=underlying_received,
            bound=min_underlying_received,
        )

    balance_after = await binding.position_balance(ctx.wallet)
    return BalanceUpdate(balance_before, balance_after, fee_in_tokens)


async def run_withdraw_request(
    ctx: ActionContext,
    binding: WithdrawRequestBinding,
    *,
    pool: str,
    fee_basis: int,
    shares_to_burn: int,
) -> tuple[int, int]:
    """Queue a redemption. Returns ``(shares_requested, request_id)``.

    No funds move here; the pool settles the request later.
    """
    balance_before = await binding.position_balance(ctx.wallet)
    await process_fee(ctx, pool, fee_basis, binding.fee_token, balance_before)

    shares_to_burn = min(shares_to_burn, await binding.position_balance(ctx.wallet))
    if shares_to_burn == 0:
        raise ZeroAmountError("no shares to request")

    request_id = await binding.request_redeem(ctx.wallet, shares_to_burn)
    return shares_to_burn, request_id


async def run_exit(
    ctx: ActionContext,
    binding: WithdrawBinding,
    *,
    pool: str,
    fee_basis: int = 0,
) -> BalanceUpdate:
    """Withdraw everything that can be withdrawn, without a bound.

    The fee is only charged if the position's fee clock was ever started, and
    an empty position is not an error.
    """
    balance_before = await binding.position_balance(ctx.wallet)
    fee_in_tokens = 0
    last_fee_timestamp = await ctx.admin_vault.get_last_fee_timestamp(
        ctx.wallet, ctx.protocol_id, pool
    )
    if last_fee_timestamp != 0:
        fee_in_tokens = await process_fee(
            ctx, pool, fee_basis, binding.fee_token, balance_before
        )

    amount = await binding.max_withdraw(ctx.wallet)
    if amount > 0:
        await binding.withdraw(ctx.wallet, amount)
    else:
        ctx.logger.debug(f"Exit from {pool}: nothing withdrawable")

    balance_after = await binding.position_balance(ctx.wallet)
    return BalanceUpdate(balance_before, balance_after, fee_in_tokens)


class WithdrawAction(ActionBase):
    action_type = ActionType.WITHDRAW
    params_model = WithdrawParams

    @abstractmethod
    async def _binding(self, pool: str) -> WithdrawBinding:
        pass

    async def _execute(self, ctx: ActionContext, params: WithdrawParams) -> None:
        pool = await self._pool_for(params)
        update = await run_withdraw(
            ctx,
            await self._binding(pool),
            pool=pool,
            fee_basis=params.fee_basis,
            amount=params.amount,
            max_shares_burned=params.max_shares_burned,
        )
        await self._log_balance_update(ctx, params.pool_id, update)

    async def exit_position(
        self,
        pool_id: bytes,
        strategy_id: int,
        *,
        wallet: str,
        fee_basis: int = 0,
    ) -> BalanceUpdate:
        async with self._transaction():
            ctx = self._context(wallet, strategy_id)
            await self._validate_fee_basis(fee_basis)
            pool = await self._resolve_pool(pool_id)
            update = await run_exit(
                ctx, await self._binding(pool), pool=pool, fee_basis=fee_basis
            )
            await self._log_balance_update(ctx, pool_id, update)
        self.logger.info(
            f"{self.protocol_name} exit from {pool} for {ctx.wallet}: "
            f"{update.balance_before} -> {update.balance_after}"
        )
        return update


class ShareWithdrawAction(ActionBase):
    action_type = ActionType.WITHDRAW
    params_model = ShareWithdrawParams

    @abstractmethod
    async def _binding(self, pool: str) -> ShareWithdrawBinding:
        pass

    async def _execute(self, ctx: ActionContext, params: ShareWithdrawParams) -> None:
        pool = await self._pool_for(params)
        update = await run_share_withdraw(
            ctx,
            await self._binding(pool),
            pool=pool,
            fee_basis=params.fee_basis,
            shares_to_burn=params.shares_to_burn,
            min_underlying_received=params.min_underlying_received,
        )
        await self._log_balance_update(ctx, params.pool_id, update)


class WithdrawRequestAction(ActionBase):
    action_type = ActionType.WITHDRAW
    params_model = WithdrawRequestParams

    @abstractmethod
    async def _binding(self, pool: str) -> WithdrawRequestBinding:
        pass

    async def _execute(
        self, ctx: ActionContext, params: WithdrawRequestParams
    ) -> None:
        pool = await self._pool_for(params)
        shares, request_id = await run_withdraw_request(
            ctx,
            await self._binding(pool),
            pool=pool,
            fee_basis=params.fee_basis,
            shares_to_burn=params.shares_to_burn,
        )
        await self._emit(
            ctx,
            WithdrawalRequestLog(
                wallet=ctx.wallet,
                strategy_id=ctx.strategy_id,
                pool_address=pool,
                shares_to_burn=shares,
                request_id=request_id,
            ),
        )
