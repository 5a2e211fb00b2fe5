"""Time-proportional management fee.

The fee is simple interest on the position: ``fee_basis`` basis points of the
balance per year, pro-rated by the seconds elapsed since the position's last
fee. Every division truncates, so fees round down.
"""

from __future__ import annotations

from brava_actions.core.actions.context import ActionContext
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.constants.base import FEE_BASIS_POINTS, SECONDS_PER_YEAR
from brava_actions.core.errors import FeeTimestampNotInitializedError


def calculate_fee(
    balance: int, fee_basis: int, last_fee_timestamp: int, now: int
) -> int:
    if now <= last_fee_timestamp:
        return 0
    annual_fee = balance * fee_basis // FEE_BASIS_POINTS
    return annual_fee * (now - last_fee_timestamp) // SECONDS_PER_YEAR


async def initialize_fee_timestamp(ctx: ActionContext, pool: str) -> int:
    now = await ctx.chain.block_timestamp()
    await ctx.admin_vault.set_fee_timestamp(ctx.wallet, ctx.protocol_id, pool, now)
    ctx.logger.debug(f"Fee clock started for {pool} at {now}")
    return now


async def process_fee(
    ctx: ActionContext,
    pool: str,
    fee_basis: int,
    fee_token: str,
    share_balance: int,
) -> int:
    """Charge the fee accrued on ``share_balance`` and return it in ``fee_token`` units.

    A deposit into an empty position only starts the fee clock. Every other
    call requires the clock to have been started by such a deposit.
    """
    if ctx.action_type == ActionType.DEPOSIT and share_balance == 0:
        await initialize_fee_timestamp(ctx, pool)
        return 0

    now = await ctx.chain.block_timestamp()
    last_fee_timestamp = await ctx.admin_vault.get_last_fee_timestamp(
        ctx.wallet, ctx.protocol_id, pool
    )
    if last_fee_timestamp == 0:
        raise FeeTimestampNotInitializedError(
            f"fee timestamp for {pool} was never initialized"
        )
    if last_fee_timestamp >= now:
        return 0

    fee_in_tokens = calculate_fee(share_balance, fee_basis, last_fee_timestamp, now)
    if fee_in_tokens > 0:
        fee_config = await ctx.admin_vault.get_fee_config()
        await ctx.chain.transfer(
            fee_token, ctx.wallet, fee_config.recipient, fee_in_tokens
        )
        ctx.logger.debug(
            f"Charged {fee_in_tokens} of {fee_token} over {now - last_fee_timestamp}s "
            f"at {fee_basis}bps"
        )
    await ctx.admin_vault.set_fee_timestamp(ctx.wallet, ctx.protocol_id, pool, now)
    return fee_in_tokens
