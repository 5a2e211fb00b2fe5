from .ActionBase import ActionBase
from .context import ActionContext, BalanceUpdate, ChainClient
from .supply import SupplyAction, run_supply
from .withdraw import (
    ShareWithdrawAction,
    WithdrawAction,
    WithdrawRequestAction,
    run_exit,
    run_share_withdraw,
    run_withdraw,
    run_withdraw_request,
)

__all__ = [
    "ActionBase",
    "ActionContext",
    "BalanceUpdate",
    "ChainClient",
    "SupplyAction",
    "WithdrawAction",
    "ShareWithdrawAction",
    "WithdrawRequestAction",
    "run_supply",
    "run_withdraw",
    "run_share_withdraw",
    "run_withdraw_request",
    "run_exit",
]
