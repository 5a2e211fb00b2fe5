from __future__ import annotations

from typing import Any

from brava_actions.core.actions.context import ChainClient
from brava_actions.core.actions.supply import SupplyAction
from brava_actions.core.actions.withdraw import ShareWithdrawAction


class YearnV2Binding:
    """yvToken position. Withdrawals are denominated in shares."""

    def __init__(self, chain: ChainClient, pool: str):
        self.chain = chain
        self.vault: Any = chain.contract_at(pool)
        self.fee_token = self.vault.address

    async def position_balance(self, wallet: str) -> int:
        return await self.chain.balance_of(self.fee_token, wallet)

    async def underlying(self) -> str:
        return await self.vault.token()

    async def deposit_spender(self) -> str:
        return self.vault.address

    async def deposit(self, wallet: str, amount: int) -> int:
        return await self.vault.deposit(amount, wallet, caller=wallet)

    async def redeem(self, wallet: str, shares: int) -> int:
        return await self.vault.withdraw(shares, wallet, caller=wallet)


class YearnV2Supply(SupplyAction):
    protocol_name = "YearnV2"

    async def _binding(self, pool: str) -> YearnV2Binding:
        return YearnV2Binding(self.chain, pool)


class YearnV2Withdraw(ShareWithdrawAction):
    protocol_name = "YearnV2"

    async def _binding(self, pool: str) -> YearnV2Binding:
        return YearnV2Binding(self.chain, pool)
