from __future__ import annotations

from typing import Any

from brava_actions.core.actions.context import ChainClient
from brava_actions.core.actions.params import AssetParams
from brava_actions.core.actions.supply import SupplyAction
from brava_actions.core.actions.withdraw import WithdrawAction


class CompoundV3Binding:
    """Base-asset supply position in a Comet market (pool = Comet address)."""

    def __init__(self, chain: ChainClient, comet: str):
        self.chain = chain
        self.comet: Any = chain.contract_at(comet)
        self.fee_token = self.comet.address

    async def position_balance(self, wallet: str) -> int:
        return await self.chain.balance_of(self.fee_token, wallet)

    async def underlying(self) -> str:
        return await self.comet.base_token()

    async def deposit_spender(self) -> str:
        return self.comet.address

    async def deposit(self, wallet: str, amount: int) -> int:
        before = await self.position_balance(wallet)
        await self.comet.supply(await self.underlying(), amount, caller=wallet)
        return await self.position_balance(wallet) - before

    async def max_withdraw(self, wallet: str) -> int:
        liquidity = await self.chain.balance_of(await self.underlying(), self.fee_token)
        return min(await self.position_balance(wallet), liquidity)

    async def withdraw(self, wallet: str, amount: int) -> int:
        before = await self.position_balance(wallet)
        await self.comet.withdraw(await self.underlying(), amount, caller=wallet)
        return before - await self.position_balance(wallet)


class CompoundV3Supply(SupplyAction):
    protocol_name = "CompoundV3"
    params_model = AssetParams

    async def _binding(self, pool: str) -> CompoundV3Binding:
        return CompoundV3Binding(self.chain, pool)


class CompoundV3Withdraw(WithdrawAction):
    protocol_name = "CompoundV3"
    params_model = AssetParams

    async def _binding(self, pool: str) -> CompoundV3Binding:
        return CompoundV3Binding(self.chain, pool)
