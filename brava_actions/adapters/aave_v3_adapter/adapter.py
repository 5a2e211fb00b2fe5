from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

from brava_actions.core.actions.context import ChainClient
from brava_actions.core.actions.params import AssetParams
from brava_actions.core.actions.supply import SupplyAction
from brava_actions.core.actions.withdraw import WithdrawAction


class AaveV3Binding:
    """aToken position in an Aave V3 market.

    Pools are registered by aToken address. aToken balances rebase, so
    position units moved by a call are measured by diffing the balance.
    """

    def __init__(self, chain: ChainClient, aave_pool: str, a_token: str):
        self.chain = chain
        self.pool: Any = chain.contract_at(aave_pool)
        self.a_token: Any = chain.contract_at(a_token)
        self.fee_token = self.a_token.address

    async def position_balance(self, wallet: str) -> int:
        return await self.chain.balance_of(self.fee_token, wallet)

    async def underlying(self) -> str:
        return await self.a_token.underlying_asset_address()

    async def deposit_spender(self) -> str:
        return self.pool.address

    async def deposit(self, wallet: str, amount: int) -> int:
        before = await self.position_balance(wallet)
        await self.pool.supply(await self.underlying(), amount, wallet, caller=wallet)
        return await self.position_balance(wallet) - before

    async def max_withdraw(self, wallet: str) -> int:
        liquidity = await self.chain.balance_of(await self.underlying(), self.fee_token)
        return min(await self.position_balance(wallet), liquidity)

    async def withdraw(self, wallet: str, amount: int) -> int:
        before = await self.position_balance(wallet)
        await self.pool.withdraw(await self.underlying(), amount, wallet, caller=wallet)
        return before - await self.position_balance(wallet)


class _AaveV3Action:
    protocol_name = "AaveV3"
    params_model = AssetParams

    def __init__(self, *, aave_pool: str, **kwargs):
        super().__init__(**kwargs)
        self.aave_pool = to_checksum_address(aave_pool)

    async def _binding(self, pool: str) -> AaveV3Binding:
        return AaveV3Binding(self.chain, self.aave_pool, pool)


class AaveV3Supply(_AaveV3Action, SupplyAction):
    pass


class AaveV3Withdraw(_AaveV3Action, WithdrawAction):
    pass
