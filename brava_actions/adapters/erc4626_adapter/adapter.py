from __future__ import annotations

from typing import Any

from brava_actions.core.actions.context import ChainClient
from brava_actions.core.actions.supply import SupplyAction
from brava_actions.core.actions.withdraw import WithdrawAction


class Erc4626Binding:
    """Position in an ERC4626 vault. The vault share is the fee token."""

    def __init__(self, chain: ChainClient, pool: str):
        self.chain = chain
        self.vault: Any = chain.contract_at(pool)
        self.fee_token = self.vault.address

    async def position_balance(self, wallet: str) -> int:
        return await self.chain.balance_of(self.fee_token, wallet)

    async def underlying(self) -> str:
        return await self.vault.asset()

    async def deposit_spender(self) -> str:
        return self.vault.address

    async def deposit(self, wallet: str, amount: int) -> int:
        return await self.vault.deposit(amount, wallet, caller=wallet)

    async def max_withdraw(self, wallet: str) -> int:
        return await self.vault.max_withdraw(wallet)

    async def withdraw(self, wallet: str, amount: int) -> int:
        return await self.vault.withdraw(amount, wallet, wallet, caller=wallet)

    async def redeem(self, wallet: str, shares: int) -> int:
        return await self.vault.redeem(shares, wallet, wallet, caller=wallet)


class Erc4626Supply(SupplyAction):
    """Deposit into any registered ERC4626 vault.

    One class serves every ERC4626 protocol (Fluid, Morpho, Yearn V3, ...);
    pass ``protocol_name`` to select which registry namespace pools live in.
    """

    protocol_name = "ERC4626"

    async def _binding(self, pool: str) -> Erc4626Binding:
        return Erc4626Binding(self.chain, pool)


class Erc4626Withdraw(WithdrawAction):
    protocol_name = "ERC4626"

    async def _binding(self, pool: str) -> Erc4626Binding:
        return Erc4626Binding(self.chain, pool)
