from __future__ import annotations

from brava_actions.adapters.erc4626_adapter.adapter import Erc4626Binding
from brava_actions.core.actions.supply import SupplyAction
from brava_actions.core.actions.withdraw import WithdrawRequestAction


class MapleBinding(Erc4626Binding):
    async def request_redeem(self, wallet: str, shares: int) -> int:
        return await self.vault.request_redeem(shares, wallet, caller=wallet)


class MapleSupply(SupplyAction):
    protocol_name = "Maple"

    async def _binding(self, pool: str) -> MapleBinding:
        return MapleBinding(self.chain, pool)


class MapleWithdrawQueue(WithdrawRequestAction):
    """Queue a redemption; the pool delegate settles it later.

    A wallet with a request still pending cannot queue another one, and the
    pool enforces that.
    """

    protocol_name = "Maple"

    async def _binding(self, pool: str) -> MapleBinding:
        return MapleBinding(self.chain, pool)
