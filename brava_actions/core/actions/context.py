from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Protocol

from brava_actions.core.admin_vault import AdminVaultClient
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.event_log import EventLog
from brava_actions.core.utils.ids import protocol_id_for


class ChainClient(Protocol):
    """The host an action executes on: clock, token ledger and contracts."""

    async def block_timestamp(self) -> int: ...

    async def balance_of(self, token: str, owner: str) -> int: ...

    async def allowance(self, token: str, owner: str, spender: str) -> int: ...

    async def approve(
        self, token: str, owner: str, spender: str, amount: int
    ) -> None: ...

    async def transfer(
        self, token: str, sender: str, recipient: str, amount: int
    ) -> None: ...

    async def transfer_from(
        self, token: str, spender: str, owner: str, recipient: str, amount: int
    ) -> None: ...

    def contract_at(self, address: str) -> Any: ...

    def atomic(self) -> AbstractAsyncContextManager[Any]: ...


@dataclass(frozen=True)
class ActionContext:
    wallet: str
    strategy_id: int
    protocol_name: str
    action_type: ActionType
    admin_vault: AdminVaultClient
    event_log: EventLog
    chain: ChainClient
    logger: Any

    @property
    def protocol_id(self) -> int:
        return protocol_id_for(self.protocol_name)


@dataclass(frozen=True)
class BalanceUpdate:
    balance_before: int
    balance_after: int
    fee_in_tokens: int
