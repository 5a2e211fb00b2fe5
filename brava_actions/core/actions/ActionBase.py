from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from eth_utils import is_address, to_checksum_address
from loguru import logger

from brava_actions.core.actions.context import ActionContext, BalanceUpdate, ChainClient
from brava_actions.core.actions.params import ActionParams, PoolParams
from brava_actions.core.admin_vault import AdminVaultClient
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.errors import (
    ActionError,
    InvalidFeeBasisError,
    InvalidInputError,
    InvalidPoolError,
)
from brava_actions.core.event_log import ActionLog, EventLog, record_balance_update
from brava_actions.core.utils.ids import format_pool_id


class ActionBase(ABC):
    """A single wallet action against one protocol.

    ``execute_action`` is the only entrypoint callers use. It decodes the
    ABI-encoded parameters, runs the action and publishes its log record, all
    inside one atomic host transaction: if anything fails, every transfer,
    fee-timestamp update and log emitted by the call is rolled back and the
    error propagates with the protocol name and action type attached.
    """

    action_type: ActionType
    protocol_name: str
    params_model: type[ActionParams]

    def __init__(
        self,
        *,
        admin_vault: AdminVaultClient,
        event_log: EventLog,
        chain: ChainClient,
        protocol_name: str | None = None,
    ):
        if protocol_name is not None:
            self.protocol_name = protocol_name
        self.admin_vault = admin_vault
        self.event_log = event_log
        self.chain = chain
        self.logger = logger.bind(action=self.__class__.__name__)

    async def execute_action(
        self, call_data: bytes, strategy_id: int, *, wallet: str
    ) -> None:
        async with self._transaction():
            ctx = self._context(wallet, strategy_id)
            params = self.params_model.decode(call_data)
            await self._execute(ctx, params)
        self.logger.info(
            f"{self.protocol_name} {self.action_type.name} executed for {ctx.wallet} "
            f"(strategy {strategy_id})"
        )

    @abstractmethod
    async def _execute(self, ctx: ActionContext, params: Any) -> None:
        pass

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        try:
            async with self.chain.atomic():
                yield
        except ActionError as exc:
            exc.attach_context(self.protocol_name, self.action_type)
            self.logger.warning(f"Action reverted: {exc}")
            raise

    def _context(self, wallet: str, strategy_id: int) -> ActionContext:
        if not is_address(wallet):
            raise InvalidInputError(f"invalid wallet address: {wallet}")
        if not 0 <= int(strategy_id) < 2**16:
            raise InvalidInputError(f"strategy id out of range: {strategy_id}")
        return ActionContext(
            wallet=to_checksum_address(wallet),
            strategy_id=int(strategy_id),
            protocol_name=self.protocol_name,
            action_type=self.action_type,
            admin_vault=self.admin_vault,
            event_log=self.event_log,
            chain=self.chain,
            logger=self.logger,
        )

    async def _validate_fee_basis(self, fee_basis: int) -> None:
        if not await self.admin_vault.validate_fee_basis(fee_basis):
            raise InvalidFeeBasisError(fee_basis)

    async def _resolve_pool(self, pool_id: bytes) -> str:
        pool = await self.admin_vault.get_pool_address(self.protocol_name, pool_id)
        if pool is None:
            raise InvalidPoolError(f"pool {format_pool_id(pool_id)} not registered")
        return pool

    async def _pool_for(self, params: PoolParams) -> str:
        await self._validate_fee_basis(params.fee_basis)
        return await self._resolve_pool(params.pool_id)

    async def _log_balance_update(
        self, ctx: ActionContext, pool_id: bytes, update: BalanceUpdate
    ) -> None:
        await record_balance_update(
            ctx.event_log,
            ctx.wallet,
            strategy_id=ctx.strategy_id,
            pool_id=pool_id,
            balance_before=update.balance_before,
            balance_after=update.balance_after,
            fee_in_tokens=update.fee_in_tokens,
        )

    async def _emit(self, ctx: ActionContext, record: ActionLog) -> None:
        await ctx.event_log.emit(ctx.wallet, record.event_id, record.encode_payload())
