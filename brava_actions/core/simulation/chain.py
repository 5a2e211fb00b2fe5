"""In-memory execution host.

``SimulatedChain`` stands in for the chain a wallet executes actions on: it
keeps ERC20 balances and allowances, a block clock, the contracts deployed at
each address, and can snapshot/restore every piece of registered state so a
failing action leaves nothing behind.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from eth_utils import keccak, to_checksum_address
from loguru import logger

from brava_actions.core.config import get_simulation_settings
from brava_actions.core.constants.base import MAX_UINT256, RAY
from brava_actions.core.errors import ExternalCallError


class StateHolder:
    """Mixin for objects whose mutable state takes part in ``atomic()`` rollback."""

    _state_fields: tuple[str, ...] = ()

    def snapshot(self) -> dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._state_fields}

    def restore(self, state: dict[str, Any]) -> None:
        for name, value in state.items():
            setattr(self, name, value)


class ERC20Token(StateHolder):
    _state_fields = ("balances", "allowances", "_supply")

    def __init__(self, address: str, symbol: str, decimals: int = 18):
        self.address = to_checksum_address(address)
        self.symbol = symbol
        self.decimals = int(decimals)
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self._supply = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.symbol}@{self.address})"

    def total_supply(self) -> int:
        return self._supply

    def balance_of(self, owner: str) -> int:
        return self.balances.get(to_checksum_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        return self.allowances.get(key, 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ExternalCallError(f"{self.symbol}: negative approval")
        key = (to_checksum_address(owner), to_checksum_address(spender))
        self.allowances[key] = int(amount)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        amount = int(amount)
        if amount < 0:
            raise ExternalCallError(f"{self.symbol}: negative transfer")
        if self.balance_of(sender) < amount:
            raise ExternalCallError(f"{self.symbol}: transfer amount exceeds balance")
        self._move(to_checksum_address(sender), to_checksum_address(recipient), amount)

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        owner = to_checksum_address(owner)
        spender = to_checksum_address(spender)
        if spender != owner:
            allowed = self.allowance(owner, spender)
            if allowed < amount:
                raise ExternalCallError(f"{self.symbol}: insufficient allowance")
            if self.balance_of(owner) < amount:
                raise ExternalCallError(
                    f"{self.symbol}: transfer amount exceeds balance"
                )
            if allowed != MAX_UINT256:
                self.allowances[(owner, spender)] = allowed - int(amount)
        self.transfer(owner, recipient, amount)

    def mint(self, to: str, amount: int) -> None:
        to = to_checksum_address(to)
        self.balances[to] = self.balances.get(to, 0) + int(amount)
        self._supply += int(amount)

    def burn(self, owner: str, amount: int) -> None:
        owner = to_checksum_address(owner)
        if self.balance_of(owner) < amount:
            raise ExternalCallError(f"{self.symbol}: burn amount exceeds balance")
        self.balances[owner] -= int(amount)
        self._supply -= int(amount)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self.balances[sender] = self.balances.get(sender, 0) - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount


class RebasingToken(ERC20Token):
    """Interest-bearing balance token (aToken / Comet style).

    Balances are stored scaled by a liquidity index; the visible balance grows
    as the index grows.
    """

    _state_fields = ("balances", "allowances", "_supply", "index")

    def __init__(self, address: str, symbol: str, decimals: int = 18):
        super().__init__(address, symbol, decimals)
        self.index = RAY

    def total_supply(self) -> int:
        return self._supply * self.index // RAY

    def balance_of(self, owner: str) -> int:
        return self.scaled_balance_of(owner) * self.index // RAY

    def scaled_balance_of(self, owner: str) -> int:
        return self.balances.get(to_checksum_address(owner), 0)

    def set_index(self, index: int) -> None:
        if index < self.index:
            raise ValueError("liquidity index cannot decrease")
        self.index = int(index)

    def _to_scaled(self, owner: str, amount: int) -> int:
        if amount == self.balance_of(owner):
            return self.scaled_balance_of(owner)
        return (amount * RAY + self.index // 2) // self.index

    def mint(self, to: str, amount: int) -> None:
        scaled = (int(amount) * RAY + self.index // 2) // self.index
        to = to_checksum_address(to)
        self.balances[to] = self.balances.get(to, 0) + scaled
        self._supply += scaled

    def burn(self, owner: str, amount: int) -> None:
        owner = to_checksum_address(owner)
        if self.balance_of(owner) < amount:
            raise ExternalCallError(f"{self.symbol}: burn amount exceeds balance")
        scaled = min(self._to_scaled(owner, int(amount)), self.balances.get(owner, 0))
        self.balances[owner] -= scaled
        self._supply -= scaled

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        scaled = min(self._to_scaled(sender, amount), self.balances.get(sender, 0))
        self.balances[sender] = self.balances.get(sender, 0) - scaled
        self.balances[recipient] = self.balances.get(recipient, 0) + scaled


class SimulatedChain:
    def __init__(self, *, timestamp: int | None = None):
        self.timestamp = (
            int(timestamp)
            if timestamp is not None
            else get_simulation_settings()["genesis_timestamp"]
        )
        self.tokens: dict[str, ERC20Token] = {}
        self.contracts: dict[str, Any] = {}
        self._holders: list[StateHolder] = []
        self._nonce = 0

    def new_address(self, label: str = "contract") -> str:
        self._nonce += 1
        digest = keccak(text=f"{label}:{self._nonce}")
        return to_checksum_address(digest[-20:])

    def register(self, holder: StateHolder) -> StateHolder:
        if holder not in self._holders:
            self._holders.append(holder)
        return holder

    def deploy(self, contract: Any) -> Any:
        address = to_checksum_address(contract.address)
        if address in self.contracts:
            raise ValueError(f"address already in use: {address}")
        self.contracts[address] = contract
        if isinstance(contract, ERC20Token):
            self.tokens[address] = contract
        if isinstance(contract, StateHolder):
            self.register(contract)
        logger.debug(f"[sim] deployed {contract!r}")
        return contract

    def deploy_token(self, symbol: str, decimals: int = 18) -> ERC20Token:
        return self.deploy(ERC20Token(self.new_address(symbol), symbol, decimals))

    def contract_at(self, address: str) -> Any:
        contract = self.contracts.get(to_checksum_address(address))
        if contract is None:
            raise ExternalCallError(f"call to non-contract address {address}")
        return contract

    def token(self, address: str) -> ERC20Token:
        token = self.tokens.get(to_checksum_address(address))
        if token is None:
            raise ExternalCallError(f"call to non-token address {address}")
        return token

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        self.timestamp += int(seconds)
        return self.timestamp

    def set_timestamp(self, timestamp: int) -> int:
        if timestamp < self.timestamp:
            raise ValueError("cannot move the clock backwards")
        self.timestamp = int(timestamp)
        return self.timestamp

    def fund(self, token: str, owner: str, amount: int) -> None:
        self.token(token).mint(owner, amount)

    async def block_timestamp(self) -> int:
        return self.timestamp

    async def balance_of(self, token: str, owner: str) -> int:
        return self.token(token).balance_of(owner)

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return self.token(token).allowance(owner, spender)

    async def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        self.token(token).approve(owner, spender, amount)

    async def transfer(
        self, token: str, sender: str, recipient: str, amount: int
    ) -> None:
        self.token(token).transfer(sender, recipient, amount)

    async def transfer_from(
        self, token: str, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        self.token(token).transfer_from(spender, owner, recipient, amount)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[SimulatedChain]:
        snapshots = [(holder, holder.snapshot()) for holder in self._holders]
        try:
            yield self
        except BaseException:
            for holder, state in snapshots:
                holder.restore(state)
            raise
