"""Capabilities a protocol binding provides to the orchestration functions.

A binding wraps one pool/vault/market of one protocol. Amounts are raw integer
token units. ``fee_token`` is the token the position (and therefore the fee)
is denominated in: vault shares, an aToken, a Comet balance, ...
"""

from __future__ import annotations

from typing import Protocol


class PositionReader(Protocol):
    fee_token: str

    async def position_balance(self, wallet: str) -> int: ...


class Depositor(Protocol):
    async def underlying(self) -> str: ...

    async def deposit_spender(self) -> str:
        """Address that must be allowed to pull the underlying on deposit."""
        ...

    async def deposit(self, wallet: str, amount: int) -> int:
        """Deposit ``amount`` underlying; return position units received."""
        ...


class MaxWithdrawable(Protocol):
    async def max_withdraw(self, wallet: str) -> int: ...


class Withdrawer(Protocol):
    async def withdraw(self, wallet: str, amount: int) -> int:
        """Withdraw ``amount`` underlying; return position units burned."""
        ...


class ShareRedeemer(Protocol):
    async def redeem(self, wallet: str, shares: int) -> int:
        """Burn ``shares``; return underlying received."""
        ...


class RedemptionQueue(Protocol):
    async def request_redeem(self, wallet: str, shares: int) -> int:
        """Queue ``shares`` for redemption; return the request id."""
        ...


class SupplyBinding(PositionReader, Depositor, Protocol):
    pass


class WithdrawBinding(PositionReader, MaxWithdrawable, Withdrawer, Protocol):
    pass


class ShareWithdrawBinding(PositionReader, ShareRedeemer, Protocol):
    pass


class WithdrawRequestBinding(PositionReader, RedemptionQueue, Protocol):
    pass
