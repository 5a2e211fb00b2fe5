from __future__ import annotations

from typing import Protocol

from eth_utils import is_address, to_checksum_address
from loguru import logger
from pydantic import BaseModel, field_validator, model_validator

from brava_actions.core.config import get_fee_settings
from brava_actions.core.constants.base import FEE_BASIS_POINTS, ZERO_ADDRESS
from brava_actions.core.errors import InvalidInputError
from brava_actions.core.simulation.chain import StateHolder
from brava_actions.core.utils.ids import pool_id_for, protocol_id_for


class FeeConfig(BaseModel):
    recipient: str
    min_basis: int = 0
    max_basis: int = FEE_BASIS_POINTS

    @field_validator("recipient")
    @classmethod
    def _checksum_recipient(cls, value: str) -> str:
        if not is_address(value):
            raise ValueError(f"invalid fee recipient: {value}")
        return to_checksum_address(value)

    @model_validator(mode="after")
    def _check_range(self) -> FeeConfig:
        if not 0 <= self.min_basis <= self.max_basis <= FEE_BASIS_POINTS:
            raise ValueError(
                f"invalid fee range [{self.min_basis}, {self.max_basis}]"
            )
        return self


class AdminVaultClient(Protocol):
    """Pool registry, fee configuration and fee-timestamp store used by actions."""

    async def get_pool_address(self, protocol_name: str, pool_id: bytes) -> str | None: ...

    async def get_fee_config(self) -> FeeConfig: ...

    async def validate_fee_basis(self, fee_basis: int) -> bool: ...

    async def get_last_fee_timestamp(
        self, wallet: str, protocol_id: int, pool: str
    ) -> int: ...

    async def set_fee_timestamp(
        self, wallet: str, protocol_id: int, pool: str, timestamp: int
    ) -> None: ...


class InMemoryAdminVault(StateHolder):
    _state_fields = ("pools", "fee_timestamps", "fee_config")

    def __init__(self, fee_config: FeeConfig):
        self.fee_config = fee_config
        # (protocol_id, pool_id) -> pool address
        self.pools: dict[tuple[int, bytes], str] = {}
        # (wallet, protocol_id, pool address) -> unix timestamp of last fee
        self.fee_timestamps: dict[tuple[str, int, str], int] = {}

    @classmethod
    def from_config(cls) -> InMemoryAdminVault:
        settings = get_fee_settings()
        if not settings["recipient"]:
            raise ValueError("fees.recipient not configured")
        return cls(FeeConfig(**settings))

    def add_pool(self, protocol_name: str, pool_address: str) -> bytes:
        if not is_address(pool_address) or int(pool_address, 16) == int(
            ZERO_ADDRESS, 16
        ):
            raise InvalidInputError(f"invalid pool address: {pool_address}")
        address = to_checksum_address(pool_address)
        pool_id = pool_id_for(address)
        key = (protocol_id_for(protocol_name), pool_id)
        existing = self.pools.get(key)
        if existing is not None and existing != address:
            raise InvalidInputError(
                f"pool id 0x{pool_id.hex()} already registered for {protocol_name}"
            )
        self.pools[key] = address
        logger.debug(f"[admin_vault] {protocol_name} pool 0x{pool_id.hex()} -> {address}")
        return pool_id

    def remove_pool(self, protocol_name: str, pool_address: str) -> None:
        key = (protocol_id_for(protocol_name), pool_id_for(pool_address))
        if self.pools.pop(key, None) is None:
            raise InvalidInputError(f"{protocol_name} pool {pool_address} not found")

    def set_fee_range(self, min_basis: int, max_basis: int) -> None:
        if not 0 <= min_basis <= max_basis <= FEE_BASIS_POINTS:
            raise InvalidInputError(f"invalid fee range [{min_basis}, {max_basis}]")
        self.fee_config = self.fee_config.model_copy(
            update={"min_basis": min_basis, "max_basis": max_basis}
        )

    def set_fee_recipient(self, recipient: str) -> None:
        self.fee_config = FeeConfig(
            recipient=recipient,
            min_basis=self.fee_config.min_basis,
            max_basis=self.fee_config.max_basis,
        )

    async def get_pool_address(self, protocol_name: str, pool_id: bytes) -> str | None:
        return self.pools.get((protocol_id_for(protocol_name), bytes(pool_id)))

    async def get_fee_config(self) -> FeeConfig:
        return self.fee_config

    async def validate_fee_basis(self, fee_basis: int) -> bool:
        return self.fee_config.min_basis <= fee_basis <= self.fee_config.max_basis

    async def get_last_fee_timestamp(
        self, wallet: str, protocol_id: int, pool: str
    ) -> int:
        key = (to_checksum_address(wallet), protocol_id, to_checksum_address(pool))
        return self.fee_timestamps.get(key, 0)

    async def set_fee_timestamp(
        self, wallet: str, protocol_id: int, pool: str, timestamp: int
    ) -> None:
        key = (to_checksum_address(wallet), protocol_id, to_checksum_address(pool))
        self.fee_timestamps[key] = int(timestamp)
