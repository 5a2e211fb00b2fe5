"""Action parameter payloads.

Callers hand an action an opaque ABI-encoded tuple; each model here knows its
tuple layout and decodes into an immutable, validated value.
"""

from __future__ import annotations

from typing import Annotated, ClassVar, Self

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import is_address, to_checksum_address
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError

from brava_actions.core.constants.base import MAX_UINT256
from brava_actions.core.errors import InvalidInputError


class ActionParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    abi_type: ClassVar[str]

    def encode(self) -> bytes:
        values = tuple(getattr(self, name) for name in type(self).model_fields)
        return encode([self.abi_type], [values])

    @classmethod
    def decode(cls, call_data: bytes) -> Self:
        try:
            (values,) = decode([cls.abi_type], bytes(call_data))
        except (DecodingError, TypeError) as exc:
            raise InvalidInputError(f"malformed {cls.__name__} payload: {exc}") from exc
        try:
            return cls(**dict(zip(cls.model_fields, values, strict=True)))
        except ValidationError as exc:
            raise InvalidInputError(f"invalid {cls.__name__}: {exc}") from exc


def _check_bytes4(value: bytes) -> bytes:
    value = bytes(value)
    if len(value) != 4:
        raise ValueError(f"expected 4-byte id, got {len(value)} bytes")
    return value


def _check_address(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"invalid address: {value}")
    return to_checksum_address(value)


Uint16 = Annotated[int, Field(ge=0, lt=2**16)]
Uint256 = Annotated[int, Field(ge=0, le=MAX_UINT256)]
Bytes4 = Annotated[bytes, AfterValidator(_check_bytes4)]
Address = Annotated[str, AfterValidator(_check_address)]


class PoolParams(ActionParams):
    """Shared shape of every pool-scoped action: ``(poolId, feeBasis, ...)``."""

    pool_id: Bytes4
    fee_basis: Uint16


class SupplyParams(PoolParams):
    abi_type = "(bytes4,uint16,uint256,uint256)"

    amount: Uint256
    min_shares_received: Uint256 = 0


class WithdrawParams(PoolParams):
    abi_type = "(bytes4,uint16,uint256,uint256)"

    amount: Uint256
    max_shares_burned: Uint256 = MAX_UINT256


class ShareWithdrawParams(PoolParams):
    abi_type = "(bytes4,uint16,uint256,uint256)"

    shares_to_burn: Uint256
    min_underlying_received: Uint256 = 0


class WithdrawRequestParams(PoolParams):
    abi_type = "(bytes4,uint16,uint256)"

    shares_to_burn: Uint256


class AssetParams(PoolParams):
    """Rebasing-balance markets (Aave, Comet) carry no share bound."""

    abi_type = "(bytes4,uint16,uint256)"

    amount: Uint256

    @property
    def min_shares_received(self) -> int:
        return 0

    @property
    def max_shares_burned(self) -> int:
        return MAX_UINT256


class SendTokenParams(ActionParams):
    abi_type = "(address,address,uint256)"

    token: Address
    to: Address
    amount: Uint256


class PullTokenParams(ActionParams):
    abi_type = "(address,address,uint256)"

    token: Address
    sender: Address
    amount: Uint256


class SwapParams(ActionParams):
    abi_type = "(address,address,uint256,uint256,bytes)"

    token_in: Address
    token_out: Address
    from_amount: Uint256
    min_to_amount: Uint256
    swap_call_data: bytes
