from __future__ import annotations

from functools import lru_cache

from eth_abi import encode
from eth_utils import keccak, to_checksum_address


def pool_id_for(address: str) -> bytes:
    """Return the 4-byte identifier callers use to reference a pool or asset."""
    return keccak(hexstr=to_checksum_address(address))[:4]


@lru_cache(maxsize=256)
def protocol_id_for(protocol_name: str) -> int:
    """keccak256 of the ABI-encoded protocol name, as stored by the admin vault."""
    return int.from_bytes(keccak(encode(["string"], [protocol_name])), "big")


def format_pool_id(pool_id: bytes) -> str:
    return "0x" + bytes(pool_id).hex()
