"""Structured action events.

Each action publishes one ABI-encoded record per call. Indexers rebuild
position history purely from these records, so the payload layouts below are
part of the public interface.
"""

from __future__ import annotations

from typing import ClassVar, Protocol

from eth_abi import decode, encode
from eth_utils import to_checksum_address
from pydantic import BaseModel

from brava_actions.core.constants.actions import LogId
from brava_actions.core.simulation.chain import StateHolder


class EventLog(Protocol):
    async def emit(self, wallet: str, event_id: LogId, data: bytes) -> None: ...


class LogEntry(BaseModel):
    event_id: LogId
    wallet: str
    data: bytes


class ActionLog(BaseModel):
    event_id: ClassVar[LogId]
    abi_types: ClassVar[tuple[str, ...]]
    payload_fields: ClassVar[tuple[str, ...]]

    wallet: str

    def encode_payload(self) -> bytes:
        return encode(
            list(self.abi_types), [getattr(self, f) for f in self.payload_fields]
        )

    @classmethod
    def from_entry(cls, entry: LogEntry) -> ActionLog:
        values = decode(list(cls.abi_types), entry.data)
        fields = {
            name: to_checksum_address(value) if abi_type == "address" else value
            for name, abi_type, value in zip(
                cls.payload_fields, cls.abi_types, values, strict=True
            )
        }
        return cls(wallet=entry.wallet, **fields)


class BalanceUpdateLog(ActionLog):
    event_id = LogId.BALANCE_UPDATE
    abi_types = ("uint16", "bytes4", "uint256", "uint256", "uint256")
    payload_fields = (
        "strategy_id",
        "pool_id",
        "balance_before",
        "balance_after",
        "fee_in_tokens",
    )

    strategy_id: int
    pool_id: bytes
    balance_before: int
    balance_after: int
    fee_in_tokens: int


class WithdrawalRequestLog(ActionLog):
    event_id = LogId.WITHDRAWAL_REQUEST
    abi_types = ("uint16", "address", "uint256", "uint256")
    payload_fields = ("strategy_id", "pool_address", "shares_to_burn", "request_id")

    strategy_id: int
    pool_address: str
    shares_to_burn: int
    request_id: int


class SwapLog(ActionLog):
    event_id = LogId.SWAP
    abi_types = ("address", "address", "uint256", "uint256")
    payload_fields = ("token_in", "token_out", "amount_in", "amount_out")

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


class SendTokenLog(ActionLog):
    event_id = LogId.SEND_TOKEN
    abi_types = ("address", "address", "uint256")
    payload_fields = ("token", "counterparty", "amount")

    token: str
    counterparty: str
    amount: int


class PullTokenLog(SendTokenLog):
    event_id = LogId.PULL_TOKEN


LOG_MODELS: dict[LogId, type[ActionLog]] = {
    model.event_id: model
    for model in (
        BalanceUpdateLog,
        WithdrawalRequestLog,
        SwapLog,
        SendTokenLog,
        PullTokenLog,
    )
}


def decode_log(entry: LogEntry) -> ActionLog:
    model = LOG_MODELS.get(entry.event_id)
    if model is None:
        raise ValueError(f"unknown log id {entry.event_id}")
    return model.from_entry(entry)


class InMemoryEventLog(StateHolder):
    _state_fields = ("entries",)

    def __init__(self):
        self.entries: list[LogEntry] = []

    async def emit(self, wallet: str, event_id: LogId, data: bytes) -> None:
        self.entries.append(
            LogEntry(
                event_id=LogId(event_id),
                wallet=to_checksum_address(wallet),
                data=bytes(data),
            )
        )

    def decoded(self, wallet: str | None = None) -> list[ActionLog]:
        entries = self.entries
        if wallet is not None:
            wallet = to_checksum_address(wallet)
            entries = [e for e in entries if e.wallet == wallet]
        return [decode_log(e) for e in entries]


async def record_balance_update(
    event_log: EventLog,
    wallet: str,
    *,
    strategy_id: int,
    pool_id: bytes,
    balance_before: int,
    balance_after: int,
    fee_in_tokens: int,
) -> BalanceUpdateLog:
    record = BalanceUpdateLog(
        wallet=wallet,
        strategy_id=strategy_id,
        pool_id=pool_id,
        balance_before=balance_before,
        balance_after=balance_after,
        fee_in_tokens=fee_in_tokens,
    )
    await event_log.emit(wallet, record.event_id, record.encode_payload())
    return record
