from __future__ import annotations

import pytest

from brava_actions.adapters.erc4626_adapter.adapter import (
    Erc4626Supply,
    Erc4626Withdraw,
)
from brava_actions.core.actions.params import SupplyParams, WithdrawParams
from brava_actions.core.constants.actions import ActionType
from brava_actions.core.constants.base import MAX_UINT256, SECONDS_PER_YEAR
from brava_actions.core.errors import (
    BoundExceededError,
    FeeTimestampNotInitializedError,
    InvalidFeeBasisError,
    InvalidPoolError,
    SlippageExceededError,
    ZeroAmountError,
)
from brava_actions.core.event_log import BalanceUpdateLog
from brava_actions.core.simulation.protocols import SimulatedErc4626Vault
from brava_actions.core.utils.ids import protocol_id_for
from brava_actions.testing.fixtures import GENESIS_TIMESTAMP

PROTOCOL = "FluidV1"
UNIT = 10**6


@pytest.fixture
def vault(chain, usdc):
    return chain.deploy(SimulatedErc4626Vault(chain.new_address("fUSDC"), usdc, "fUSDC"))


@pytest.fixture
def pool_id(admin_vault, vault):
    return admin_vault.add_pool(PROTOCOL, vault.address)


@pytest.fixture
def supply(action_kwargs):
    return Erc4626Supply(protocol_name=PROTOCOL, **action_kwargs)


@pytest.fixture
def withdraw(action_kwargs):
    return Erc4626Withdraw(protocol_name=PROTOCOL, **action_kwargs)


async def _supply(action, wallet, pool_id, amount, *, fee_basis=0, min_shares=0):
    params = SupplyParams(
        pool_id=pool_id,
        fee_basis=fee_basis,
        amount=amount,
        min_shares_received=min_shares,
    )
    await action.execute_action(params.encode(), 1, wallet=wallet)


async def _withdraw(action, wallet, pool_id, amount, *, fee_basis=0, max_burn=MAX_UINT256):
    params = WithdrawParams(
        pool_id=pool_id,
        fee_basis=fee_basis,
        amount=amount,
        max_shares_burned=max_burn,
    )
    await action.execute_action(params.encode(), 1, wallet=wallet)


def test_action_metadata(supply, withdraw):
    assert supply.action_type == ActionType.DEPOSIT
    assert withdraw.action_type == ActionType.WITHDRAW
    assert supply.protocol_name == PROTOCOL
    assert Erc4626Supply.protocol_name == "ERC4626"


@pytest.mark.asyncio
async def test_first_deposit_starts_fee_clock(
    chain, usdc, vault, pool_id, supply, admin_vault, event_log, wallet
):
    chain.fund(usdc.address, wallet, 1_000 * UNIT)

    await _supply(supply, wallet, pool_id, 1_000 * UNIT, fee_basis=100)

    assert vault.balance_of(wallet) == 1_000 * UNIT
    assert usdc.balance_of(wallet) == 0
    assert usdc.allowance(wallet, vault.address) == 0
    assert (
        await admin_vault.get_last_fee_timestamp(
            wallet, protocol_id_for(PROTOCOL), vault.address
        )
        == GENESIS_TIMESTAMP
    )
    (log,) = event_log.decoded(wallet)
    assert isinstance(log, BalanceUpdateLog)
    assert log.strategy_id == 1
    assert log.pool_id == pool_id
    assert (log.balance_before, log.balance_after, log.fee_in_tokens) == (
        0,
        1_000 * UNIT,
        0,
    )


@pytest.mark.asyncio
async def test_max_amount_deposits_whole_balance(chain, usdc, vault, pool_id, supply, wallet):
    chain.fund(usdc.address, wallet, 500 * UNIT)

    await _supply(supply, wallet, pool_id, MAX_UINT256)

    assert vault.balance_of(wallet) == 500 * UNIT
    assert usdc.balance_of(wallet) == 0


@pytest.mark.asyncio
async def test_max_amount_with_empty_wallet_is_zero_amount(pool_id, supply, wallet, event_log):
    with pytest.raises(ZeroAmountError):
        await _supply(supply, wallet, pool_id, MAX_UINT256)
    assert event_log.entries == []


@pytest.mark.asyncio
async def test_fee_only_deposit_after_a_year(
    chain, usdc, vault, pool_id, supply, wallet, fee_recipient, event_log
):
    chain.fund(usdc.address, wallet, 1_000 * UNIT)
    await _supply(supply, wallet, pool_id, 1_000 * UNIT, fee_basis=50)
    chain.advance_time(SECONDS_PER_YEAR)

    await _supply(supply, wallet, pool_id, 0, fee_basis=50)

    assert vault.balance_of(fee_recipient) == 5 * UNIT
    assert vault.balance_of(wallet) == 995 * UNIT
    last = event_log.decoded(wallet)[-1]
    assert (last.balance_before, last.balance_after, last.fee_in_tokens) == (
        1_000 * UNIT,
        995 * UNIT,
        5 * UNIT,
    )


@pytest.mark.asyncio
async def test_deposit_below_min_shares_reverts_everything(
    chain, usdc, vault, pool_id, supply, wallet, admin_vault, event_log
):
    chain.fund(usdc.address, wallet, 100 * UNIT)

    with pytest.raises(SlippageExceededError) as exc_info:
        await _supply(supply, wallet, pool_id, 100 * UNIT, min_shares=100 * UNIT + 1)

    assert str(exc_info.value).startswith(f"{PROTOCOL} DEPOSIT:")
    assert usdc.balance_of(wallet) == 100 * UNIT
    assert vault.balance_of(wallet) == 0
    assert admin_vault.fee_timestamps == {}
    assert event_log.entries == []


@pytest.mark.asyncio
async def test_unregistered_pool_is_rejected(supply, wallet):
    with pytest.raises(InvalidPoolError) as exc_info:
        await _supply(supply, wallet, b"\xde\xad\xbe\xef", 1)
    assert exc_info.value.protocol_name == PROTOCOL
    assert exc_info.value.action_type == ActionType.DEPOSIT


@pytest.mark.asyncio
async def test_pool_registered_under_other_protocol_is_rejected(
    action_kwargs, pool_id, wallet
):
    other = Erc4626Supply(protocol_name="MorphoV1", **action_kwargs)
    with pytest.raises(InvalidPoolError):
        await _supply(other, wallet, pool_id, 1)


@pytest.mark.asyncio
async def test_fee_basis_outside_range_is_rejected(admin_vault, pool_id, supply, wallet):
    admin_vault.set_fee_range(0, 100)
    with pytest.raises(InvalidFeeBasisError):
        await _supply(supply, wallet, pool_id, 1, fee_basis=101)


@pytest.mark.asyncio
async def test_withdraw_max_after_a_year(
    chain, usdc, vault, pool_id, supply, withdraw, wallet, fee_recipient, event_log
):
    chain.fund(usdc.address, wallet, 1_000 * UNIT)
    await _supply(supply, wallet, pool_id, 1_000 * UNIT, fee_basis=100)
    chain.advance_time(SECONDS_PER_YEAR)

    await _withdraw(withdraw, wallet, pool_id, MAX_UINT256, fee_basis=100)

    assert vault.balance_of(fee_recipient) == 10 * UNIT
    assert vault.balance_of(wallet) == 0
    assert usdc.balance_of(wallet) == 990 * UNIT
    last = event_log.decoded(wallet)[-1]
    assert (last.balance_before, last.balance_after, last.fee_in_tokens) == (
        1_000 * UNIT,
        0,
        10 * UNIT,
    )


@pytest.mark.asyncio
async def test_withdraw_over_request_is_clamped(
    chain, usdc, vault, pool_id, supply, withdraw, wallet
):
    chain.fund(usdc.address, wallet, 500 * UNIT)
    await _supply(supply, wallet, pool_id, 500 * UNIT)

    await _withdraw(withdraw, wallet, pool_id, 2_000 * UNIT)

    assert usdc.balance_of(wallet) == 500 * UNIT
    assert vault.balance_of(wallet) == 0


@pytest.mark.asyncio
async def test_withdraw_bound_failure_rolls_back_fee(
    chain, usdc, vault, pool_id, supply, withdraw, wallet, admin_vault, fee_recipient
):
    chain.fund(usdc.address, wallet, 1_000 * UNIT)
    await _supply(supply, wallet, pool_id, 1_000 * UNIT, fee_basis=100)
    chain.advance_time(SECONDS_PER_YEAR)

    with pytest.raises(BoundExceededError):
        await _withdraw(withdraw, wallet, pool_id, 100 * UNIT, fee_basis=100, max_burn=1)

    assert vault.balance_of(fee_recipient) == 0
    assert vault.balance_of(wallet) == 1_000 * UNIT
    assert (
        await admin_vault.get_last_fee_timestamp(
            wallet, protocol_id_for(PROTOCOL), vault.address
        )
        == GENESIS_TIMESTAMP
    )


@pytest.mark.asyncio
async def test_withdraw_without_fee_clock_fails(vault, pool_id, withdraw, wallet):
    vault.mint(wallet, 100)
    with pytest.raises(FeeTimestampNotInitializedError):
        await _withdraw(withdraw, wallet, pool_id, 100)


@pytest.mark.asyncio
async def test_exit_position_withdraws_everything(
    chain, usdc, vault, pool_id, supply, withdraw, wallet, event_log
):
    chain.fund(usdc.address, wallet, 250 * UNIT)
    await _supply(supply, wallet, pool_id, 250 * UNIT)

    update = await withdraw.exit_position(pool_id, 7, wallet=wallet)

    assert update.balance_after == 0
    assert usdc.balance_of(wallet) == 250 * UNIT
    last = event_log.decoded(wallet)[-1]
    assert last.strategy_id == 7
    assert last.balance_before == 250 * UNIT


@pytest.mark.asyncio
async def test_exit_on_empty_position_still_logs(pool_id, withdraw, wallet, event_log):
    update = await withdraw.exit_position(pool_id, 1, wallet=wallet)

    assert (update.balance_before, update.balance_after, update.fee_in_tokens) == (0, 0, 0)
    assert len(event_log.entries) == 1
