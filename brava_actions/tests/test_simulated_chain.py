from __future__ import annotations

import pytest

from brava_actions.core.constants.base import MAX_UINT256, RAY
from brava_actions.core.errors import ExternalCallError
from brava_actions.core.simulation.chain import RebasingToken
from brava_actions.core.simulation.protocols import (
    SimulatedErc4626Vault,
    SimulatedSwapRouter,
)


@pytest.fixture
def alice(chain):
    return chain.new_address("alice")


@pytest.fixture
def bob(chain):
    return chain.new_address("bob")


def test_addresses_are_deterministic_and_distinct(chain, alice, bob):
    assert alice != bob
    assert alice.startswith("0x") and len(alice) == 42


@pytest.mark.asyncio
async def test_transfer_and_allowance(chain, usdc, alice, bob):
    chain.fund(usdc.address, alice, 100)

    await chain.approve(usdc.address, alice, bob, 60)
    await chain.transfer_from(usdc.address, bob, alice, bob, 50)

    assert await chain.balance_of(usdc.address, bob) == 50
    assert await chain.allowance(usdc.address, alice, bob) == 10
    with pytest.raises(ExternalCallError):
        await chain.transfer_from(usdc.address, bob, alice, bob, 11)
    with pytest.raises(ExternalCallError):
        await chain.transfer(usdc.address, bob, alice, 51)


@pytest.mark.asyncio
async def test_unlimited_allowance_is_not_spent(chain, usdc, alice, bob):
    chain.fund(usdc.address, alice, 100)
    usdc.approve(alice, bob, MAX_UINT256)

    await chain.transfer_from(usdc.address, bob, alice, bob, 100)

    assert usdc.allowance(alice, bob) == MAX_UINT256


@pytest.mark.asyncio
async def test_atomic_restores_every_registered_holder(chain, usdc, alice, bob, admin_vault, event_log):
    chain.fund(usdc.address, alice, 100)

    with pytest.raises(ExternalCallError):
        async with chain.atomic():
            await chain.transfer(usdc.address, alice, bob, 40)
            admin_vault.add_pool("FluidV1", bob)
            await event_log.emit(alice, 1, b"")
            await chain.transfer(usdc.address, alice, bob, 1_000)

    assert usdc.balance_of(alice) == 100
    assert usdc.balance_of(bob) == 0
    assert admin_vault.pools == {}
    assert event_log.entries == []


@pytest.mark.asyncio
async def test_atomic_keeps_changes_on_success(chain, usdc, alice, bob):
    chain.fund(usdc.address, alice, 100)

    async with chain.atomic():
        await chain.transfer(usdc.address, alice, bob, 40)

    assert usdc.balance_of(bob) == 40


def test_clock_only_moves_forward(chain):
    start = chain.timestamp
    assert chain.advance_time(10) == start + 10
    with pytest.raises(ValueError):
        chain.set_timestamp(start)
    with pytest.raises(ValueError):
        chain.advance_time(-1)


@pytest.mark.asyncio
async def test_unknown_addresses_fail_like_calls_to_eoas(chain, alice):
    with pytest.raises(ExternalCallError):
        await chain.balance_of(alice, alice)
    with pytest.raises(ExternalCallError):
        chain.contract_at(alice)


def test_rebasing_balances_follow_the_index(chain, alice, bob):
    token = chain.deploy(RebasingToken(chain.new_address("aUSDC"), "aUSDC", 6))
    token.mint(alice, 1_000)

    token.set_index(RAY * 3 // 2)
    assert token.balance_of(alice) == 1_500
    assert token.scaled_balance_of(alice) == 1_000

    token.transfer(alice, bob, 1_500)
    assert token.balance_of(alice) == 0
    assert token.balance_of(bob) == 1_500
    with pytest.raises(ValueError):
        token.set_index(RAY)


@pytest.mark.asyncio
async def test_erc4626_conversions_round_against_the_user(chain, usdc, alice):
    vault = chain.deploy(SimulatedErc4626Vault(chain.new_address("v"), usdc, "vUSDC"))
    chain.fund(usdc.address, alice, 1_000)
    usdc.approve(alice, vault.address, 1_000)
    await vault.deposit(1_000, alice, caller=alice)
    vault.accrue_yield(1)

    # 1000 shares are worth 1000 * 1002 // 1001 assets
    assert await vault.max_withdraw(alice) == 1_000
    shares = await vault.withdraw(1_000, alice, alice, caller=alice)
    assert shares == 1_000
    assert vault.balance_of(alice) == 0


@pytest.mark.asyncio
async def test_swap_router_returns_false_instead_of_raising(chain, usdc, alice):
    weth = chain.deploy_token("WETH")
    router = chain.deploy(SimulatedSwapRouter(chain.new_address("router")))
    router.set_rate(usdc, weth, 1, 2)
    chain.fund(usdc.address, alice, 100)
    data = SimulatedSwapRouter.encode_swap(usdc.address, weth.address, 100)

    # no allowance, then no inventory
    assert await router.call(data, caller=alice) is False
    usdc.approve(alice, router.address, 100)
    assert await router.call(data, caller=alice) is False

    chain.fund(weth.address, router.address, 50)
    assert await router.call(data, caller=alice) is True
    assert weth.balance_of(alice) == 50
