#!/usr/bin/env python3
"""Dry run of a deposit / accrue / harvest / withdraw cycle on the simulated chain."""

from __future__ import annotations

import argparse
import asyncio
import json

from loguru import logger

from brava_actions.adapters.erc4626_adapter.adapter import Erc4626Supply, Erc4626Withdraw
from brava_actions.core.actions.params import SupplyParams, WithdrawParams
from brava_actions.core.admin_vault import FeeConfig, InMemoryAdminVault
from brava_actions.core.config import get_fee_settings, load_config
from brava_actions.core.constants.base import MAX_UINT256
from brava_actions.core.event_log import InMemoryEventLog
from brava_actions.core.simulation.chain import SimulatedChain
from brava_actions.core.simulation.protocols import SimulatedErc4626Vault

DEFAULT_FEE_RECIPIENT = "0x000000000000000000000000000000000000fee5"
DAY = 24 * 60 * 60


def _admin_vault() -> InMemoryAdminVault:
    if get_fee_settings()["recipient"]:
        return InMemoryAdminVault.from_config()
    logger.info(f"fees.recipient not configured, using {DEFAULT_FEE_RECIPIENT}")
    return InMemoryAdminVault(FeeConfig(recipient=DEFAULT_FEE_RECIPIENT))


def _event_json(log) -> dict:
    fields = {
        name: "0x" + value.hex() if isinstance(value, bytes) else value
        for name, value in log.model_dump(exclude={"wallet"}).items()
    }
    return {"event": type(log).__name__, **fields}


async def _run(args: argparse.Namespace) -> dict:
    load_config(args.config, require_exists=bool(args.config))

    chain = SimulatedChain()
    admin_vault = chain.register(_admin_vault())
    event_log = chain.register(InMemoryEventLog())
    usdc = chain.deploy_token("USDC", 6)
    vault = chain.deploy(SimulatedErc4626Vault(chain.new_address("vault"), usdc, "vUSDC"))
    pool_id = admin_vault.add_pool(args.protocol, vault.address)
    wallet = chain.new_address("safe")

    amount = int(args.amount * 10**usdc.decimals)
    chain.fund(usdc.address, wallet, amount)

    kwargs = {"admin_vault": admin_vault, "event_log": event_log, "chain": chain}
    supply = Erc4626Supply(protocol_name=args.protocol, **kwargs)
    withdraw = Erc4626Withdraw(protocol_name=args.protocol, **kwargs)

    deposit = SupplyParams(pool_id=pool_id, fee_basis=args.fee_basis, amount=amount)
    await supply.execute_action(deposit.encode(), args.strategy_id, wallet=wallet)

    for _ in range(args.harvests):
        chain.advance_time(args.days * DAY)
        vault.accrue_yield(amount * args.yield_bps * args.days // (10_000 * 365))
        harvest = SupplyParams(pool_id=pool_id, fee_basis=args.fee_basis, amount=0)
        await supply.execute_action(harvest.encode(), args.strategy_id, wallet=wallet)

    exit_params = WithdrawParams(
        pool_id=pool_id, fee_basis=args.fee_basis, amount=MAX_UINT256
    )
    await withdraw.execute_action(exit_params.encode(), args.strategy_id, wallet=wallet)

    fee_recipient = (await admin_vault.get_fee_config()).recipient
    return {
        "wallet": wallet,
        "pool_id": "0x" + pool_id.hex(),
        "deposited": amount,
        "withdrawn": usdc.balance_of(wallet),
        "fee_shares": vault.balance_of(fee_recipient),
        "events": [_event_json(log) for log in event_log.decoded(wallet)],
    }


def main() -> None:
    p = argparse.ArgumentParser(
        description="Simulate management-fee accrual on an ERC4626 position (dry run)."
    )
    p.add_argument("--config", default=None, help="Config path (default: config.json)")
    p.add_argument("--protocol", default="ERC4626")
    p.add_argument("--amount", type=float, default=1_000.0, help="USDC to deposit")
    p.add_argument("--fee-basis", type=int, default=100)
    p.add_argument("--yield-bps", type=int, default=500, help="Vault APY in bps")
    p.add_argument("--days", type=int, default=30, help="Days between harvests")
    p.add_argument("--harvests", type=int, default=12)
    p.add_argument("--strategy-id", type=int, default=1)
    args = p.parse_args()

    summary = asyncio.run(_run(args))
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
