"""pytest plugin with an in-memory host for action tests.

Every fixture here is wired to one ``SimulatedChain`` so that the admin vault
and the event log take part in its ``atomic()`` rollback.
"""

import pytest
from loguru import logger

from brava_actions.core.admin_vault import FeeConfig, InMemoryAdminVault
from brava_actions.core.event_log import InMemoryEventLog
from brava_actions.core.simulation.chain import SimulatedChain

GENESIS_TIMESTAMP = 1_700_000_000
FEE_RECIPIENT = "0x000000000000000000000000000000000000fee5"


@pytest.fixture
def chain():
    sim = SimulatedChain(timestamp=GENESIS_TIMESTAMP)
    logger.debug(f"[sim] chain at {sim.timestamp}")
    return sim


@pytest.fixture
def fee_recipient():
    return FEE_RECIPIENT


@pytest.fixture
def admin_vault(chain, fee_recipient):
    return chain.register(InMemoryAdminVault(FeeConfig(recipient=fee_recipient)))


@pytest.fixture
def event_log(chain):
    return chain.register(InMemoryEventLog())


@pytest.fixture
def wallet(chain):
    return chain.new_address("safe")


@pytest.fixture
def action_kwargs(chain, admin_vault, event_log):
    return {"admin_vault": admin_vault, "event_log": event_log, "chain": chain}


@pytest.fixture
def usdc(chain):
    return chain.deploy_token("USDC", 6)
