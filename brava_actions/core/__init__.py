from brava_actions.core.actions.ActionBase import ActionBase
from brava_actions.core.admin_vault import AdminVaultClient, FeeConfig, InMemoryAdminVault
from brava_actions.core.event_log import EventLog, InMemoryEventLog
from brava_actions.core.simulation.chain import SimulatedChain

__all__ = [
    "ActionBase",
    "AdminVaultClient",
    "FeeConfig",
    "InMemoryAdminVault",
    "EventLog",
    "InMemoryEventLog",
    "SimulatedChain",
]
