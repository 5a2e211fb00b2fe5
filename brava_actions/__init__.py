__version__ = "0.1.0"

from brava_actions.core import (
    ActionBase,
    AdminVaultClient,
    FeeConfig,
    InMemoryAdminVault,
    InMemoryEventLog,
    SimulatedChain,
)

__all__ = [
    "__version__",
    "ActionBase",
    "AdminVaultClient",
    "FeeConfig",
    "InMemoryAdminVault",
    "InMemoryEventLog",
    "SimulatedChain",
]
