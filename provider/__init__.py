"""
provider: Tree resource handlers, configuration and logging.

Public API:
    TreeResource        -- create/read/update/delete for one resource instance
    TreePlan            -- validated caller plan
    TreeResourceState   -- state to persist between reconciliations
    ProviderSettings    -- pydantic-settings configuration (TREEAPP_ env prefix)
    get_settings        -- cached settings loader
    configure_logging   -- JSON logging setup
"""

__version__ = "0.1.0"

from provider.config import ProviderSettings, get_settings
from provider.logging_config import configure_logging
from provider.models import PlantedTrees, TreePlan, TreeResourceState, validate_plan
from provider.resource import TreeResource, request_key

__all__ = [
    "__version__",
    "ProviderSettings",
    "get_settings",
    "configure_logging",
    "PlantedTrees",
    "TreePlan",
    "TreeResourceState",
    "validate_plan",
    "TreeResource",
    "request_key",
]
