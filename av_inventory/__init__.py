from .agent import InventoryAgent
from .config import ConfigManager
from .models import InventoryConfig
from .inventory import (
    ParseError,
    PresenceChecker,
    PresenceReport,
    Service,
    ServiceDictionary,
    ServiceMatch,
    Vendor,
    load_default_dictionary,
    load_dictionary,
    loads_dictionary,
)

__version__ = "1.0.0"
__all__ = [
    "InventoryAgent",
    "ConfigManager",
    "InventoryConfig",
    "ParseError",
    "PresenceChecker",
    "PresenceReport",
    "Service",
    "ServiceDictionary",
    "ServiceMatch",
    "Vendor",
    "load_default_dictionary",
    "load_dictionary",
    "loads_dictionary",
]
