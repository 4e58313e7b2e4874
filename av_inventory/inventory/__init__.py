"""Security product inventory.

Loads the vendor service reference table (McAfee, Sophos, CrowdStrike,
Symantec) and reports which known vendor services are present among the
process and service names observed on a host.
"""

from .models import (
    Finding,
    HostObservation,
    MatchField,
    PresenceReport,
    Service,
    ServiceMatch,
    Vendor,
)
from .loader import (
    DEFAULT_DICTIONARY_PATH,
    ParseError,
    ServiceDictionary,
    load_default_dictionary,
    load_dictionary,
    loads_dictionary,
)
from .checker import PresenceChecker, findings, report_payload
from .collectors import HostCollector, parse_observed_text

__all__ = [
    "Finding",
    "HostObservation",
    "MatchField",
    "PresenceReport",
    "Service",
    "ServiceMatch",
    "Vendor",
    "DEFAULT_DICTIONARY_PATH",
    "ParseError",
    "ServiceDictionary",
    "load_default_dictionary",
    "load_dictionary",
    "loads_dictionary",
    "PresenceChecker",
    "findings",
    "report_payload",
    "HostCollector",
    "parse_observed_text",
]
