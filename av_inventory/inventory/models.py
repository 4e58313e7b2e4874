"""Pydantic v2 models for the security product inventory."""

import uuid
from datetime import datetime
from enum import Enum
from pathlib import PureWindowsPath
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class MatchField(str, Enum):
    EXECUTABLE = "executable"
    SERVICE_NAME = "service_name"


class Service(BaseModel):
    """A known Windows service shipped by a security vendor.

    Field aliases follow the reference table (``SvcName``, ``Executable``,
    ``Description``). ``svc_name`` is not unique across vendors and
    ``executable`` is not unique across services. Field names are accepted
    when building records in code; the table loader accepts aliases only.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    svc_name: StrictStr = Field(alias="SvcName", min_length=1)
    executable: StrictStr = Field(alias="Executable", min_length=1)
    description: StrictStr = Field(alias="Description")

    @field_validator("svc_name", "executable")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @property
    def executable_name(self) -> str:
        """File name of the executable without any subdirectory (``x86\\a.exe`` -> ``a.exe``)."""
        return PureWindowsPath(self.executable).name


class VendorEntry(BaseModel):
    """Shape of one vendor value in the reference table."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    services: List[Service] = Field(alias="Services")


class Vendor(BaseModel):
    """A security vendor and its ordered list of known services."""

    model_config = ConfigDict(frozen=True)

    name: str
    services: Tuple[Service, ...] = ()


class ServiceMatch(BaseModel):
    """A known service found among the observed entries of a host."""

    model_config = ConfigDict(frozen=True)

    vendor: str
    service: Service
    matched_on: Tuple[MatchField, ...]
    observed: Tuple[str, ...]


class PresenceReport(BaseModel):
    """Result of intersecting observed entries with the service dictionary."""

    report_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    observed_count: int = 0
    matches: List[ServiceMatch] = Field(default_factory=list)
    unmatched: List[str] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=datetime.now)
    dictionary_digest: Optional[str] = None
    hostname: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.matches

    @property
    def matches_count(self) -> int:
        return len(self.matches)

    @property
    def vendors_detected(self) -> List[str]:
        vendors: List[str] = []
        for match in self.matches:
            if match.vendor not in vendors:
                vendors.append(match.vendor)
        return vendors

    def matches_for(self, vendor: str) -> List[ServiceMatch]:
        return [m for m in self.matches if m.vendor == vendor]


class HostObservation(BaseModel):
    """Process and service names seen running on a host."""

    hostname: str = ""
    processes: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    collected_at: datetime = Field(default_factory=datetime.now)

    def entries(self) -> List[str]:
        return self.processes + self.services


class Finding(BaseModel):
    """A presence match normalized for downstream reporting."""

    finding_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: str
    category: str
    title: str
    description: str
    target: str
    raw_data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)
