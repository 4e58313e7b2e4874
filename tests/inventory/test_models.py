"""Tests for inventory Pydantic models."""

import pytest
from datetime import datetime
from pydantic import ValidationError

from av_inventory.inventory.models import (
    HostObservation,
    MatchField,
    PresenceReport,
    Service,
    ServiceMatch,
    Vendor,
)


def _service(name="Acme Shield", exe="shield.exe", desc="scanner"):
    return Service(SvcName=name, Executable=exe, Description=desc)


class TestService:
    def test_creation_by_alias(self):
        svc = _service()
        assert svc.svc_name == "Acme Shield"
        assert svc.executable == "shield.exe"
        assert svc.description == "scanner"

    def test_construct_in_code_by_field_name(self):
        svc = Service(svc_name="A", executable="a.exe", description="")
        assert svc.svc_name == "A"

    def test_dump_uses_table_field_names(self):
        data = _service().model_dump(by_alias=True)
        assert data == {
            "SvcName": "Acme Shield",
            "Executable": "shield.exe",
            "Description": "scanner",
        }

    def test_executable_name_strips_subdirectory(self):
        svc = _service(exe="x86\\macompatsvc.exe")
        assert svc.executable_name == "macompatsvc.exe"

    def test_frozen(self):
        svc = _service()
        with pytest.raises(ValidationError):
            svc.svc_name = "other"

    def test_hashable_and_equal(self):
        assert _service() == _service()
        assert len({_service(), _service()}) == 1

    def test_extra_field_rejected(self):
        with pytest.raises(ValidationError):
            Service(SvcName="A", Executable="a.exe", Description="", Version="1")

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError):
            Service(SvcName=123, Executable="a.exe", Description="")

    def test_missing_field_rejected(self):
        with pytest.raises(ValidationError):
            Service(SvcName="A", Executable="a.exe")

    @pytest.mark.parametrize("field", ["SvcName", "Executable"])
    def test_blank_names_rejected(self, field):
        data = {"SvcName": "A", "Executable": "a.exe", "Description": ""}
        data[field] = "   "
        with pytest.raises(ValidationError):
            Service(**data)

    def test_empty_description_allowed(self):
        assert _service(desc="").description == ""


class TestPresenceReport:
    def test_defaults(self):
        report = PresenceReport()
        assert report.is_empty is True
        assert report.matches_count == 0
        assert report.vendors_detected == []
        assert isinstance(report.checked_at, datetime)

    def test_vendors_detected_ordered_unique(self):
        matches = [
            ServiceMatch(vendor="B", service=_service("b1"), matched_on=(MatchField.EXECUTABLE,), observed=("x",)),
            ServiceMatch(vendor="A", service=_service("a1"), matched_on=(MatchField.EXECUTABLE,), observed=("x",)),
            ServiceMatch(vendor="B", service=_service("b2"), matched_on=(MatchField.SERVICE_NAME,), observed=("y",)),
        ]
        report = PresenceReport(observed_count=2, matches=matches)
        assert report.vendors_detected == ["B", "A"]
        assert len(report.matches_for("B")) == 2
        assert report.matches_for("C") == []


class TestVendorAndObservation:
    def test_vendor_services_tuple(self):
        vendor = Vendor(name="Acme", services=[_service()])
        assert isinstance(vendor.services, tuple)

    def test_observation_entries(self):
        obs = HostObservation(hostname="h", processes=["a.exe"], services=["Svc"])
        assert obs.entries() == ["a.exe", "Svc"]
