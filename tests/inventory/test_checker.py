"""Tests for the PresenceChecker."""

import json
import pytest

from av_inventory.inventory.checker import PresenceChecker, findings, report_payload
from av_inventory.inventory.loader import loads_dictionary
from av_inventory.inventory.models import HostObservation, MatchField


@pytest.fixture
def checker(dictionary):
    return PresenceChecker(dictionary)


class TestKnownEntries:
    def test_shared_executable_reports_every_service(self, checker):
        report = checker.check(["SemSvc.exe"])
        assert [(m.vendor, m.service.svc_name) for m in report.matches] == [
            ("Symantec", "Symantec Endpoint Protection Manager"),
            ("Symantec", "Symantec Endpoint Protection Manager API Service"),
        ]
        for match in report.matches:
            assert match.matched_on == (MatchField.EXECUTABLE,)
            assert match.observed == ("SemSvc.exe",)

    def test_unique_executable_single_match(self, checker):
        report = checker.check(["CSFalconService.exe"])
        assert report.matches_count == 1
        match = report.matches[0]
        assert match.vendor == "CrowdStrike"
        assert match.service.svc_name == "CrowdStrike Falcon Sensor Service"

    def test_case_insensitive(self, checker):
        report = checker.check(["csfalconservice.EXE"])
        assert report.vendors_detected == ["CrowdStrike"]

    def test_match_by_service_name(self, checker):
        report = checker.check(["Sophos Anti-Virus"])
        assert report.matches_count == 1
        assert report.matches[0].matched_on == (MatchField.SERVICE_NAME,)
        assert report.matches[0].service.executable == "SavService.exe"

    def test_subdirectory_executable(self, checker):
        report = checker.check(["C:\\Program Files\\McAfee\\Agent\\x86\\macompatsvc.exe"])
        assert report.vendors_detected == ["McAfee"]

    def test_same_service_hit_twice_reported_once(self, checker):
        report = checker.check([
            "CSFalconService.exe",
            "CrowdStrike Falcon Sensor Service",
            "csfalconservice.exe",
        ])
        assert report.matches_count == 1
        match = report.matches[0]
        assert match.matched_on == (MatchField.EXECUTABLE, MatchField.SERVICE_NAME)
        assert match.observed == (
            "CSFalconService.exe",
            "CrowdStrike Falcon Sensor Service",
            "csfalconservice.exe",
        )

    def test_matches_follow_table_order(self, checker):
        report = checker.check(["Smc.exe", "SavService.exe", "masvc.exe"])
        assert report.vendors_detected == ["McAfee", "Sophos", "Symantec"]

    def test_mixed_known_and_unknown(self, checker):
        report = checker.check(["explorer.exe", "SophosHealth.exe", "svchost.exe"])
        assert report.observed_count == 3
        assert report.matches_count == 1
        assert report.unmatched == ["explorer.exe", "svchost.exe"]

    def test_single_string_is_one_entry(self, checker):
        report = checker.check("CSFalconService.exe")
        assert report.observed_count == 1
        assert [m.service.svc_name for m in report.matches] == [
            "CrowdStrike Falcon Sensor Service"
        ]
        assert report.unmatched == []


class TestNoMatches:
    def test_unknown_entries_empty_report(self, checker):
        report = checker.check(["explorer.exe", "svchost.exe", "Windows Update"])
        assert report.is_empty
        assert report.matches == []
        assert report.observed_count == 3

    def test_empty_input(self, checker):
        report = checker.check([])
        assert report.is_empty
        assert report.observed_count == 0

    def test_blank_entries_ignored(self, checker):
        report = checker.check(["", "   ", None])
        assert report.observed_count == 0
        assert report.unmatched == []


class TestReportMetadata:
    def test_digest_recorded(self, checker, dictionary):
        report = checker.check(["Smc.exe"])
        assert report.dictionary_digest == dictionary.digest

    def test_check_host(self, checker):
        observation = HostObservation(
            hostname="ws01",
            processes=["ccSvcHst.exe", "explorer.exe"],
            services=["LiveUpdate"],
        )
        report = checker.check_host(observation)
        assert report.hostname == "ws01"
        assert [m.service.svc_name for m in report.matches] == [
            "Symantec Endpoint Protection",
            "LiveUpdate",
        ]

    def test_checker_does_not_mutate_dictionary(self, checker, dictionary):
        before = dictionary.to_dict()
        checker.check(["SemSvc.exe", "masvc.exe"])
        assert dictionary.to_dict() == before


class TestAmbiguousTable:
    def test_executable_shared_across_vendors(self, sample_table):
        checker = PresenceChecker(loads_dictionary(json.dumps(sample_table)))
        report = checker.check(["SHIELD.EXE"])
        assert report.vendors_detected == ["Acme", "Globex"]


class TestOutputs:
    def test_findings(self, checker):
        report = checker.check_host(HostObservation(hostname="ws01", processes=["SemSvc.exe"]))
        results = findings(report)
        assert len(results) == 2
        assert all(f.category == "security_product" for f in results)
        assert results[0].target == "ws01"
        assert results[0].raw_data["service"]["Executable"] == "SemSvc.exe"

    def test_findings_empty(self, checker):
        assert findings(checker.check(["notepad.exe"])) == []

    def test_report_payload_is_json_serializable(self, checker):
        payload = report_payload(checker.check(["CSFalconService.exe", "foo.exe"]))
        text = json.dumps(payload)
        data = json.loads(text)
        assert data["vendors_detected"] == ["CrowdStrike"]
        assert data["matches"][0]["service"]["SvcName"] == "CrowdStrike Falcon Sensor Service"
        assert data["matches"][0]["matched_on"] == ["executable"]
        assert data["unmatched"] == ["foo.exe"]
