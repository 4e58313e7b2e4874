"""Presence checker: intersects observed host entries with the service dictionary."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .loader import ServiceDictionary, ServiceRef
from .models import (
    Finding,
    HostObservation,
    MatchField,
    PresenceReport,
    ServiceMatch,
)

logger = logging.getLogger(__name__)


class PresenceChecker:
    """Stateless query over a loaded ServiceDictionary.

    Every observed entry is looked up case-insensitively against both the
    executable and the service name of each known service. All matching
    (vendor, service) pairs are reported; a pair hit by several observed
    entries is reported once with all of them as evidence.
    """

    def __init__(self, dictionary: ServiceDictionary):
        self.dictionary = dictionary
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def lookup(self, name: str) -> List[Tuple[MatchField, ServiceRef]]:
        """All (field, (vendor, service)) hits for a single observed name."""
        hits: List[Tuple[MatchField, ServiceRef]] = []
        for ref in self.dictionary.find_by_executable(name):
            hits.append((MatchField.EXECUTABLE, ref))
        for ref in self.dictionary.find_by_service_name(name):
            hits.append((MatchField.SERVICE_NAME, ref))
        return hits

    def check(
        self, observed: Iterable[Optional[str]], hostname: Optional[str] = None
    ) -> PresenceReport:
        """Report which known services appear in ``observed``.

        Blank entries are ignored. An observed list with no known entries
        produces an empty report, not an error. A single string is treated
        as one observed entry.
        """
        if isinstance(observed, str):
            observed = [observed]

        evidence: Dict[ServiceRef, Tuple[List[MatchField], List[str]]] = {}
        unmatched: List[str] = []
        observed_count = 0

        for entry in observed:
            if entry is None:
                continue
            name = entry.strip()
            if not name:
                continue
            observed_count += 1

            hits = self.lookup(name)
            if not hits:
                if name not in unmatched:
                    unmatched.append(name)
                continue

            for field, ref in hits:
                fields, names = evidence.setdefault(ref, ([], []))
                if field not in fields:
                    fields.append(field)
                if name not in names:
                    names.append(name)

        matches: List[ServiceMatch] = []
        for ref in self.dictionary.services():
            if ref not in evidence:
                continue
            fields, names = evidence.pop(ref)
            vendor, service = ref
            matches.append(
                ServiceMatch(
                    vendor=vendor,
                    service=service,
                    matched_on=tuple(fields),
                    observed=tuple(names),
                )
            )

        report = PresenceReport(
            observed_count=observed_count,
            matches=matches,
            unmatched=unmatched,
            dictionary_digest=self.dictionary.digest,
            hostname=hostname,
        )
        self.logger.info(
            f"Checked {observed_count} observed entries: {report.matches_count} "
            f"known services from {len(report.vendors_detected)} vendors"
        )
        return report

    def check_host(self, observation: HostObservation) -> PresenceReport:
        return self.check(observation.entries(), hostname=observation.hostname or None)


def report_payload(report: PresenceReport) -> Dict[str, Any]:
    """JSON-ready view of a report with services in reference table field names."""
    return {
        "report_id": report.report_id,
        "hostname": report.hostname,
        "checked_at": report.checked_at.isoformat(),
        "dictionary_digest": report.dictionary_digest,
        "observed_count": report.observed_count,
        "vendors_detected": report.vendors_detected,
        "matches": [
            {
                "vendor": m.vendor,
                "service": m.service.model_dump(by_alias=True),
                "matched_on": [f.value for f in m.matched_on],
                "observed": list(m.observed),
            }
            for m in report.matches
        ],
        "unmatched": report.unmatched,
    }


def findings(report: PresenceReport) -> List[Finding]:
    """Convert presence matches into Finding records."""
    results: List[Finding] = []
    for match in report.matches:
        service = match.service
        results.append(
            Finding(
                source="av_inventory",
                category="security_product",
                title=f"{match.vendor}: {service.svc_name}",
                description=(
                    f"{service.description or service.svc_name} "
                    f"({service.executable}) observed as {', '.join(match.observed)}"
                ),
                target=report.hostname or "localhost",
                raw_data={
                    "vendor": match.vendor,
                    "service": service.model_dump(by_alias=True),
                    "matched_on": [f.value for f in match.matched_on],
                    "observed": list(match.observed),
                },
                timestamp=report.checked_at,
            )
        )
    return results
