"""FastAPI routes for vendor listing, reverse lookups, and presence checks."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query

from .checker import PresenceChecker, report_payload
from .collectors import HostCollector
from .loader import ServiceDictionary

logger = logging.getLogger(__name__)


def create_inventory_router(
    dictionary: ServiceDictionary,
    collector: Optional[HostCollector] = None,
) -> APIRouter:
    """Create FastAPI router with inventory endpoints."""

    router = APIRouter(prefix="/inventory", tags=["inventory"])
    checker = PresenceChecker(dictionary)

    @router.get("/vendors")
    async def get_vendors() -> Dict[str, Any]:
        """List vendors and their service counts."""
        return {
            "vendors": {
                name: {"services_count": len(vendor.services)}
                for name, vendor in dictionary.vendors.items()
            },
            "source": dictionary.source,
            "digest": dictionary.digest,
            "total_services": dictionary.service_count,
        }

    @router.get("/vendors/{name}")
    async def get_vendor(name: str) -> Dict[str, Any]:
        try:
            vendor = dictionary.vendor(name)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown vendor: {name}")
        return {
            "name": vendor.name,
            "services": [s.model_dump(by_alias=True) for s in vendor.services],
        }

    @router.get("/lookup")
    async def lookup(name: str = Query(..., min_length=1)) -> Dict[str, Any]:
        """Reverse lookup of one executable or service name."""
        hits = checker.lookup(name)
        return {
            "name": name,
            "matches": [
                {
                    "vendor": vendor,
                    "matched_on": field.value,
                    "service": service.model_dump(by_alias=True),
                }
                for field, (vendor, service) in hits
            ],
            "count": len(hits),
        }

    @router.post("/check")
    async def check(observed: List[str] = Body(...)) -> Dict[str, Any]:
        """Check a list of observed process or service names."""
        return report_payload(checker.check(observed))

    @router.get("/host")
    async def check_host() -> Dict[str, Any]:
        """Collect running processes and services on this host and check them."""
        if collector is None:
            raise HTTPException(status_code=404, detail="Host collection is disabled")
        observation = collector.collect()
        return report_payload(checker.check_host(observation))

    return router
