"""Loads the vendor service table into an immutable, indexed dictionary.

The table is a JSON object keyed by vendor name; each value holds a
single ``Services`` list of ``SvcName``/``Executable``/``Description``
records. Loading is all-or-nothing: any shape error raises ParseError
and no dictionary is returned.
"""

import hashlib
import json
import logging
from pathlib import Path, PureWindowsPath
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from .models import Service, Vendor, VendorEntry

logger = logging.getLogger(__name__)

DEFAULT_DICTIONARY_PATH = Path(__file__).resolve().parent.parent / "data" / "av_services.json"

ServiceRef = Tuple[str, Service]

_DOCUMENT_ADAPTER = TypeAdapter(Dict[str, VendorEntry])


class ParseError(ValueError):
    """The service table is not well-formed or does not match the expected shape."""

    def __init__(self, message: str, source: str = "<string>"):
        super().__init__(f"{source}: {message}")
        self.message = message
        self.source = source


class _DuplicateKeyError(ValueError):
    pass


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    obj: Dict[str, Any] = {}
    for key, value in pairs:
        if key in obj:
            raise _DuplicateKeyError(f"duplicate key {key!r}")
        obj[key] = value
    return obj


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def _executable_keys(service: Service) -> List[str]:
    """Index keys for an executable: the full relative path and the bare file name."""
    keys = [service.executable.lower()]
    name = service.executable_name.lower()
    if name and name not in keys:
        keys.append(name)
    return keys


def _add_ref(index: Dict[str, List[ServiceRef]], key: str, ref: ServiceRef) -> None:
    refs = index.setdefault(key, [])
    if ref not in refs:
        refs.append(ref)


class ServiceDictionary:
    """Read-only vendor -> services mapping with case-insensitive reverse indexes.

    Executable and service-name indexes map to tuples of (vendor, service)
    pairs because neither field is unique in the reference data.
    """

    def __init__(
        self,
        vendors: Iterable[Vendor],
        source: str = "<string>",
        digest: Optional[str] = None,
    ):
        ordered: Dict[str, Vendor] = {}
        by_executable: Dict[str, List[ServiceRef]] = {}
        by_service_name: Dict[str, List[ServiceRef]] = {}

        for vendor in vendors:
            if vendor.name in ordered:
                raise ValueError(f"duplicate vendor {vendor.name!r}")
            ordered[vendor.name] = vendor
            for service in vendor.services:
                ref = (vendor.name, service)
                for key in _executable_keys(service):
                    _add_ref(by_executable, key, ref)
                _add_ref(by_service_name, service.svc_name.lower(), ref)

        self._vendors: Mapping[str, Vendor] = MappingProxyType(ordered)
        self._by_executable: Mapping[str, Tuple[ServiceRef, ...]] = MappingProxyType(
            {k: tuple(v) for k, v in by_executable.items()}
        )
        self._by_service_name: Mapping[str, Tuple[ServiceRef, ...]] = MappingProxyType(
            {k: tuple(v) for k, v in by_service_name.items()}
        )
        self.source = source
        self.digest = digest

    @property
    def vendors(self) -> Mapping[str, Vendor]:
        return self._vendors

    @property
    def vendor_names(self) -> List[str]:
        return list(self._vendors)

    @property
    def service_count(self) -> int:
        return sum(len(v.services) for v in self._vendors.values())

    def vendor(self, name: str) -> Vendor:
        """Get a vendor by name, case-insensitively."""
        if name in self._vendors:
            return self._vendors[name]
        lowered = name.lower()
        for vendor_name, vendor in self._vendors.items():
            if vendor_name.lower() == lowered:
                return vendor
        raise KeyError(f"Unknown vendor: {name}")

    def services(self) -> Iterator[ServiceRef]:
        """Iterate (vendor name, service) pairs in table order."""
        for vendor in self._vendors.values():
            for service in vendor.services:
                yield vendor.name, service

    def find_by_executable(self, name: str) -> Tuple[ServiceRef, ...]:
        """Reverse lookup by executable; a full Windows path also matches by file name."""
        key = name.strip().lower()
        if not key:
            return ()
        refs = self._by_executable.get(key)
        if refs is None:
            base = PureWindowsPath(key).name
            refs = self._by_executable.get(base, ()) if base != key else ()
        return refs

    def find_by_service_name(self, name: str) -> Tuple[ServiceRef, ...]:
        key = name.strip().lower()
        if not key:
            return ()
        return self._by_service_name.get(key, ())

    def to_dict(self) -> Dict[str, Any]:
        """Render back to the reference table shape."""
        return {
            name: {"Services": [s.model_dump(by_alias=True) for s in vendor.services]}
            for name, vendor in self._vendors.items()
        }

    def __len__(self) -> int:
        return len(self._vendors)

    def __contains__(self, name: object) -> bool:
        return name in self._vendors

    def __iter__(self) -> Iterator[str]:
        return iter(self._vendors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServiceDictionary):
            return NotImplemented
        return list(self._vendors.values()) == list(other._vendors.values())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"ServiceDictionary(source={self.source!r}, vendors={len(self)}, "
            f"services={self.service_count})"
        )


def loads_dictionary(text: Union[str, bytes], source: str = "<string>") -> ServiceDictionary:
    """Parse a service table from JSON text.

    Raises:
        ParseError: on malformed JSON, a duplicate key, a non-object top
            level, a vendor without ``Services``, or a service record with
            missing, extra, non-string or blank fields.
    """
    raw = text.encode("utf-8") if isinstance(text, str) else text
    digest = hashlib.sha256(raw).hexdigest()

    try:
        document = json.loads(raw, object_pairs_hook=_reject_duplicate_keys)
    except json.JSONDecodeError as e:
        raise ParseError(f"malformed JSON: {e}", source) from e
    except _DuplicateKeyError as e:
        raise ParseError(str(e), source) from e
    except UnicodeDecodeError as e:
        raise ParseError(f"not valid UTF-8 text: {e}", source) from e

    if not isinstance(document, dict):
        raise ParseError(
            "top level must be an object mapping vendor names to service lists",
            source,
        )

    try:
        entries = _DOCUMENT_ADAPTER.validate_python(
            document, by_alias=True, by_name=False
        )
    except ValidationError as e:
        raise ParseError(_describe_validation_error(e), source) from e

    vendors = []
    for name, entry in entries.items():
        if not name.strip():
            raise ParseError("vendor name must not be blank", source)
        vendors.append(Vendor(name=name, services=tuple(entry.services)))

    dictionary = ServiceDictionary(vendors, source=source, digest=digest)
    logger.debug(
        f"Parsed {dictionary.service_count} services for {len(dictionary)} vendors "
        f"from {source}"
    )
    return dictionary


def load_dictionary(path: Union[str, Path]) -> ServiceDictionary:
    """Load a service table from a JSON file. Raises ParseError on any failure."""
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ParseError(f"cannot read dictionary: {e}", str(path)) from e

    dictionary = loads_dictionary(raw, source=str(path))
    logger.info(
        f"Loaded {dictionary.service_count} services for {len(dictionary)} vendors "
        f"from {path} (sha256 {dictionary.digest[:12]})"
    )
    return dictionary


def load_default_dictionary() -> ServiceDictionary:
    """Load the reference table bundled with the package."""
    return load_dictionary(DEFAULT_DICTIONARY_PATH)
