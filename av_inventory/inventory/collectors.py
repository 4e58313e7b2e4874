"""Gathers observed process and service names from a host or from exported text."""

import csv
import io
import logging
import socket
from pathlib import PureWindowsPath
from typing import Dict, List

import psutil

from .models import HostObservation

logger = logging.getLogger(__name__)

# Columns that carry a process, service or executable name in
# `tasklist /FO CSV`, `Get-Service | Export-Csv` and similar exports.
OBSERVED_COLUMNS = (
    "Image Name",
    "Name",
    "ServiceName",
    "DisplayName",
    "Display Name",
    "Executable",
    "PathName",
)


def executable_from_command_line(command_line: str) -> str:
    """Extract the executable file name from a service binary path.

    Handles quoted paths (``"C:\\Program Files\\X\\x.exe" -k arg``) and
    unquoted paths with spaces up to the first ``.exe``.
    """
    text = command_line.strip()
    if not text:
        return ""
    if text.startswith('"'):
        end = text.find('"', 1)
        path = text[1:end] if end != -1 else text[1:]
    else:
        idx = text.lower().find(".exe")
        path = text[: idx + 4] if idx != -1 else text.split()[0]
    return PureWindowsPath(path).name


def parse_csv_output(text: str, delimiter: str = ",") -> List[Dict[str, str]]:
    """Parse CSV text into a list of dicts via csv.DictReader."""
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    return list(reader)


def parse_observed_text(text: str) -> List[str]:
    """Read observed names from exported text.

    CSV with a recognised header column is read column-wise; anything
    else is one name per line. Blank lines and ``#`` comments are skipped.
    """
    lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if not lines:
        return []

    header = lines[0]
    if "," in header:
        rows = parse_csv_output("\n".join(lines))
        fieldnames = list(rows[0].keys()) if rows else []
        columns = [c for c in OBSERVED_COLUMNS if c in fieldnames]
        if columns:
            names: List[str] = []
            for row in rows:
                for column in columns:
                    value = (row.get(column) or "").strip()
                    if value and value not in names:
                        names.append(value)
            return names

    names = []
    for line in lines:
        if line not in names:
            names.append(line)
    return names


class HostCollector:
    """Enumerates running processes and, on Windows, running services via psutil."""

    def __init__(self, collect_processes: bool = True, collect_services: bool = True):
        self.collect_processes = collect_processes
        self.collect_services = collect_services
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @staticmethod
    def services_supported() -> bool:
        return hasattr(psutil, "win_service_iter")

    def running_processes(self) -> List[str]:
        """Names of running processes, deduplicated, in enumeration order."""
        names: List[str] = []
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info.get("name")
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                self.logger.debug(f"Skipping process: {e}")
                continue
            if name and name not in names:
                names.append(name)
        return names

    def running_services(self) -> List[str]:
        """Display name, short name and binary name of every running service."""
        if not self.services_supported():
            self.logger.debug("Service enumeration is only available on Windows")
            return []

        names: List[str] = []
        for svc in psutil.win_service_iter():
            try:
                info = svc.as_dict()
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                self.logger.debug(f"Skipping service {svc.name()}: {e}")
                continue
            if info.get("status") != "running":
                continue
            candidates = (
                info.get("display_name"),
                info.get("name"),
                executable_from_command_line(info.get("binpath") or ""),
            )
            for value in candidates:
                if value and value not in names:
                    names.append(value)
        return names

    def collect(self) -> HostObservation:
        processes = self.running_processes() if self.collect_processes else []
        services = self.running_services() if self.collect_services else []
        observation = HostObservation(
            hostname=socket.gethostname(),
            processes=processes,
            services=services,
        )
        self.logger.info(
            f"Collected {len(processes)} processes and {len(services)} service "
            f"names on {observation.hostname}"
        )
        return observation
