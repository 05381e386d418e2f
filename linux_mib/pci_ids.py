"""
PCI ID database used to name the hardware behind an interface.

The database (usually /usr/share/misc/pci.ids) lists each vendor on an
unindented line followed by its devices on tab-indented lines. Subsystem
lines (two tabs) and everything from the first device-class section ("C ")
onwards are ignored.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

PCI_IDS_PATH = "/usr/share/misc/pci.ids"
UNKNOWN = "Unknown"

_VENDOR_RE = re.compile(r"^([0-9a-fA-F]+)\s+(.*)$")
_DEVICE_RE = re.compile(r"^\t([0-9a-fA-F]+)\s+(.*)$")


@dataclass
class PciVendor:
    name: str
    devices: Dict[str, str] = field(default_factory=dict)


def parse_pci_ids(lines: Iterable[str]) -> Dict[str, PciVendor]:
    """Parse pci.ids lines into a vendor-id -> PciVendor map.

    IDs are normalised to lower-case hex without a 0x prefix.
    """
    vendors: Dict[str, PciVendor] = {}
    current: Optional[PciVendor] = None

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line or line.startswith("#") or line.startswith("\t\t"):
            continue
        if line.startswith("C "):
            # Device classes run to the end of the file
            break

        if line.startswith("\t"):
            match = _DEVICE_RE.match(line)
            if match and current is not None:
                current.devices[match.group(1).lower()] = match.group(2).strip()
            continue

        match = _VENDOR_RE.match(line)
        if match:
            current = PciVendor(name=match.group(2).strip())
            vendors[match.group(1).lower()] = current
        else:
            current = None

    return vendors


def _normalize_id(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    return value or None


class PciIdDatabase:
    """Lazily-loaded vendor/device name lookup.

    The file is parsed at most once per instance, even when first use happens
    concurrently from several threads.
    """

    def __init__(self, path: str = PCI_IDS_PATH) -> None:
        self.path = Path(path)
        self._vendors: Dict[str, PciVendor] = {}
        self._loaded = False
        self._lock = threading.Lock()

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "PciIdDatabase":
        """Build an already-loaded database from in-memory lines."""
        db = cls()
        db._vendors = parse_pci_ids(lines)
        db._loaded = True
        return db

    @property
    def loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self) -> None:
        """Parse the database file if that has not happened yet.

        A missing or unreadable file leaves the database empty, so every
        lookup falls back to "Unknown".
        """
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            try:
                with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                    self._vendors = parse_pci_ids(f)
                logger.info(f"Loaded {len(self._vendors)} PCI vendors from {self.path}")
            except OSError as e:
                logger.warning(f"PCI ID database {self.path} unavailable: {e}")
                self._vendors = {}
            self._loaded = True

    def vendor_name(self, vendor_id: Optional[str]) -> str:
        vendor = self._vendors.get(_normalize_id(vendor_id) or "")
        return vendor.name if vendor is not None else UNKNOWN

    def device_name(self, vendor_id: Optional[str], device_id: Optional[str]) -> str:
        vendor = self._vendors.get(_normalize_id(vendor_id) or "")
        if vendor is None:
            return UNKNOWN
        return vendor.devices.get(_normalize_id(device_id) or "", UNKNOWN)

    def describe(
        self,
        vendor_id: Optional[str],
        device_id: Optional[str],
        revision: Optional[str],
    ) -> str:
        """Render an ifDescr string for the given sysfs device ids."""
        return " | ".join(
            [
                f"Vendor: {self.vendor_name(vendor_id)}",
                f"Device: {self.device_name(vendor_id, device_id)}",
                f"Rev : {revision.strip() if revision else UNKNOWN}",
            ]
        )
