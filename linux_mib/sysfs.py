"""
Readers for the /sys/class/net/<if>/ attribute tree.

See https://www.kernel.org/doc/html/latest/networking/statistics.html
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from linux_mib import kernel_io
from linux_mib.addr_utils import mac_to_bytes
from linux_mib.numeric import GAUGE32_MAX, clamp_gauge32

logger = logging.getLogger(__name__)

SYSFS_NET_ROOT = "/sys/class/net"

# Attributes that are missing on some devices (virtual NICs, loopback)
_OPTIONAL_ERRORS = (OSError, TimeoutError, ValueError)


class SysfsReader:
    """Reads per-interface facts from sysfs."""

    def __init__(
        self,
        root: str = SYSFS_NET_ROOT,
        timeout: float = kernel_io.DEFAULT_READ_TIMEOUT,
    ) -> None:
        self.root = Path(root)
        self.timeout = timeout

    def list_interfaces(self) -> List[str]:
        """Return interface names in the kernel's own directory order."""
        return os.listdir(self.root)

    def _path(self, if_name: str, attr: str) -> Path:
        return self.root / if_name / attr

    async def read(self, if_name: str, attr: str) -> str:
        """Read a mandatory attribute; OSError/TimeoutError propagate."""
        return await kernel_io.read_value(self._path(if_name, attr), self.timeout)

    async def read_int(self, if_name: str, attr: str) -> int:
        """Read a mandatory integer attribute."""
        return await kernel_io.read_int(self._path(if_name, attr), self.timeout)

    async def read_optional(self, if_name: str, attr: str) -> Optional[str]:
        """Read an attribute that may legitimately be absent."""
        try:
            return await self.read(if_name, attr)
        except _OPTIONAL_ERRORS as e:
            logger.debug(f"{if_name}/{attr} unavailable: {e}")
            return None

    async def statistic(self, if_name: str, name: str) -> int:
        """Read one statistics/<name> counter (mandatory)."""
        return await self.read_int(if_name, f"statistics/{name}")

    async def mtu(self, if_name: str) -> int:
        return await self.read_int(if_name, "mtu")

    async def tx_queue_len(self, if_name: str) -> int:
        return await self.read_int(if_name, "tx_queue_len")

    async def operstate(self, if_name: str) -> str:
        return (await self.read(if_name, "operstate")).lower()

    async def speed_bps(self, if_name: str) -> int:
        """Link speed in bits per second, or the Gauge32 maximum if unknown.

        The kernel reports Mb/s, and -1 (or EINVAL on read) when the link is
        down or the driver has no notion of speed.
        """
        raw = await self.read_optional(if_name, "speed")
        try:
            mbps = int(raw) if raw is not None else -1
        except ValueError:
            mbps = -1
        if mbps < 0:
            return GAUGE32_MAX
        return clamp_gauge32(mbps * 1_000_000)

    async def phys_address(self, if_name: str) -> bytes:
        """Hardware address as 6 octets, zero-filled when absent."""
        return mac_to_bytes(await self.read_optional(if_name, "address"))

    async def device_ids(self, if_name: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """(vendor, device, revision) of the backing PCI device, if any."""
        vendor, device, revision = await asyncio.gather(
            self.read_optional(if_name, "device/vendor"),
            self.read_optional(if_name, "device/device"),
            self.read_optional(if_name, "device/revision"),
        )
        return vendor, device, revision
