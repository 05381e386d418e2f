"""
SystemGroup: the RFC1213 system group.

Identity values are supplied by the operator and held in memory; only
sysUpTime is derived. sysContact, sysName and sysLocation are the group's
read-write objects and are the only ones with setters.
"""

import time
from typing import Callable, Optional

DEFAULT_OBJECT_ID = "1.3.6.1.4.1.8072.3.2.10"
# applications(64) + end-to-end(8) + internet(4)
DEFAULT_SERVICES = 72


class SystemGroup:
    """Holds the system group values and computes uptime."""

    def __init__(
        self,
        descr: str = "",
        object_id: str = DEFAULT_OBJECT_ID,
        contact: str = "",
        name: str = "",
        location: str = "",
        services: int = DEFAULT_SERVICES,
        clock: Callable[[], float] = time.monotonic,
        started_at: Optional[float] = None,
    ) -> None:
        self._descr = descr
        self._object_id = object_id
        self._contact = contact
        self._name = name
        self._location = location
        self._services = services
        self._clock = clock
        self._started_at = clock() if started_at is None else started_at

    @property
    def descr(self) -> str:
        return self._descr

    @property
    def object_id(self) -> str:
        return self._object_id

    @property
    def contact(self) -> str:
        return self._contact

    @contact.setter
    def contact(self, value: str) -> None:
        self._contact = str(value)

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = str(value)

    @property
    def location(self) -> str:
        return self._location

    @location.setter
    def location(self, value: str) -> None:
        self._location = str(value)

    @property
    def services(self) -> int:
        return self._services

    @property
    def started_at(self) -> float:
        return self._started_at

    def uptime(self) -> int:
        """Hundredths of a second since this group was created."""
        elapsed = self._clock() - self._started_at
        return max(0, int(elapsed * 100))
