"""Linux MIB data provider: RFC1213-MIB and IPV6-MIB values from /proc and /sys."""

from linux_mib.errors import (
    FormatError,
    MibDataError,
    NotFoundError,
    NotWritableError,
    StateMappingError,
    UnknownObjectError,
)
from linux_mib.if_index import InterfaceIndexRegistry
from linux_mib.mib_provider import LinuxMibProvider, build_provider
from linux_mib.numeric import clamp_gauge32, wrap_counter32
from linux_mib.pci_ids import PciIdDatabase
from linux_mib.snmp_responder import SNMPResponder
from linux_mib.system_group import SystemGroup
from linux_mib.table_builder import TableBuilder, map_tcp_state

__all__ = [
    "FormatError",
    "InterfaceIndexRegistry",
    "LinuxMibProvider",
    "MibDataError",
    "NotFoundError",
    "NotWritableError",
    "PciIdDatabase",
    "SNMPResponder",
    "StateMappingError",
    "SystemGroup",
    "TableBuilder",
    "UnknownObjectError",
    "build_provider",
    "clamp_gauge32",
    "map_tcp_state",
    "wrap_counter32",
]
