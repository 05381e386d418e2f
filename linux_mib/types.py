"""
Shared type aliases for the Linux MIB data provider.

This module provides common type aliases used throughout the codebase
to ensure consistency between the kernel readers, the table builder and
the SNMP responder.
"""

from typing import Any, Awaitable, Callable, Dict, List, Tuple, Union

# Counters for one protocol group, e.g. {"InReceives": 1234, "InHdrErrors": 0}
CounterGroup = Dict[str, int]

# Parsed /proc/net/snmp - protocol group name -> CounterGroup
# Example: {"Ip": {...}, "Icmp": {...}, "Tcp": {...}, "Udp": {...}}
NetSnmpCounters = Dict[str, CounterGroup]

# Parsed /proc/net/snmp6/<if> - flat name -> value mapping
Snmp6Counters = Dict[str, int]

# OID type - tuple or list of integers
OidType = Union[Tuple[int, ...], List[int]]

# Accessor signature - every MIB object is served by a zero-argument coroutine
Accessor = Callable[[], Awaitable[Any]]

# Interface lister - returns interface names in native enumeration order
InterfaceLister = Callable[[], List[str]]
