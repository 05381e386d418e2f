"""
SNMP numeric encoding policy.

Kernel counters are 64-bit accumulators; the RFC1213 objects they back are
Counter32 or Gauge32. The conversion happens when a value is read, never on
stored data.
"""

COUNTER32_MODULUS = 2**32
GAUGE32_MAX = 2**32 - 1

# ipRouteMetricN value for a metric the routing protocol does not use
ROUTE_METRIC_UNUSED = -1


def wrap_counter32(value: int) -> int:
    """Return value as a Counter32, rolling over at 2^32.

    Examples:
        >>> wrap_counter32(2**32 + 5)
        5
    """
    return value % COUNTER32_MODULUS


def clamp_gauge32(value: int) -> int:
    """Return value as a Gauge32, latching at 2^32 - 1.

    Examples:
        >>> clamp_gauge32(2**32 + 100)
        4294967295
    """
    return min(value, GAUGE32_MAX)
