"""
Object definitions for the RFC1213-MIB and IPV6-MIB subtrees served here.

Each scalar names its accessor, OID and SNMP syntax. Each table names its
entry OID, its columns (sub-identifier, record attribute, syntax) and how a
row's instance index is encoded from the row record. Not-accessible index
columns are omitted.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

from linux_mib.addr_utils import ipv4_to_subids, ipv6_to_bytes

# SNMP syntax names, rendered as pysnmp rfc1902 classes by the responder
INTEGER32 = "Integer32"
OCTET_STRING = "OctetString"
OBJECT_IDENTIFIER = "ObjectIdentifier"
IP_ADDRESS = "IpAddress"
COUNTER32 = "Counter32"
GAUGE32 = "Gauge32"
TIME_TICKS = "TimeTicks"

MIB_2 = (1, 3, 6, 1, 2, 1)
SYSTEM = MIB_2 + (1,)
INTERFACES = MIB_2 + (2,)
IP = MIB_2 + (4,)
ICMP = MIB_2 + (5,)
TCP = MIB_2 + (6,)
UDP = MIB_2 + (7,)
IPV6_MIB_OBJECTS = MIB_2 + (55, 1)


@dataclass(frozen=True)
class ScalarObject:
    name: str
    oid: Tuple[int, ...]
    syntax: str


@dataclass(frozen=True)
class CounterScalar(ScalarObject):
    """A scalar read from one /proc/net/snmp counter."""

    group: str
    key: str


@dataclass(frozen=True)
class Column:
    sub_id: int
    name: str
    attribute: str
    syntax: str


@dataclass(frozen=True)
class TableObject:
    name: str
    entry_oid: Tuple[int, ...]
    columns: Tuple[Column, ...]
    index: Callable[[Any], Tuple[int, ...]]

    def column(self, sub_id: int) -> Column:
        for col in self.columns:
            if col.sub_id == sub_id:
                return col
        raise KeyError(sub_id)


# ----------------------------------------------------------------------
# scalars
# ----------------------------------------------------------------------

SYSTEM_SCALARS = (
    ScalarObject("sysDescr", SYSTEM + (1,), OCTET_STRING),
    ScalarObject("sysObjectID", SYSTEM + (2,), OBJECT_IDENTIFIER),
    ScalarObject("sysUpTime", SYSTEM + (3,), TIME_TICKS),
    ScalarObject("sysContact", SYSTEM + (4,), OCTET_STRING),
    ScalarObject("sysName", SYSTEM + (5,), OCTET_STRING),
    ScalarObject("sysLocation", SYSTEM + (6,), OCTET_STRING),
    ScalarObject("sysServices", SYSTEM + (7,), INTEGER32),
)

KERNEL_SCALARS = (
    ScalarObject("ifNumber", INTERFACES + (1,), INTEGER32),
    ScalarObject("ipForwarding", IP + (1,), INTEGER32),
    ScalarObject("ipDefaultTTL", IP + (2,), INTEGER32),
    ScalarObject("ipRoutingDiscards", IP + (23,), COUNTER32),
    ScalarObject("ipv6Forwarding", IPV6_MIB_OBJECTS + (1,), INTEGER32),
    ScalarObject("ipv6DefaultHopLimit", IPV6_MIB_OBJECTS + (2,), INTEGER32),
    ScalarObject("ipv6Interfaces", IPV6_MIB_OBJECTS + (3,), GAUGE32),
    ScalarObject("ipv6IfTableLastChange", IPV6_MIB_OBJECTS + (4,), TIME_TICKS),
)


def _counters(prefix: str, group: str, base: Tuple[int, ...], layout: Tuple[Tuple[int, str, str], ...]):
    return tuple(
        CounterScalar(f"{prefix}{key}", base + (sub_id,), syntax, group=group, key=key)
        for sub_id, key, syntax in layout
    )


NET_SNMP_SCALARS: Tuple[CounterScalar, ...] = (
    _counters(
        "ip",
        "Ip",
        IP,
        (
            (3, "InReceives", COUNTER32),
            (4, "InHdrErrors", COUNTER32),
            (5, "InAddrErrors", COUNTER32),
            (6, "ForwDatagrams", COUNTER32),
            (7, "InUnknownProtos", COUNTER32),
            (8, "InDiscards", COUNTER32),
            (9, "InDelivers", COUNTER32),
            (10, "OutRequests", COUNTER32),
            (11, "OutDiscards", COUNTER32),
            (12, "OutNoRoutes", COUNTER32),
            (13, "ReasmTimeout", INTEGER32),
            (14, "ReasmReqds", COUNTER32),
            (15, "ReasmOKs", COUNTER32),
            (16, "ReasmFails", COUNTER32),
            (17, "FragOKs", COUNTER32),
            (18, "FragFails", COUNTER32),
            (19, "FragCreates", COUNTER32),
        ),
    )
    + _counters(
        "icmp",
        "Icmp",
        ICMP,
        tuple(
            (sub_id, key, COUNTER32)
            for sub_id, key in enumerate(
                (
                    "InMsgs",
                    "InErrors",
                    "InDestUnreachs",
                    "InTimeExcds",
                    "InParmProbs",
                    "InSrcQuenchs",
                    "InRedirects",
                    "InEchos",
                    "InEchoReps",
                    "InTimestamps",
                    "InTimestampReps",
                    "InAddrMasks",
                    "InAddrMaskReps",
                    "OutMsgs",
                    "OutErrors",
                    "OutDestUnreachs",
                    "OutTimeExcds",
                    "OutParmProbs",
                    "OutSrcQuenchs",
                    "OutRedirects",
                    "OutEchos",
                    "OutEchoReps",
                    "OutTimestamps",
                    "OutTimestampReps",
                    "OutAddrMasks",
                    "OutAddrMaskReps",
                ),
                start=1,
            )
        ),
    )
    + _counters(
        "tcp",
        "Tcp",
        TCP,
        (
            (1, "RtoAlgorithm", INTEGER32),
            (2, "RtoMin", INTEGER32),
            (3, "RtoMax", INTEGER32),
            (4, "MaxConn", INTEGER32),
            (5, "ActiveOpens", COUNTER32),
            (6, "PassiveOpens", COUNTER32),
            (7, "AttemptFails", COUNTER32),
            (8, "EstabResets", COUNTER32),
            (9, "CurrEstab", GAUGE32),
            (10, "InSegs", COUNTER32),
            (11, "OutSegs", COUNTER32),
            (12, "RetransSegs", COUNTER32),
            (14, "InErrs", COUNTER32),
            (15, "OutRsts", COUNTER32),
        ),
    )
    + _counters(
        "udp",
        "Udp",
        UDP,
        (
            (1, "InDatagrams", COUNTER32),
            (2, "NoPorts", COUNTER32),
            (3, "InErrors", COUNTER32),
            (4, "OutDatagrams", COUNTER32),
        ),
    )
)


# ----------------------------------------------------------------------
# tables
# ----------------------------------------------------------------------


def _endpoint_index(address: str, port: int) -> Tuple[int, ...]:
    return ipv4_to_subids(address) + (port,)


IF_TABLE = TableObject(
    name="ifTable",
    entry_oid=INTERFACES + (2, 1),
    columns=(
        Column(1, "ifIndex", "index", INTEGER32),
        Column(2, "ifDescr", "descr", OCTET_STRING),
        Column(3, "ifType", "type", INTEGER32),
        Column(4, "ifMtu", "mtu", INTEGER32),
        Column(5, "ifSpeed", "speed", GAUGE32),
        Column(6, "ifPhysAddress", "phys_address", OCTET_STRING),
        Column(7, "ifAdminStatus", "admin_status", INTEGER32),
        Column(8, "ifOperStatus", "oper_status", INTEGER32),
        Column(9, "ifLastChange", "last_change", TIME_TICKS),
        Column(10, "ifInOctets", "in_octets", COUNTER32),
        Column(11, "ifInUcastPkts", "in_ucast_pkts", COUNTER32),
        Column(12, "ifInNUcastPkts", "in_nucast_pkts", COUNTER32),
        Column(13, "ifInDiscards", "in_discards", COUNTER32),
        Column(14, "ifInErrors", "in_errors", COUNTER32),
        Column(15, "ifInUnknownProtos", "in_unknown_protos", COUNTER32),
        Column(16, "ifOutOctets", "out_octets", COUNTER32),
        Column(17, "ifOutUcastPkts", "out_ucast_pkts", COUNTER32),
        Column(18, "ifOutNUcastPkts", "out_nucast_pkts", COUNTER32),
        Column(19, "ifOutDiscards", "out_discards", COUNTER32),
        Column(20, "ifOutErrors", "out_errors", COUNTER32),
        Column(21, "ifOutQLen", "out_qlen", GAUGE32),
        Column(22, "ifSpecific", "specific", OBJECT_IDENTIFIER),
    ),
    index=lambda row: (row.index,),
)

IP_ADDR_TABLE = TableObject(
    name="ipAddrTable",
    entry_oid=IP + (20, 1),
    columns=(
        Column(1, "ipAdEntAddr", "address", IP_ADDRESS),
        Column(2, "ipAdEntIfIndex", "if_index", INTEGER32),
        Column(3, "ipAdEntNetMask", "net_mask", IP_ADDRESS),
        Column(4, "ipAdEntBcastAddr", "bcast_addr", INTEGER32),
        Column(5, "ipAdEntReasmMaxSize", "reasm_max_size", INTEGER32),
    ),
    index=lambda row: ipv4_to_subids(row.address),
)

IP_ROUTE_TABLE = TableObject(
    name="ipRouteTable",
    entry_oid=IP + (21, 1),
    columns=(
        Column(1, "ipRouteDest", "destination", IP_ADDRESS),
        Column(2, "ipRouteIfIndex", "if_index", INTEGER32),
        Column(3, "ipRouteMetric1", "metric1", INTEGER32),
        Column(4, "ipRouteMetric2", "metric2", INTEGER32),
        Column(5, "ipRouteMetric3", "metric3", INTEGER32),
        Column(6, "ipRouteMetric4", "metric4", INTEGER32),
        Column(7, "ipRouteNextHop", "gateway", IP_ADDRESS),
        Column(8, "ipRouteType", "route_type", INTEGER32),
        Column(9, "ipRouteProto", "proto", INTEGER32),
        Column(10, "ipRouteAge", "age", INTEGER32),
        Column(11, "ipRouteMask", "mask", IP_ADDRESS),
        Column(12, "ipRouteMetric5", "metric5", INTEGER32),
        Column(13, "ipRouteInfo", "info", OBJECT_IDENTIFIER),
    ),
    index=lambda row: ipv4_to_subids(row.destination),
)

IP_NET_TO_MEDIA_TABLE = TableObject(
    name="ipNetToMediaTable",
    entry_oid=IP + (22, 1),
    columns=(
        Column(1, "ipNetToMediaIfIndex", "if_index", INTEGER32),
        Column(2, "ipNetToMediaPhysAddress", "phys_address", OCTET_STRING),
        Column(3, "ipNetToMediaNetAddress", "net_address", IP_ADDRESS),
        Column(4, "ipNetToMediaType", "media_type", INTEGER32),
    ),
    index=lambda row: (row.if_index,) + ipv4_to_subids(row.net_address),
)

TCP_CONN_TABLE = TableObject(
    name="tcpConnTable",
    entry_oid=TCP + (13, 1),
    columns=(
        Column(1, "tcpConnState", "state", INTEGER32),
        Column(2, "tcpConnLocalAddress", "local_address", IP_ADDRESS),
        Column(3, "tcpConnLocalPort", "local_port", INTEGER32),
        Column(4, "tcpConnRemAddress", "remote_address", IP_ADDRESS),
        Column(5, "tcpConnRemPort", "remote_port", INTEGER32),
    ),
    index=lambda row: _endpoint_index(row.local_address, row.local_port)
    + _endpoint_index(row.remote_address, row.remote_port),
)

UDP_TABLE = TableObject(
    name="udpTable",
    entry_oid=UDP + (5, 1),
    columns=(
        Column(1, "udpLocalAddress", "local_address", IP_ADDRESS),
        Column(2, "udpLocalPort", "local_port", INTEGER32),
    ),
    index=lambda row: _endpoint_index(row.local_address, row.local_port),
)

IPV6_IF_TABLE = TableObject(
    name="ipv6IfTable",
    entry_oid=IPV6_MIB_OBJECTS + (5, 1),
    columns=(
        Column(2, "ipv6IfDescr", "descr", OCTET_STRING),
        Column(3, "ipv6IfLowerLayer", "lower_layer", OBJECT_IDENTIFIER),
        Column(4, "ipv6IfEffectiveMtu", "effective_mtu", GAUGE32),
        Column(5, "ipv6IfReasmMaxSize", "reasm_max_size", GAUGE32),
        Column(6, "ipv6IfIdentifier", "identifier", OCTET_STRING),
        Column(7, "ipv6IfIdentifierLength", "identifier_length", INTEGER32),
        Column(8, "ipv6IfPhysicalAddress", "phys_address", OCTET_STRING),
        Column(9, "ipv6IfAdminStatus", "admin_status", INTEGER32),
        Column(10, "ipv6IfOperStatus", "oper_status", INTEGER32),
        Column(11, "ipv6IfLastChange", "last_change", TIME_TICKS),
    ),
    index=lambda row: (row.index,),
)

_IPV6_STATS_COLUMNS = (
    ("ipv6IfStatsInReceives", "in_receives"),
    ("ipv6IfStatsInHdrErrors", "in_hdr_errors"),
    ("ipv6IfStatsInTooBigErrors", "in_too_big_errors"),
    ("ipv6IfStatsInNoRoutes", "in_no_routes"),
    ("ipv6IfStatsInAddrErrors", "in_addr_errors"),
    ("ipv6IfStatsInUnknownProtos", "in_unknown_protos"),
    ("ipv6IfStatsInTruncatedPkts", "in_truncated_pkts"),
    ("ipv6IfStatsInDiscards", "in_discards"),
    ("ipv6IfStatsInDelivers", "in_delivers"),
    ("ipv6IfStatsOutForwDatagrams", "out_forw_datagrams"),
    ("ipv6IfStatsOutRequests", "out_requests"),
    ("ipv6IfStatsOutDiscards", "out_discards"),
    ("ipv6IfStatsOutFragOKs", "out_frag_oks"),
    ("ipv6IfStatsOutFragFails", "out_frag_fails"),
    ("ipv6IfStatsOutFragCreates", "out_frag_creates"),
    ("ipv6IfStatsReasmReqds", "reasm_reqds"),
    ("ipv6IfStatsReasmOKs", "reasm_oks"),
    ("ipv6IfStatsReasmFails", "reasm_fails"),
    ("ipv6IfStatsInMcastPkts", "in_mcast_pkts"),
    ("ipv6IfStatsOutMcastPkts", "out_mcast_pkts"),
)

IPV6_IF_STATS_TABLE = TableObject(
    name="ipv6IfStatsTable",
    entry_oid=IPV6_MIB_OBJECTS + (6, 1),
    columns=tuple(
        Column(sub_id, name, attribute, COUNTER32)
        for sub_id, (name, attribute) in enumerate(_IPV6_STATS_COLUMNS, start=1)
    ),
    index=lambda row: (row.if_index,),
)

IPV6_ADDR_TABLE = TableObject(
    name="ipv6AddrTable",
    entry_oid=IPV6_MIB_OBJECTS + (8, 1),
    columns=(
        Column(2, "ipv6AddrPfxLength", "pfx_length", INTEGER32),
        Column(3, "ipv6AddrType", "addr_type", INTEGER32),
        Column(4, "ipv6AddrAnycastFlag", "anycast_flag", INTEGER32),
        Column(5, "ipv6AddrStatus", "status", INTEGER32),
    ),
    # Ipv6Address is a fixed-length string, so no length prefix
    index=lambda row: (row.if_index,) + tuple(ipv6_to_bytes(row.address)),
)

TABLES = (
    IF_TABLE,
    IP_ADDR_TABLE,
    IP_ROUTE_TABLE,
    IP_NET_TO_MEDIA_TABLE,
    TCP_CONN_TABLE,
    UDP_TABLE,
    IPV6_IF_TABLE,
    IPV6_IF_STATS_TABLE,
    IPV6_ADDR_TABLE,
)

SCALARS: Tuple[ScalarObject, ...] = SYSTEM_SCALARS + KERNEL_SCALARS + NET_SNMP_SCALARS

OBJECTS_BY_NAME: Dict[str, Any] = {obj.name: obj for obj in SCALARS + TABLES}
