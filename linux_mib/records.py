"""
Row records and enumerations for the RFC1213-MIB and IPV6-MIB tables.

Records are built fresh for every table request and never mutated. Column
fields come first, in MIB column order; trailing fields carry join context
(interface names, resolved hostnames) that is not itself a MIB column.
"""

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Tuple


class IfType(IntEnum):
    OTHER = 1
    REGULAR_1822 = 2
    HDH_1822 = 3
    DDN_X25 = 4
    RFC877_X25 = 5
    ETHERNET_CSMACD = 6
    ISO88023_CSMACD = 7
    ISO88024_TOKEN_BUS = 8
    ISO88025_TOKEN_RING = 9
    ISO88026_MAN = 10
    STAR_LAN = 11
    PROTEON_10MBIT = 12
    PROTEON_80MBIT = 13
    HYPERCHANNEL = 14
    FDDI = 15
    LAPB = 16
    SDLC = 17
    DS1 = 18
    E1 = 19
    BASIC_ISDN = 20
    PRIMARY_ISDN = 21
    PROP_POINT_TO_POINT_SERIAL = 22
    PPP = 23
    SOFTWARE_LOOPBACK = 24
    EON = 25
    ETHERNET_3MBIT = 26
    NSIP = 27
    SLIP = 28
    ULTRA = 29
    DS3 = 30
    SIP = 31
    FRAME_RELAY = 32


class IfAdminStatus(IntEnum):
    UP = 1
    DOWN = 2
    TESTING = 3


class IfOperStatus(IntEnum):
    UP = 1
    DOWN = 2
    TESTING = 3
    UNKNOWN = 4
    DORMANT = 5
    NOT_PRESENT = 6
    LOWER_LAYER_DOWN = 7


# /sys/class/net/<if>/operstate text -> ifOperStatus
OPERSTATE_MAP = {
    "up": IfOperStatus.UP,
    "down": IfOperStatus.DOWN,
    "testing": IfOperStatus.TESTING,
    "unknown": IfOperStatus.UNKNOWN,
    "dormant": IfOperStatus.DORMANT,
    "notpresent": IfOperStatus.NOT_PRESENT,
    "lowerlayerdown": IfOperStatus.LOWER_LAYER_DOWN,
}


class IpForwarding(IntEnum):
    FORWARDING = 1
    NOT_FORWARDING = 2


class RouteFlags(IntFlag):
    """Flag bits of /proc/net/route (include/uapi/linux/route.h)."""

    UP = 0x0001  # route usable
    GATEWAY = 0x0002  # destination is a gateway
    HOST = 0x0004  # host entry (net otherwise)
    REINSTATE = 0x0008  # reinstate route after timeout
    DYNAMIC = 0x0010  # created dynamically (by redirect)
    MODIFIED = 0x0020  # modified dynamically (by redirect)
    MTU = 0x0040  # specific MTU for this route
    WINDOW = 0x0080  # per route window clamping
    IRTT = 0x0100  # initial round trip time
    REJECT = 0x0200  # reject route
    NOTCACHED = 0x0400  # this route isn't cached


class IpRouteType(IntEnum):
    OTHER = 1
    INVALID = 2
    DIRECT = 3
    INDIRECT = 4


class IpRouteProto(IntEnum):
    OTHER = 1
    LOCAL = 2


class IpNetToMediaType(IntEnum):
    OTHER = 1
    INVALID = 2
    DYNAMIC = 3
    STATIC = 4


class TcpConnState(IntEnum):
    CLOSED = 1
    LISTEN = 2
    SYN_SENT = 3
    SYN_RECEIVED = 4
    ESTABLISHED = 5
    FIN_WAIT1 = 6
    FIN_WAIT2 = 7
    CLOSE_WAIT = 8
    LAST_ACK = 9
    CLOSING = 10
    TIME_WAIT = 11
    DELETE_TCB = 12
    # Not in RFC1213; reported for the kernel's TCP_NEW_SYN_RECV
    NEW_SYN_RECEIVED = 13


# include/net/tcp_states.h -> tcpConnState
KERNEL_TCP_STATES = {
    1: TcpConnState.ESTABLISHED,
    2: TcpConnState.SYN_SENT,
    3: TcpConnState.SYN_RECEIVED,
    4: TcpConnState.FIN_WAIT1,
    5: TcpConnState.FIN_WAIT2,
    6: TcpConnState.TIME_WAIT,
    7: TcpConnState.CLOSED,
    8: TcpConnState.CLOSE_WAIT,
    9: TcpConnState.LAST_ACK,
    10: TcpConnState.LISTEN,
    11: TcpConnState.CLOSING,
    12: TcpConnState.NEW_SYN_RECEIVED,
}


class Ipv6IfOperStatus(IntEnum):
    UP = 1
    DOWN = 2
    NO_IF_IDENTIFIER = 3
    UNKNOWN = 4
    NOT_PRESENT = 5


class Ipv6AddrType(IntEnum):
    STATELESS = 1
    STATEFUL = 2
    UNKNOWN = 3


class TruthValue(IntEnum):
    TRUE = 1
    FALSE = 2


class Ipv6AddrStatus(IntEnum):
    PREFERRED = 1
    DEPRECATED = 2
    INVALID = 3
    INACCESSIBLE = 4
    UNKNOWN = 5


ZERO_DOT_ZERO = "0.0"


@dataclass(frozen=True)
class InterfaceRecord:
    """ifEntry"""

    index: int
    descr: str
    type: IfType
    mtu: int
    speed: int
    phys_address: bytes
    admin_status: IfAdminStatus
    oper_status: IfOperStatus
    last_change: int
    in_octets: int
    in_ucast_pkts: int
    in_nucast_pkts: int
    in_discards: int
    in_errors: int
    in_unknown_protos: int
    out_octets: int
    out_ucast_pkts: int
    out_nucast_pkts: int
    out_discards: int
    out_errors: int
    out_qlen: int
    specific: str = ZERO_DOT_ZERO


@dataclass(frozen=True)
class IpAddrRecord:
    """ipAddrEntry"""

    address: str
    if_index: int
    net_mask: str
    bcast_addr: int
    reasm_max_size: int
    interface: str


@dataclass(frozen=True)
class RouteRecord:
    """ipRouteEntry"""

    destination: str
    if_index: int
    metric1: int
    metric2: int
    metric3: int
    metric4: int
    gateway: str
    route_type: IpRouteType
    proto: IpRouteProto
    age: int
    mask: str
    metric5: int
    info: str
    interface: str
    flags: RouteFlags


@dataclass(frozen=True)
class NetToMediaRecord:
    """ipNetToMediaEntry"""

    if_index: int
    phys_address: bytes
    net_address: str
    media_type: IpNetToMediaType
    interface: str


@dataclass(frozen=True)
class TcpConnRecord:
    """tcpConnEntry"""

    state: TcpConnState
    local_address: str
    local_port: int
    remote_address: str
    remote_port: int
    remote_hostnames: Tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class UdpRecord:
    """udpEntry"""

    local_address: str
    local_port: int


@dataclass(frozen=True)
class Ipv6InterfaceRecord:
    """ipv6IfEntry"""

    index: int
    descr: str
    lower_layer: str
    effective_mtu: int
    reasm_max_size: int
    identifier: bytes
    identifier_length: int
    phys_address: bytes
    admin_status: IfAdminStatus
    oper_status: Ipv6IfOperStatus
    last_change: int


@dataclass(frozen=True)
class Ipv6StatsRecord:
    """ipv6IfStatsEntry, an augmentation of ipv6IfEntry sharing its index."""

    if_index: int
    in_receives: int
    in_hdr_errors: int
    in_too_big_errors: int
    in_no_routes: int
    in_addr_errors: int
    in_unknown_protos: int
    in_truncated_pkts: int
    in_discards: int
    in_delivers: int
    out_forw_datagrams: int
    out_requests: int
    out_discards: int
    out_frag_oks: int
    out_frag_fails: int
    out_frag_creates: int
    reasm_reqds: int
    reasm_oks: int
    reasm_fails: int
    in_mcast_pkts: int
    out_mcast_pkts: int


@dataclass(frozen=True)
class Ipv6AddrRecord:
    """ipv6AddrEntry"""

    if_index: int
    address: str
    pfx_length: int
    addr_type: Ipv6AddrType
    anycast_flag: TruthValue
    status: Ipv6AddrStatus
    interface: str
