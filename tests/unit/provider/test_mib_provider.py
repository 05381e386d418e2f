import asyncio
from pathlib import Path

import pytest

from linux_mib.errors import FormatError, NotWritableError, UnknownObjectError
from linux_mib.mib_objects import NET_SNMP_SCALARS, OBJECTS_BY_NAME
from linux_mib.mib_provider import LinuxMibProvider, build_provider
from linux_mib.records import IpForwarding
from linux_mib.system_group import SystemGroup
from linux_mib.table_builder import TableBuilder


@pytest.fixture
def provider(builder: TableBuilder) -> LinuxMibProvider:
    return LinuxMibProvider(SystemGroup(descr="test host", name="host1"), builder)


def test_every_defined_object_has_an_accessor(provider: LinuxMibProvider) -> None:
    assert set(provider.names()) == set(OBJECTS_BY_NAME)


def test_unknown_object(provider: LinuxMibProvider) -> None:
    with pytest.raises(UnknownObjectError):
        asyncio.run(provider.get("egpInMsgs"))
    with pytest.raises(KeyError):
        provider.accessor("snmpInPkts")


def test_system_scalars(provider: LinuxMibProvider) -> None:
    assert asyncio.run(provider.get("sysDescr")) == "test host"
    assert asyncio.run(provider.get("sysName")) == "host1"
    assert asyncio.run(provider.get("sysUpTime")) >= 0


def test_set_writable_objects(provider: LinuxMibProvider) -> None:
    provider.set("sysContact", "noc@example.com")
    provider.set("sysLocation", "lab")
    assert asyncio.run(provider.get("sysContact")) == "noc@example.com"
    assert provider.system.location == "lab"


@pytest.mark.parametrize("name", ["sysDescr", "sysUpTime", "ifTable", "ipInReceives"])
def test_set_read_only_objects(provider: LinuxMibProvider, name: str) -> None:
    with pytest.raises(NotWritableError):
        provider.set(name, "x")


def test_set_unknown_object(provider: LinuxMibProvider) -> None:
    with pytest.raises(UnknownObjectError):
        provider.set("sysFoo", "x")


def test_counter_scalars_apply_numeric_policy(provider: LinuxMibProvider) -> None:
    # 4294967301 wraps as a Counter32
    assert asyncio.run(provider.get("ipInReceives")) == 5
    assert asyncio.run(provider.get("ipReasmTimeout")) == 30
    assert asyncio.run(provider.get("icmpInMsgs")) == 45
    assert asyncio.run(provider.get("icmpOutEchoReps")) == 1
    assert asyncio.run(provider.get("tcpMaxConn")) == -1
    assert asyncio.run(provider.get("tcpCurrEstab")) == 5
    assert asyncio.run(provider.get("tcpOutRsts")) == 11
    assert asyncio.run(provider.get("udpOutDatagrams")) == 310


def test_every_counter_scalar_is_present(provider: LinuxMibProvider) -> None:
    for scalar in NET_SNMP_SCALARS:
        assert isinstance(asyncio.run(provider.get(scalar.name)), int), scalar.name


def test_missing_counter_is_a_format_error(provider: LinuxMibProvider, proc_root: Path) -> None:
    (proc_root / "net" / "snmp").write_text("Udp: InDatagrams\nUdp: 1\n")
    with pytest.raises(FormatError, match="Tcp.CurrEstab"):
        asyncio.run(provider.get("tcpCurrEstab"))


def test_corrupt_net_snmp_fails_the_accessor(provider: LinuxMibProvider, proc_root: Path) -> None:
    (proc_root / "net" / "snmp").write_text("Ip: Forwarding\nTcp: 1\n")
    with pytest.raises(FormatError):
        asyncio.run(provider.get("ipInReceives"))


def test_sysctl_scalars(provider: LinuxMibProvider) -> None:
    assert asyncio.run(provider.get("ipForwarding")) == IpForwarding.FORWARDING
    assert asyncio.run(provider.get("ipDefaultTTL")) == 64
    assert asyncio.run(provider.get("ipRoutingDiscards")) == 0
    assert asyncio.run(provider.get("ipv6Forwarding")) == IpForwarding.NOT_FORWARDING
    assert asyncio.run(provider.get("ipv6DefaultHopLimit")) == 64
    assert asyncio.run(provider.get("ipv6Interfaces")) == 2
    assert asyncio.run(provider.get("ipv6IfTableLastChange")) == 0


@pytest.mark.parametrize(
    "raw, expected",
    [(0, IpForwarding.NOT_FORWARDING), (1, IpForwarding.FORWARDING), (2, IpForwarding.FORWARDING)],
)
def test_any_nonzero_sysctl_means_forwarding(
    provider: LinuxMibProvider, proc_root: Path, raw: int, expected: IpForwarding
) -> None:
    (proc_root / "sys" / "net" / "ipv4" / "ip_forward").write_text(f"{raw}\n")
    (proc_root / "sys" / "net" / "ipv6" / "conf" / "all" / "forwarding").write_text(f"{raw}\n")

    assert asyncio.run(provider.get("ipForwarding")) == expected
    assert asyncio.run(provider.get("ipv6Forwarding")) == expected


def test_table_accessors(provider: LinuxMibProvider) -> None:
    assert asyncio.run(provider.get("ifNumber")) == 2
    assert [row.index for row in asyncio.run(provider.get("ifTable"))] == [1, 2]
    assert len(asyncio.run(provider.get("ipRouteTable"))) == 2
    assert len(asyncio.run(provider.get("udpTable"))) == 1


def test_table_accessors_are_idempotent(provider: LinuxMibProvider) -> None:
    for name in ("ifTable", "ipAddrTable", "ipNetToMediaTable", "tcpConnTable", "ipv6IfStatsTable"):
        assert asyncio.run(provider.get(name)) == asyncio.run(provider.get(name)), name


def test_build_provider_from_config(mocker, proc_root: Path, sysfs_root: Path, two_interfaces) -> None:
    settings = {
        "kernel.procfs_root": str(proc_root),
        "kernel.sysfs_net_root": str(sysfs_root),
        "system.descr": "configured host",
        "system.services": "76",
        "dns.max_concurrency": 3,
    }
    config = mocker.Mock()
    config.get.side_effect = lambda key, default=None: settings.get(key, default)

    provider = build_provider(config)

    assert asyncio.run(provider.get("sysDescr")) == "configured host"
    assert asyncio.run(provider.get("sysServices")) == 76
    assert asyncio.run(provider.get("ipDefaultTTL")) == 64
    assert provider.tables.dns_concurrency == 3
    assert sorted(provider.tables.registry.ensure_indexed()) == ["eth0", "lo"]


def test_build_provider_defaults() -> None:
    provider = build_provider()
    assert provider.procfs.root == Path("/proc")
    assert provider.tables.sysfs.root == Path("/sys/class/net")
    assert provider.tables.pci_ids.path == Path("/usr/share/misc/pci.ids")
