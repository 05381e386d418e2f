import asyncio
import socket

import pytest

from linux_mib.address_info import IPV4, IPV6, collect_address_info
from linux_mib.errors import NotFoundError
from linux_mib.records import IpNetToMediaType
from linux_mib.table_builder import REASM_MAX_SIZE, TableBuilder


def test_collect_address_info_partitions_by_family(fake_addrs) -> None:
    info = collect_address_info(lambda: fake_addrs)

    assert set(info.by_ip[IPV4]) == {"127.0.0.1", "192.168.1.15"}
    assert set(info.by_ip[IPV6]) == {"::1", "fe80::a00:27ff:feaa:bbcc%eth0"}
    assert info.by_ip[IPV6]["fe80::a00:27ff:feaa:bbcc%eth0"].address == "fe80::a00:27ff:feaa:bbcc"
    # Loopback has no meaningful hardware address
    assert list(info.by_hw[IPV4]) == ["08:00:27:aa:bb:cc"]
    assert [e.address for e in info.by_hw[IPV4]["08:00:27:aa:bb:cc"]] == ["192.168.1.15"]


def test_alias_label_resolves_to_device(fake_addrs, fake_addr) -> None:
    fake_addrs["eth0:1"] = [fake_addr(socket.AF_INET, "10.0.0.5", "255.0.0.0", None, None)]
    info = collect_address_info(lambda: fake_addrs)

    entry = info.by_ip[IPV4]["10.0.0.5"]
    assert entry.interface == "eth0"
    assert entry.mac == "08:00:27:aa:bb:cc"


def test_default_enumerator_is_psutil(mocker, fake_addrs) -> None:
    mock = mocker.patch("psutil.net_if_addrs", return_value=fake_addrs)
    info = collect_address_info()
    mock.assert_called_once()
    assert "192.168.1.15" in info.by_ip[IPV4]


def test_ip_addr_table(builder: TableBuilder) -> None:
    rows = asyncio.run(builder.get_ip_addr_table())

    by_address = {row.address: row for row in rows}
    assert set(by_address) == {"127.0.0.1", "192.168.1.15"}
    eth0 = by_address["192.168.1.15"]
    assert eth0.if_index == 2
    assert eth0.net_mask == "255.255.255.0"
    assert eth0.bcast_addr == 1
    assert eth0.reasm_max_size == REASM_MAX_SIZE
    assert by_address["127.0.0.1"].if_index == 1


def test_ip_addr_table_enumerates_once(builder: TableBuilder, mocker, fake_addrs) -> None:
    enumerate_addrs = mocker.Mock(return_value=fake_addrs)
    builder._net_if_addrs = enumerate_addrs
    asyncio.run(builder.get_ip_addr_table())
    enumerate_addrs.assert_called_once_with()


def test_ip_addr_entry_reuses_supplied_info(builder: TableBuilder, mocker) -> None:
    info = asyncio.run(builder.address_info())
    enumerate_again = mocker.patch.object(builder, "address_info")

    row = asyncio.run(builder.get_ip_addr_entry("192.168.1.15", info))

    assert row.if_index == 2
    enumerate_again.assert_not_called()


def test_ip_addr_entry_unknown_address(builder: TableBuilder) -> None:
    with pytest.raises(NotFoundError, match="Address 10.9.9.9 does not exist"):
        asyncio.run(builder.get_ip_addr_entry("10.9.9.9"))


def test_address_on_unknown_interface_is_excluded(builder: TableBuilder, fake_addrs, fake_addr) -> None:
    fake_addrs["docker0"] = [fake_addr(socket.AF_INET, "172.17.0.1", "255.255.0.0", None, None)]

    rows = asyncio.run(builder.get_ip_addr_table())

    assert "172.17.0.1" not in {row.address for row in rows}
    assert len(rows) == 2


def test_net_to_media_table(builder: TableBuilder) -> None:
    rows = asyncio.run(builder.get_ip_net_to_media_table())

    assert len(rows) == 1
    row = rows[0]
    assert row.if_index == 2
    assert row.phys_address == bytes.fromhex("080027aabbcc")
    assert row.net_address == "192.168.1.15"
    assert row.media_type == IpNetToMediaType.OTHER


def test_net_to_media_entry(builder: TableBuilder) -> None:
    rows = asyncio.run(builder.get_ip_net_to_media_entry("08:00:27:AA:BB:CC"))
    assert [row.net_address for row in rows] == ["192.168.1.15"]

    with pytest.raises(NotFoundError):
        asyncio.run(builder.get_ip_net_to_media_entry("de:ad:be:ef:00:01"))


def test_address_tables_are_idempotent(builder: TableBuilder) -> None:
    assert asyncio.run(builder.get_ip_addr_table()) == asyncio.run(builder.get_ip_addr_table())
    assert asyncio.run(builder.get_ip_net_to_media_table()) == asyncio.run(
        builder.get_ip_net_to_media_table()
    )
