import pytest

from linux_mib.system_group import DEFAULT_SERVICES, SystemGroup


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_identity_values() -> None:
    group = SystemGroup(
        descr="test host",
        object_id="1.3.6.1.4.1.99999",
        contact="ops@example.com",
        name="host1",
        location="rack 4",
    )
    assert group.descr == "test host"
    assert group.object_id == "1.3.6.1.4.1.99999"
    assert group.contact == "ops@example.com"
    assert group.name == "host1"
    assert group.location == "rack 4"
    assert group.services == DEFAULT_SERVICES


def test_only_writable_fields_have_setters() -> None:
    group = SystemGroup()
    group.contact = "new contact"
    group.name = "new name"
    group.location = "new location"
    assert (group.contact, group.name, group.location) == ("new contact", "new name", "new location")

    for read_only in ("descr", "object_id", "services", "started_at"):
        with pytest.raises(AttributeError):
            setattr(group, read_only, "x")


def test_uptime_in_centiseconds() -> None:
    clock = FakeClock()
    group = SystemGroup(clock=clock)
    assert group.uptime() == 0

    clock.now += 12.345
    assert group.uptime() == 1234

    clock.now += 3600
    assert group.uptime() == 361234


def test_uptime_from_explicit_start() -> None:
    group = SystemGroup(clock=FakeClock(50.0), started_at=40.0)
    assert group.started_at == 40.0
    assert group.uptime() == 1000
