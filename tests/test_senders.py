from datetime import datetime, timedelta
import pytest
from senders import SenderRegistry

T0 = datetime(2024, 5, 1, 12, 0, 0)


def test_first_packet_creates_entry():
    registry = SenderRegistry()

    info = registry.record_packet("10.0.0.1", 11, T0)

    assert "10.0.0.1" in registry
    assert len(registry) == 1
    assert info.packet_count == 1
    assert info.total_bytes == 11
    assert info.first_seen == info.last_seen == T0


def test_packets_from_one_sender_accumulate():
    registry = SenderRegistry()
    sizes = [5, 0, 1500, 42, 7]

    for i, size in enumerate(sizes):
        registry.record_packet("10.0.0.1", size, T0 + timedelta(seconds=i),
                                float(i))

    info = registry.get("10.0.0.1")
    assert info.packet_count == len(sizes)
    assert info.total_bytes == sum(sizes)
    assert info.first_seen == T0
    assert info.last_seen == T0 + timedelta(seconds=4)
    assert info.first_seen <= info.last_seen
    assert info.duration == timedelta(seconds=4)
    assert info.average_size == sum(sizes) // len(sizes)


def test_senders_are_independent():
    registry = SenderRegistry()

    registry.record_packet("10.0.0.1", 100, T0)
    registry.record_packet("10.0.0.2", 3, T0)
    registry.record_packet("10.0.0.1", 100, T0)

    assert registry.get("10.0.0.1").packet_count == 2
    assert registry.get("10.0.0.1").total_bytes == 200
    assert registry.get("10.0.0.2").packet_count == 1
    assert registry.get("10.0.0.2").total_bytes == 3


def test_zero_length_packet_counts():
    registry = SenderRegistry()
    registry.record_packet("10.0.0.1", 8, T0)

    info = registry.record_packet("10.0.0.1", 0, T0)

    assert info.packet_count == 2
    assert info.total_bytes == 8


def test_snapshot_is_read_only_and_detached():
    registry = SenderRegistry()
    registry.record_packet("10.0.0.1", 10, T0)

    snapshot = registry.snapshot()
    registry.record_packet("10.0.0.1", 10, T0)
    registry.record_packet("10.0.0.3", 10, T0)

    assert snapshot["10.0.0.1"].packet_count == 1
    assert "10.0.0.3" not in snapshot
    with pytest.raises(TypeError):
        snapshot["10.0.0.9"] = None


def test_unknown_sender():
    registry = SenderRegistry()

    assert registry.get("10.0.0.1") is None
    assert len(registry.snapshot()) == 0


def test_wall_clock_step_back_keeps_order():
    registry = SenderRegistry()

    registry.record_packet("10.0.0.1", 1, T0 + timedelta(seconds=5), 100.0)
    info = registry.record_packet("10.0.0.1", 1, T0, 101.5)

    assert info.first_seen == T0 + timedelta(seconds=5)
    assert info.last_seen == T0 + timedelta(seconds=6.5)
    assert info.first_seen <= info.last_seen
    assert info.duration == timedelta(seconds=1.5)
