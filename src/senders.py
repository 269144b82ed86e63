import copy
import time
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Mapping


class SenderInfo:
    """
    Statistics for one source IP. Wall-clock time is only read once, for
    first_seen; elapsed time comes from monotonic clock readings, so a clock
    step cannot make last_seen precede first_seen.
    """

    def __init__(self, ip: str, first_seen: datetime, clock: float):
        self.ip = ip
        self.first_seen = first_seen
        self.first_clock = clock
        self.last_clock = clock
        self.packet_count = 0
        self.total_bytes = 0

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.last_clock - self.first_clock)

    @property
    def last_seen(self) -> datetime:
        return self.first_seen + self.duration

    @property
    def average_size(self) -> int | None:
        if self.packet_count == 0:
            return None
        return self.total_bytes // self.packet_count

    def __repr__(self) -> str:
        return (f"SenderInfo(ip={self.ip!r}, packet_count={self.packet_count},"
                f" total_bytes={self.total_bytes})")


class SenderRegistry:
    """
    Aggregate statistics for every source IP seen. The port is not part of
    the key, so all sockets of one host share an entry.
    """

    def __init__(self):
        self._senders: dict[str, SenderInfo] = {}

    def record_packet(
            self,
            ip: str,
            byte_length: int,
            now: datetime,
            clock: float | None = None
        ) -> SenderInfo:
        """
        Account one packet of byte_length bytes to the sender ip.

        Args:
            ip (str): source IP of the packet
            byte_length (int): payload size, may be 0
            now (datetime): wall-clock time the packet is processed
            clock (float | None): monotonic reading taken with now, read
                from time.monotonic() when not given

        Returns:
            SenderInfo: the updated entry for ip
        """
        clock = time.monotonic() if clock is None else clock

        info = self._senders.get(ip)
        if info is None:
            info = SenderInfo(ip, now, clock)
            self._senders[ip] = info

        info.packet_count += 1
        info.total_bytes += byte_length
        # monotonic readings never go back, this only guards caller input
        info.last_clock = max(info.last_clock, clock)
        return info

    def snapshot(self) -> Mapping[str, SenderInfo]:
        """
        Return a read-only view of copies of all entries, unaffected by
        later updates.
        """
        return MappingProxyType(
            {ip: copy.copy(info) for ip, info in self._senders.items()}
        )

    def get(self, ip: str) -> SenderInfo | None:
        return self._senders.get(ip)

    def __contains__(self, ip: object) -> bool:
        return ip in self._senders

    def __len__(self) -> int:
        return len(self._senders)
