MAX_DATAGRAM_SIZE = 65535


class ReceivedPacket:
    """
    A datagram captured by the receiver. The payload is an owned copy and the
    object is not modified after creation.
    """

    __slots__ = ("_payload", "_length", "_source_address")

    def __init__(
            self,
            payload: bytes,
            length: int,
            source_address: tuple[str, int]
        ):
        if length != len(payload):
            raise ValueError(f"Packet length {length} does not match payload"
                             f" size {len(payload)}")
        self._payload = bytes(payload)
        self._length = length
        self._source_address = source_address

    @property
    def payload(self) -> bytes:
        return self._payload

    @property
    def length(self) -> int:
        return self._length

    @property
    def source_address(self) -> tuple[str, int]:
        return self._source_address

    @property
    def ip(self) -> str:
        return self._source_address[0]

    @property
    def port(self) -> int:
        return self._source_address[1]

    def get_info(self) -> str:
        """
        Return the sender address and size of this packet.
        """
        return f"{self.ip}:{self.port} ({self.length} bytes)"

    def __repr__(self) -> str:
        return f"ReceivedPacket({self.get_info()})"
