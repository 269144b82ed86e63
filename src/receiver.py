import socket
import queue
import logging
import threading
from packet import ReceivedPacket, MAX_DATAGRAM_SIZE

IPV4_MAPPED_PREFIX = "::ffff:"


def source_address(address: tuple) -> tuple[str, int]:
    """
    Reduce a socket address to (ip, port). IPv4 senders seen through a
    dual-stack socket are reported by their plain IPv4 address.
    """
    ip, port = address[:2]
    if ip.startswith(IPV4_MAPPED_PREFIX) and "." in ip:
        ip = ip[len(IPV4_MAPPED_PREFIX):]
    return ip, port


def enqueue_packet(
        packet: ReceivedPacket,
        packet_queue: queue.Queue[ReceivedPacket],
        exit_event: threading.Event,
        poll_interval: float = 0.5
    ) -> bool:
    """
    Put a packet on the queue, blocking while it is full. The exit event is
    checked every poll_interval so a full queue cannot hold up shutdown.

    Returns:
        bool: True once queued, False if shutdown was requested first.
    """
    while not exit_event.is_set():
        try:
            packet_queue.put(packet, block=True, timeout=poll_interval)
            return True
        except queue.Full:
            continue
    return False


def receiver_thread(
        server_socket: socket.socket,
        packet_queue: queue.Queue[ReceivedPacket],
        exit_event: threading.Event,
        poll_interval: float = 0.5
    ) -> None:
    """
    A thread reading datagrams from the bound socket and handing them to the
    event loop through the bounded packet queue.

    The socket is expected to have a timeout so the exit event is noticed
    while no traffic arrives.

    Args:
        server_socket (socket.socket): bound UDP socket
        packet_queue (queue.Queue[ReceivedPacket]): queue read by the event
            loop
        exit_event (threading.Event): set to stop the thread
        poll_interval (float): seconds between exit event checks while the
            queue is full
    """
    logging.info("Receiver starting up.")

    # scratch buffer reused for every read, packets get their own copy
    buffer = bytearray(MAX_DATAGRAM_SIZE)

    while not exit_event.is_set():
        try:
            nbytes, address = server_socket.recvfrom_into(buffer)
        except socket.timeout:
            continue
        except OSError as e:
            if exit_event.is_set() or server_socket.fileno() == -1:
                break
            logging.error(f"Error reading UDP packet: {e}")
            continue

        packet = ReceivedPacket(bytes(buffer[:nbytes]), nbytes,
                                source_address(address))
        logging.debug(f"Received {packet.get_info()}")

        if not enqueue_packet(packet, packet_queue, exit_event, poll_interval):
            logging.debug(f"Discarded {packet.get_info()} at shutdown.")

    logging.info("Receiver shutting down.")
