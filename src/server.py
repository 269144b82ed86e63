import sys
import enum
import time
import queue
import signal
import socket
import logging
import argparse
import threading
from datetime import datetime
from typing import Mapping
from hexdump import format_hex_dump
from logger import ReportLogger
from packet import ReceivedPacket
from receiver import receiver_thread
from senders import SenderInfo, SenderRegistry
import utils


# empty host: every interface, IPv6 and IPv4 where the system allows both
DEFAULT_HOST = ""
DEFAULT_PORT = 3000
DEFAULT_QUEUE_SIZE = 100
DEFAULT_POLL_INTERVAL = 0.5

REPORT_SEPARATOR_WIDTH = 79
SUMMARY_SEPARATOR_WIDTH = 80
RECEIVER_JOIN_TIMEOUT = 2.0


class StartupError(Exception):
    """Raised when the capture cannot be started. Nothing is left running."""


class LoopState(enum.Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting down"


class ServerConfig:
    def __init__(
            self,
            host: str = DEFAULT_HOST,
            port: int = DEFAULT_PORT,
            log_file: str | None = None,
            console_output: bool = True,
            queue_size: int = DEFAULT_QUEUE_SIZE,
            poll_interval: float = DEFAULT_POLL_INTERVAL,
            drain_on_shutdown: bool = False,
            exit_event: threading.Event | None = None
        ):
        self.host = host
        self.port = port
        self.log_file = log_file
        self.console_output = console_output
        self.queue_size = queue_size
        self.poll_interval = poll_interval
        self.drain_on_shutdown = drain_on_shutdown
        self.exit_event = threading.Event() if exit_event is None else exit_event


def build_report(
        index: int,
        packet: ReceivedPacket,
        sender: SenderInfo,
        now: datetime
    ) -> str:
    """
    Build the complete report block for one packet: a header identifying
    the packet and its sender, followed by the hex dump of the payload.
    """
    line = utils.separator(REPORT_SEPARATOR_WIDTH)
    header = (
        f"\n{line}\n"
        f"📦 Packet #{index} | Timestamp: {utils.format_timestamp(now)}\n"
        f"📍 Sender: {packet.ip} (Port: {packet.port})\n"
        f"📊 Size: {packet.length} bytes | Total from this sender:"
        f" {sender.packet_count} packets, {sender.total_bytes} bytes\n"
        f"{line}\n"
    )
    return header + format_hex_dump(packet.payload)


def format_sender_summary(senders: Mapping[str, SenderInfo]) -> str:
    """
    Render the final per-sender statistics. Returns an empty string when no
    sender was seen.
    """
    if not senders:
        return ""

    line = utils.separator(SUMMARY_SEPARATOR_WIDTH)
    lines = ["", line, "📊 SENDER SUMMARY", line]

    for ip, info in senders.items():
        first_seen = utils.format_timestamp(info.first_seen, millis=False)
        last_seen = utils.format_timestamp(info.last_seen, millis=False)
        lines.append("")
        lines.append(f"📍 Sender: {ip}")
        lines.append(f"   First seen: {first_seen}")
        lines.append(f"   Last seen:  {last_seen}")
        lines.append(f"   Duration:   {utils.format_duration(info.duration)}")
        lines.append(f"   Packets:    {info.packet_count}")
        lines.append(f"   Total bytes: {info.total_bytes}")
        if info.average_size is not None:
            lines.append(f"   Avg packet size: {info.average_size} bytes")

    lines.append(line)
    return "\n".join(lines) + "\n"


class EventLoop:
    """
    Consume packets from the receiver until the exit event is set, keeping
    the packet counter and per-sender statistics, and writing one report
    block per packet.

    Args:
        packet_queue (queue.Queue[ReceivedPacket]): queue fed by the receiver
        exit_event (threading.Event): shutdown signal
        report_logger (ReportLogger): console/file sinks for report blocks
        poll_interval (float): longest wait on the queue before the exit
            event is checked again
        drain_on_shutdown (bool): report packets still queued at shutdown
            instead of discarding them
    """

    def __init__(
            self,
            packet_queue: queue.Queue[ReceivedPacket],
            exit_event: threading.Event,
            report_logger: ReportLogger,
            poll_interval: float = DEFAULT_POLL_INTERVAL,
            drain_on_shutdown: bool = False
        ):
        self.packet_queue = packet_queue
        self.exit_event = exit_event
        self.report_logger = report_logger
        self.poll_interval = poll_interval
        self.drain_on_shutdown = drain_on_shutdown

        self.state = LoopState.RUNNING
        self.packet_count = 0
        self.registry = SenderRegistry()

    def run(self) -> int:
        """
        Run until shutdown, then print the summary.

        Returns:
            int: total number of packets handled
        """
        while not self.exit_event.is_set():
            try:
                packet = self.packet_queue.get(block=True,
                                               timeout=self.poll_interval)
            except queue.Empty:
                continue
            self.handle_packet(packet)

        self.shutdown()
        return self.packet_count

    def handle_packet(
            self,
            packet: ReceivedPacket,
            now: datetime | None = None,
            clock: float | None = None
        ) -> str:
        now = datetime.now() if now is None else now
        clock = time.monotonic() if clock is None else clock
        self.packet_count += 1
        sender = self.registry.record_packet(packet.ip, packet.length, now,
                                             clock)

        report = build_report(self.packet_count, packet, sender, now)
        self.report_logger.write(report)
        return report

    def shutdown(self) -> None:
        self.state = LoopState.SHUTTING_DOWN

        pending = []
        while True:
            try:
                pending.append(self.packet_queue.get_nowait())
            except queue.Empty:
                break

        if self.drain_on_shutdown:
            for packet in pending:
                self.handle_packet(packet)
        elif pending:
            logging.debug(f"Discarded {len(pending)} queued packets at shutdown.")

        logging.info("Received shutdown signal. Total packets received:"
                     f" {self.packet_count}")
        sys.stdout.write(format_sender_summary(self.registry.snapshot()))
        sys.stdout.flush()


def open_server_socket(server_config: ServerConfig) -> socket.socket:
    """
    Resolve and bind the UDP socket described by the config. An empty host
    or "::" binds a dual-stack socket when the system supports it, so IPv4
    and IPv6 senders are both captured.

    Raises:
        StartupError: if the address cannot be resolved or bound
    """
    host = server_config.host
    port = server_config.port

    bind_host = host
    if not bind_host:
        bind_host = "::" if socket.has_dualstack_ipv6() else "0.0.0.0"

    try:
        family, _, _, _, address = socket.getaddrinfo(
            bind_host, port, socket.AF_UNSPEC, socket.SOCK_DGRAM, 0,
            socket.AI_PASSIVE
        )[0]
    except (socket.gaierror, OverflowError) as e:
        raise StartupError(f"Failed to resolve UDP address {host}:{port}: {e}")

    server_socket = socket.socket(family, socket.SOCK_DGRAM)
    try:
        if (family == socket.AF_INET6 and address[0] == "::"
                and socket.has_dualstack_ipv6()):
            server_socket.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        server_socket.bind(address)
    except (OSError, OverflowError) as e:
        server_socket.close()
        raise StartupError(f"Failed to listen on UDP port {port}: {e}")

    server_socket.settimeout(server_config.poll_interval)
    return server_socket


def udp_server(
        server_config: ServerConfig,
        server_socket: socket.socket | None = None
    ) -> EventLoop:
    """
    Start the capture and run it until the exit event is set.

    Args:
        server_config (ServerConfig): config of the UDP capture
        server_socket (socket.socket | None): already bound socket, opened
            from the config when not given

    Returns:
        EventLoop: the finished loop, holding the final statistics

    Raises:
        StartupError: if the socket or the log file cannot be opened
    """
    if server_socket is None:
        server_socket = open_server_socket(server_config)

    host, port = server_socket.getsockname()[:2]
    if ":" in host:
        host = f"[{host}]"
    logging.info(f"UDP server started on {host}:{port}")

    try:
        report_logger = ReportLogger(server_config.console_output,
                                     server_config.log_file)
    except OSError as e:
        server_socket.close()
        raise StartupError(f"Failed to open log file: {e}")

    if server_config.log_file is not None:
        logging.info(f"Logging to file: {server_config.log_file}")

    exit_event = server_config.exit_event
    packet_queue = queue.Queue[ReceivedPacket](maxsize=server_config.queue_size)
    event_loop = EventLoop(
        packet_queue,
        exit_event,
        report_logger,
        server_config.poll_interval,
        server_config.drain_on_shutdown
    )

    receiver = threading.Thread(
        target=receiver_thread,
        args=(
            server_socket,
            packet_queue,
            exit_event,
            server_config.poll_interval
        ),
        daemon=True
    )
    receiver.start()

    try:
        event_loop.run()
    finally:
        # Stop the receiver and release the socket and log file
        exit_event.set()
        receiver.join(timeout=RECEIVER_JOIN_TIMEOUT)
        server_socket.close()
        report_logger.close()

    return event_loop


def install_signal_handlers(exit_event: threading.Event) -> dict:
    """
    Set the exit event on SIGINT and SIGTERM. Must be called from the main
    thread. Returns the previous handlers so they can be restored.
    """
    def _handle_signal(signum, frame):
        logging.debug(f"Caught signal {signal.Signals(signum).name}.")
        exit_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handle_signal)
    return previous


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Capture UDP packets and print them as hex dumps."
    )

    parser.add_argument('-p', '--port', type=int, default=DEFAULT_PORT,
                        help="UDP port to listen on (default: %(default)s)")
    parser.add_argument('-f', '--file', default=None,
                        help="Log file path (optional, console only if not set)")
    parser.add_argument('--console', action=argparse.BooleanOptionalAction,
                        default=True, help="Enable console output")
    parser.add_argument('--host', default=DEFAULT_HOST,
                        help="Address to bind (default: all interfaces, IPv6 and IPv4)")
    parser.add_argument('--queue-size', type=int, default=DEFAULT_QUEUE_SIZE,
                        help="Packets buffered between receiver and report"
                             " writer (default: %(default)s)")
    parser.add_argument('--drain', action='store_true',
                        help="Report packets still queued at shutdown")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Show debug diagnostics")

    args = parser.parse_args(argv)
    if not 0 <= args.port <= 65535:
        parser.error("--port must be between 0 and 65535")
    if args.queue_size < 1:
        parser.error("--queue-size must be at least 1")
    return args


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        encoding='utf-8',
        format="%(asctime)s [%(levelname)s] %(message)s"
    )

    server_config = ServerConfig(
        host=args.host,
        port=args.port,
        log_file=args.file,
        console_output=args.console,
        queue_size=args.queue_size,
        drain_on_shutdown=args.drain
    )

    previous_handlers = install_signal_handlers(server_config.exit_event)
    try:
        udp_server(server_config)
    except StartupError as e:
        logging.error(str(e))
        return 1
    finally:
        for signum, handler in previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)

    return 0


if __name__ == "__main__":
    sys.exit(main())
