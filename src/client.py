import sys
import time
import socket
import logging
import argparse

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000
DEFAULT_DELAY = 0.05


def send_udp(host: str, port: int, data: bytes) -> None:
    """
    Send one datagram from a fresh socket.

    Raises:
        OSError: if the address cannot be resolved or the send fails
    """
    family, _, _, _, address = socket.getaddrinfo(
        host, port, socket.AF_UNSPEC, socket.SOCK_DGRAM
    )[0]
    with socket.socket(family, socket.SOCK_DGRAM) as client_socket:
        client_socket.connect(address)
        client_socket.send(data)


def build_scenarios() -> dict[str, list[bytes]]:
    """
    Diagnostic payloads, each scenario a list of datagrams sent in order.
    """
    return {
        "text": [b"Hello World"],
        "binary": [bytes(range(256))],
        "large": [b"A" * 1024 + b"B" * 1024],
        "mixed": [b"START\x00\x01\x02\x03\xff\xfe\xfdEND"],
        "json": [b'{"name":"test","value":12345,"data":[1,2,3,4,5]}'],
        "very-large": [bytes(i % 256 for i in range(5000))],
        "multiple": [f"Packet #{i}".encode() for i in range(1, 11)],
    }


def run_scenarios(
        host: str,
        port: int,
        names: list[str],
        delay: float = DEFAULT_DELAY
    ) -> int:
    """
    Send the named scenarios and return the number of datagrams sent.
    """
    scenarios = build_scenarios()
    sent = 0

    for name in names:
        datagrams = scenarios[name]
        for data in datagrams:
            send_udp(host, port, data)
            sent += 1
            if delay > 0:
                time.sleep(delay)
        logging.info(f"Sent scenario '{name}': {len(datagrams)} packet(s)")

    return sent


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send diagnostic UDP payloads to a running capture."
    )
    parser.add_argument('scenarios', nargs='*', metavar='SCENARIO',
                        help="Scenarios to send, one of: "
                             f"{', '.join(build_scenarios())} (default: all)")
    parser.add_argument('--host', default=DEFAULT_HOST,
                        help="Target host (default: %(default)s)")
    parser.add_argument('-p', '--port', type=int, default=DEFAULT_PORT,
                        help="Target UDP port (default: %(default)s)")
    parser.add_argument('-d', '--delay', type=float, default=DEFAULT_DELAY,
                        help="Seconds between packets (default: %(default)s)")
    args = parser.parse_args(argv)

    unknown = [name for name in args.scenarios if name not in build_scenarios()]
    if unknown:
        parser.error(f"unknown scenario(s): {', '.join(unknown)}")
    return args


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        encoding='utf-8',
        format="%(asctime)s [%(levelname)s] %(message)s"
    )

    names = args.scenarios or list(build_scenarios())
    try:
        sent = run_scenarios(args.host, args.port, names, args.delay)
    except OSError as e:
        logging.error(f"Failed to send to {args.host}:{args.port}: {e}")
        return 1

    logging.info(f"Sent {sent} packet(s) to {args.host}:{args.port}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
