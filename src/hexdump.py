BYTES_PER_LINE = 16
HALF_LINE = BYTES_PER_LINE // 2
PRINTABLE_MIN = 32
PRINTABLE_MAX = 126


def _printable(byte: int) -> str:
    return chr(byte) if PRINTABLE_MIN <= byte <= PRINTABLE_MAX else "."


def format_hex_dump(data: bytes) -> str:
    """
    Format bytes in hexdump style, 16 bytes per line:

        0000: 48 65 6c 6c 6f 20 57 6f  72 6c 64 0a 54 65 73 74  |Hello World.Test|
        0010: 20 64 61 74 61                                    | data|

    Args:
        data (bytes): payload to render

    Returns:
        str: one line per 16-byte chunk, each ending with a newline. Empty
        input gives an empty string.
    """
    lines = []

    for offset in range(0, len(data), BYTES_PER_LINE):
        chunk = data[offset : offset + BYTES_PER_LINE]

        hex_part = ""
        for slot in range(BYTES_PER_LINE):
            # pad missing slots so the ascii column stays aligned
            hex_part += f"{chunk[slot]:02x} " if slot < len(chunk) else "   "
            if slot == HALF_LINE - 1:
                hex_part += " "

        ascii_part = "".join(_printable(byte) for byte in chunk)
        lines.append(f"{offset:04x}: {hex_part} |{ascii_part}|\n")

    return "".join(lines)
