import math
import pytest
from hexdump import format_hex_dump

ASCII_START = 57


def _hex_bytes(line: str) -> bytes:
    return bytes.fromhex(line[6:55])


def _ascii_column(line: str) -> str:
    return line[ASCII_START:-2]


def test_empty_input_gives_empty_string():
    assert format_hex_dump(b"") == ""


def test_hello_world():
    dump = format_hex_dump(b"Hello World")

    hex_part = "48 65 6c 6c 6f 20 57 6f  72 6c 64 " + " " * 15
    assert dump == f"0000: {hex_part} |Hello World|\n"


def test_full_line():
    dump = format_hex_dump(b"0123456789abcdef")

    assert dump == ("0000: 30 31 32 33 34 35 36 37  38 39 61 62 63 64 65 66"
                    "  |0123456789abcdef|\n")


def test_second_line_offset():
    lines = format_hex_dump(b"Hello World\nTest data").splitlines()

    assert lines[0].startswith("0000: 48 65 6c")
    assert lines[0].endswith("|Hello World.Test|")
    assert lines[1].startswith("0010: 20 64 61 74 61 ")
    assert lines[1].endswith("| data|")


@pytest.mark.parametrize("length", [1, 15, 16, 17, 255, 256, 1000, 65535])
def test_line_count(length):
    dump = format_hex_dump(bytes(i % 256 for i in range(length)))

    assert dump.count("\n") == math.ceil(length / 16)
    assert dump.endswith("\n")


def test_offsets_are_lowercase_multiples_of_sixteen():
    lines = format_hex_dump(bytes(300)).splitlines()

    assert [line[:6] for line in lines[:3]] == ["0000: ", "0010: ", "0020: "]
    assert lines[-1].startswith("0120: ")


@pytest.mark.parametrize("data", [
    bytes(range(256)),
    b"START\x00\x01\x02\x03\xff\xfe\xfdEND",
    bytes(i % 256 for i in range(5000)),
    b"\x00",
])
def test_hex_columns_reconstruct_payload(data):
    lines = format_hex_dump(data).splitlines(keepends=True)

    assert b"".join(_hex_bytes(line) for line in lines) == data


def test_ascii_column_aligned_on_short_lines():
    lines = format_hex_dump(bytes(range(40))).splitlines(keepends=True)

    assert {line[ASCII_START - 1] for line in lines} == {"|"}


def test_printable_bytes_shown_verbatim():
    data = bytes(range(32, 127))
    lines = format_hex_dump(data).splitlines(keepends=True)

    for i, line in enumerate(lines):
        assert _ascii_column(line) == data[i * 16 : i * 16 + 16].decode("ascii")


def test_non_printable_bytes_shown_as_dots():
    dump = format_hex_dump(b"START\x00\x01\x02\x03\x1f\x7f\x80\xffEND")

    assert dump.endswith("|START........END|\n")
