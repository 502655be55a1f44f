import io

import pytest

from gadgetmoded.mac import (
    format_g_ether_options,
    random_ether_addr,
    read_mac,
    write_random_mac,
)


def test_random_addr_bits_from_source():
    addr = random_ether_addr(io.BytesIO(b"\xff" * 6))
    assert addr == b"\xfe" + b"\xff" * 5


def test_random_addr_sets_local_bit_on_zero():
    addr = random_ether_addr(io.BytesIO(b"\x00" * 6))
    assert addr[0] == 0x02
    assert addr[1:] == b"\x00" * 5


def test_random_addr_default_source_invariants():
    for _ in range(20):
        addr = random_ether_addr()
        assert len(addr) == 6
        assert addr[0] & 0x01 == 0
        assert addr[0] & 0x02 == 0x02


def test_random_addr_short_source_raises():
    with pytest.raises(ValueError):
        random_ether_addr(io.BytesIO(b""))


def test_format_options_line():
    text = format_g_ether_options(b"\xfe" + b"\xff" * 5)
    assert text == "options g_ether host_addr=fe:ff:ff:ff:ff:ff\n"


def test_format_rejects_wrong_length():
    with pytest.raises(ValueError):
        format_g_ether_options(b"\x01\x02")


def test_write_then_read_round_trip(tmp_path):
    path = tmp_path / "g_ether.conf"
    addr = write_random_mac(path, io.BytesIO(bytes([0x10, 0x20, 0x30, 0x40, 0x50, 0x60])))
    assert path.read_text() == format_g_ether_options(addr)
    mac = read_mac(path)
    assert mac == ":".join(f"{b:02x}" for b in addr)


def test_read_missing_file(tmp_path):
    assert read_mac(tmp_path / "absent.conf") is None


def test_read_short_file(tmp_path):
    path = tmp_path / "g_ether.conf"
    path.write_text("options g_ether host_addr=02:00")
    assert read_mac(path) is None