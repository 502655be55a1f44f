"""Random USB ethernet MAC generation and the g_ether modprobe option file."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

log = logging.getLogger(__name__)

G_ETHER_CONF = "/etc/modprobe.d/g_ether.conf"
_PREFIX = "options g_ether host_addr="
_MAC_TEXT_LEN = 17


def random_ether_addr(source: BinaryIO | None = None) -> bytes:
    """Return a random unicast, locally administered 6-byte ethernet address.

    Bytes are taken from ``source`` if given, else from the OS random source.
    """
    raw = source.read(6) if source is not None else os.urandom(6)
    if len(raw) < 6:
        raise ValueError("MAC generation failed: not enough random bytes")
    first = (raw[0] & 0xFE) | 0x02
    return bytes([first]) + bytes(raw[1:6])


def format_g_ether_options(addr: bytes) -> str:
    """Return the modprobe options line that sets the g_ether host address."""
    if len(addr) != 6:
        raise ValueError("ethernet address must be 6 bytes")
    return _PREFIX + ":".join(f"{b:02x}" for b in addr) + "\n"


def write_random_mac(path: str | os.PathLike = G_ETHER_CONF,
                     source: BinaryIO | None = None) -> bytes:
    """Generate a random address, write it to the g_ether config and return it."""
    addr = random_ether_addr(source)
    log.debug("Getting random usb ethernet mac")
    Path(path).write_text(format_g_ether_options(addr))
    return addr


def read_mac(path: str | os.PathLike = G_ETHER_CONF) -> str | None:
    """Read the MAC text from the g_ether config, or None if it is missing or short."""
    try:
        with open(path, "rb") as fh:
            fh.seek(len(_PREFIX))
            data = fh.read(_MAC_TEXT_LEN)
    except OSError:
        log.warning("Failed to read mac address from %s", path)
        return None
    if len(data) != _MAC_TEXT_LEN:
        return None
    return data.decode("latin-1")