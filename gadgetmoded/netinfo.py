"""Network facts for USB tethering: DNS servers and which interface to use."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

log = logging.getLogger(__name__)

RESOLV_CONF_PATH = "/etc/resolv.conf"
SYSFS_NET_ROOT = "/sys/class/net"
DEFAULT_INTERFACE = "usb0"


@dataclass
class IpForwardData:
    """Parameters needed to forward traffic from the USB link to the outside."""

    dns1: str | None = None
    dns2: str | None = None
    nat_interface: str | None = None


def read_resolv_conf(path: str | os.PathLike = RESOLV_CONF_PATH) -> IpForwardData:
    """Take up to two nameservers from a resolv.conf file.

    With a single nameserver it is used as both primary and secondary.
    Raises OSError if the file cannot be read and ValueError if it holds
    no nameserver lines.
    """
    name = os.fspath(path)
    data = IpForwardData()
    count = 0
    try:
        with open(name, encoding="utf-8", errors="surrogateescape", newline="") as fh:
            for line in fh:
                if count >= 2:
                    break
                if not line or line[0] in "#\n":
                    continue
                tokens = line.split(" ", 2)
                if len(tokens) < 2 or tokens[0] != "nameserver":
                    continue
                server = tokens[1].strip()
                count += 1
                if count == 1:
                    data.dns1 = server
                else:
                    data.dns2 = server
    except OSError as exc:
        log.warning("%s: can't open for reading: %s", name, exc.strerror)
        raise

    if count < 1:
        log.warning("%s: no nameserver lines found", name)
        raise ValueError(f"{name}: no nameserver lines found")

    if count == 1:
        data.dns2 = data.dns1
    return data


def interface_exists(interface: str | None,
                     sysfs_root: str | os.PathLike = SYSFS_NET_ROOT) -> bool:
    """Tell whether a network interface of that name is present."""
    if interface is None:
        return False
    return os.access(os.path.join(os.fspath(sysfs_root), interface), os.F_OK)


def choose_interface(configured: str | None,
                     default: str = DEFAULT_INTERFACE,
                     sysfs_root: str | os.PathLike = SYSFS_NET_ROOT) -> str | None:
    """Return the configured interface if it exists, else the default if that exists, else None."""
    if interface_exists(configured, sysfs_root):
        chosen: str | None = configured
    elif interface_exists(default, sysfs_root):
        chosen = default
    else:
        log.warning("Neither configured %s nor fallback %s interface exists."
                    " Check your config!",
                    configured if configured is not None else "NULL",
                    default if default is not None else "NULL")
        chosen = None
    log.debug("interface = %s", chosen if chosen is not None else "NULL")
    return chosen