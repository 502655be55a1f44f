"""Generating the udhcpd configuration for the USB network link."""

from __future__ import annotations

import errno
import logging
import os
import re

from gadgetmoded.netinfo import IpForwardData

log = logging.getLogger(__name__)

UDHCP_CONFIG_PATH = "/run/usb-moded/udhcpd.conf"
UDHCP_CONFIG_DIR = "/run/usb-moded"
UDHCP_CONFIG_LINK = "/etc/udhcpd.conf"

_PREFIX_RE = re.compile(r"\s*[+-]?\d+\.\s*[+-]?\d+\.\s*[+-]?\d+(?=\.)")


class NetworkConfigError(Exception):
    """The DHCP server configuration could not be produced or installed."""


def network_prefix(ip: str) -> str:
    """Return the first three dotted fields of ``ip``, which must be followed by a dot.

    Raises NetworkConfigError for a malformed address.
    """
    match = _PREFIX_RE.match(ip)
    if match is None:
        raise NetworkConfigError(f"malformed network address: {ip}")
    return match.group(0)


def udhcpd_config_text(ip: str, netmask: str, interface: str,
                       ipforward: IpForwardData | None = None) -> str:
    """Return the udhcpd.conf content for the given address, mask and interface.

    With ``ipforward`` given, DNS servers (if both are known) and the router
    address are added.
    """
    prefix = network_prefix(ip)
    lines = [
        f"start\t{prefix}.1",
        f"end\t{prefix}.15",
        f"interface\t{interface}",
        f"option\tsubnet\t{netmask}",
        "option\tlease\t3600",
        "max_leases\t15",
    ]
    if ipforward is not None:
        if not ipforward.dns1 or not ipforward.dns2:
            log.debug("No dns info!")
        else:
            lines.append(f"opt\tdns\t{ipforward.dns1} {ipforward.dns2}")
        lines.append(f"opt\trouter\t{ip}")
    return "".join(line + "\n" for line in lines)


def check_udhcpd_symlink(link: str | os.PathLike = UDHCP_CONFIG_LINK,
                         target: str | os.PathLike = UDHCP_CONFIG_PATH) -> bool:
    """Tell whether ``link`` is a symlink pointing exactly at ``target``."""
    link_name = os.fspath(link)
    try:
        dest = os.readlink(link_name)
    except OSError as exc:
        if exc.errno != errno.ENOENT:
            log.error("%s: can't read symlink: %s", link_name, exc.strerror)
        return False
    if dest != os.fspath(target):
        log.warning("%s: symlink is invalid", link_name)
        return False
    return True


def write_udhcpd_config(ip: str | None, netmask: str | None, interface: str | None,
                        ipforward: IpForwardData | None = None,
                        config_path: str | os.PathLike = UDHCP_CONFIG_PATH,
                        link_path: str | os.PathLike = UDHCP_CONFIG_LINK) -> None:
    """Write the udhcpd configuration and make ``link_path`` point to it.

    Raises NetworkConfigError if a setting is missing or malformed, or if the
    file or the symlink cannot be written.
    """
    if interface is None:
        raise NetworkConfigError("no network interface")
    if ip is None:
        raise NetworkConfigError("no network address")
    network_prefix(ip)
    if netmask is None:
        raise NetworkConfigError("no network address mask")

    config_name = os.fspath(config_path)
    link_name = os.fspath(link_path)
    text = udhcpd_config_text(ip, netmask, interface, ipforward)

    config_dir = os.path.dirname(config_name)
    if config_dir:
        try:
            os.mkdir(config_dir, 0o775)
        except FileExistsError:
            pass
        except OSError as exc:
            log.warning("%s: can't create directory: %s", config_dir, exc.strerror)

    try:
        with open(config_name, "w", encoding="utf-8") as fh:
            fh.write(text)
    except OSError as exc:
        raise NetworkConfigError(
            f"{config_name}: can't open for writing: {exc.strerror}") from exc

    if check_udhcpd_symlink(link_name, config_name):
        return

    try:
        os.unlink(link_name)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log.warning("%s: can't remove invalid config: %s", link_name, exc.strerror)

    try:
        os.symlink(config_name, link_name)
    except OSError as exc:
        raise NetworkConfigError(
            f"{link_name}: can't create symlink to {config_name}: {exc.strerror}") from exc
    log.debug("%s: symlink to %s created", link_name, config_name)