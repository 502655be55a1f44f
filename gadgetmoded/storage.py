"""Mass-storage mount point discovery: fstab lookup, mount lists and lsof parsing."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass

log = logging.getLogger(__name__)

FSTAB_PATH = "/etc/fstab"

_FSTAB_ESCAPES = {"\\040": " ", "\\011": "\t", "\\012": "\n", "\\134": "\\", "\\\\": "\\"}
_FSTAB_ESCAPE_RE = re.compile(r"\\040|\\011|\\012|\\134|\\\\")


class StorageConfigError(Exception):
    """The mass-storage mount points are missing or inconsistent."""


@dataclass(frozen=True)
class StorageInfo:
    """A mount point directory and the block device mounted there."""

    mountpoint: str
    mountdevice: str


def _decode_fstab_field(field: str) -> str:
    return _FSTAB_ESCAPE_RE.sub(lambda m: _FSTAB_ESCAPES[m.group(0)], field)


def find_mount_device(mountpoint: str, fstab: str | os.PathLike = FSTAB_PATH) -> str | None:
    """Return the device that ``fstab`` mounts at ``mountpoint``, or None."""
    device = None
    try:
        with open(fstab, encoding="utf-8", errors="surrogateescape") as fh:
            for line in fh:
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                fields = stripped.split()
                if len(fields) < 2:
                    continue
                if _decode_fstab_field(fields[1]) == mountpoint:
                    device = _decode_fstab_field(fields[0])
                    break
    except OSError:
        device = None
    log.debug("%s -> %s", mountpoint, device)
    return device


def parse_mount_list(setting: str | None) -> list[str]:
    """Split a comma separated mount point setting into its entries.

    Raises StorageConfigError if the setting is absent or lists nothing.
    """
    if setting is None:
        raise StorageConfigError("no mount points configuration")
    mounts = setting.split(",") if setting else []
    if not mounts:
        raise StorageConfigError("no mount points configured")
    return mounts


def get_storage_info(setting: str | None,
                     fstab: str | os.PathLike = FSTAB_PATH) -> list[StorageInfo]:
    """Resolve every configured mount point to its existing device.

    Raises StorageConfigError if any mount point or its device is missing.
    """
    infos = []
    for mountpoint in parse_mount_list(setting):
        if not os.access(mountpoint, os.F_OK):
            raise StorageConfigError(f"mountpoint {mountpoint} does not exist")
        device = find_mount_device(mountpoint, fstab)
        if device is None:
            raise StorageConfigError(f"can't find device for {mountpoint}")
        if not os.access(device, os.F_OK):
            raise StorageConfigError(f"mount device {device} does not exist")
        infos.append(StorageInfo(mountpoint, device))
    return infos


def parse_blocking_processes(lines: Iterable[str]) -> list[str]:
    """Return the process names from lsof output, skipping its header line."""
    names = []
    for index, line in enumerate(lines):
        if index == 0:
            continue
        name = line.split(" ", 1)[0].rstrip("\n")
        if not name:
            continue
        log.error("Mass storage blocked by process %s", name)
        names.append(name)
    return names