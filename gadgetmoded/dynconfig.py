"""Dynamic USB mode definitions loaded from ini-style key files."""

from __future__ import annotations

import dataclasses
import glob
import logging
import os
import re
from dataclasses import dataclass

log = logging.getLogger(__name__)

MODE_DIR_PATH = "/etc/usb-moded/dyn-modes"
DIAG_DIR_PATH = "/etc/usb-moded/diag"

MODE_ENTRY = "mode"
MODE_NAME_KEY = "name"
MODE_MODULE_KEY = "module"
MODE_NEEDS_APPSYNC_KEY = "appsync"
MODE_NETWORK_KEY = "network"
MODE_MASS_STORAGE_KEY = "mass_storage"
MODE_NETWORK_INTERFACE_KEY = "network_interface"

MODE_OPTIONS_ENTRY = "options"
MODE_SYSFS_PATH = "sysfs_path"
MODE_SYSFS_VALUE = "sysfs_value"
MODE_SYSFS_RESET_VALUE = "sysfs_reset_value"
MODE_ANDROID_EXTRA_SYSFS_PATH = "android_extra_sysfs_path"
MODE_ANDROID_EXTRA_SYSFS_VALUE = "android_extra_sysfs_value"
MODE_ANDROID_EXTRA_SYSFS_PATH2 = "android_extra_sysfs_path2"
MODE_ANDROID_EXTRA_SYSFS_VALUE2 = "android_extra_sysfs_value2"
MODE_ANDROID_EXTRA_SYSFS_PATH3 = "android_extra_sysfs_path3"
MODE_ANDROID_EXTRA_SYSFS_VALUE3 = "android_extra_sysfs_value3"
MODE_ANDROID_EXTRA_SYSFS_PATH4 = "android_extra_sysfs_path4"
MODE_ANDROID_EXTRA_SYSFS_VALUE4 = "android_extra_sysfs_value4"
MODE_IDPRODUCT = "idProduct"
MODE_IDVENDOROVERRIDE = "idVendorOverride"
MODE_HAS_NAT = "nat"
MODE_HAS_DHCP_SERVER = "dhcp_server"
MODE_CONNMAN_TETHERING = "connman_tethering"

_INT_RE = re.compile(r"\s*[+-]?\d+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_ESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


class ModeConfigError(Exception):
    """A mode configuration file could not be read or is incomplete."""


@dataclass
class ModeData:
    """Everything needed to define one dynamic USB mode."""

    mode_name: str | None = None
    mode_module: str | None = None
    appsync: int = 0
    network: int = 0
    mass_storage: int = 0
    network_interface: str | None = None
    sysfs_path: str | None = None
    sysfs_value: str | None = None
    sysfs_reset_value: str | None = None
    android_extra_sysfs_path: str | None = None
    android_extra_sysfs_value: str | None = None
    android_extra_sysfs_path2: str | None = None
    android_extra_sysfs_value2: str | None = None
    android_extra_sysfs_path3: str | None = None
    android_extra_sysfs_value3: str | None = None
    android_extra_sysfs_path4: str | None = None
    android_extra_sysfs_value4: str | None = None
    id_product: str | None = None
    id_vendor_override: str | None = None
    nat: int = 0
    dhcp_server: int = 0
    connman_tethering: str | None = None

    def copy(self) -> "ModeData":
        """Return an independent copy of this mode definition."""
        return dataclasses.replace(self)


class _KeyFile:
    """Minimal reader for group/key=value files with escape handling."""

    def __init__(self, text: str, filename: str) -> None:
        self._groups: dict[str, dict[str, str]] = {}
        current: dict[str, str] | None = None
        for lineno, raw in enumerate(text.splitlines(), 1):
            line = raw.lstrip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("["):
                end = line.rfind("]")
                if end < 0:
                    raise ModeConfigError(f"{filename}:{lineno}: malformed group header")
                current = self._groups.setdefault(line[1:end], {})
                continue
            if "=" not in line:
                raise ModeConfigError(f"{filename}:{lineno}: not a key-value pair")
            if current is None:
                raise ModeConfigError(f"{filename}:{lineno}: key outside of any group")
            key, value = line.split("=", 1)
            key = key.rstrip()
            if not key:
                raise ModeConfigError(f"{filename}:{lineno}: empty key")
            current[key] = value.strip()

    def _raw(self, group: str, key: str) -> str | None:
        return self._groups.get(group, {}).get(key)

    def get_string(self, group: str, key: str) -> str | None:
        raw = self._raw(group, key)
        if raw is None:
            return None
        out = []
        chars = iter(raw)
        for ch in chars:
            if ch != "\\":
                out.append(ch)
                continue
            nxt = next(chars, None)
            if nxt is None or nxt not in _ESCAPES:
                return None
            out.append(_ESCAPES[nxt])
        return "".join(out)

    def get_integer(self, group: str, key: str) -> int:
        raw = self._raw(group, key)
        if raw is None or not _INT_RE.fullmatch(raw):
            return 0
        value = int(raw)
        if not _INT_MIN <= value <= _INT_MAX:
            return 0
        return value


def load_mode(filename: str | os.PathLike) -> ModeData:
    """Load and validate one mode definition file.

    Raises ModeConfigError if the file cannot be read or lacks required settings.
    """
    name = os.fspath(filename)
    try:
        with open(name, "rb") as fh:
            text = fh.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ModeConfigError(f"{name}: can't read mode configuration file") from exc

    kf = _KeyFile(text, name)
    s = kf.get_string
    i = kf.get_integer
    m, o = MODE_ENTRY, MODE_OPTIONS_ENTRY

    data = ModeData(
        mode_name=s(m, MODE_NAME_KEY),
        mode_module=s(m, MODE_MODULE_KEY),
        appsync=i(m, MODE_NEEDS_APPSYNC_KEY),
        mass_storage=i(m, MODE_MASS_STORAGE_KEY),
        network=i(m, MODE_NETWORK_KEY),
        network_interface=s(m, MODE_NETWORK_INTERFACE_KEY),
        sysfs_path=s(o, MODE_SYSFS_PATH),
        sysfs_value=s(o, MODE_SYSFS_VALUE),
        sysfs_reset_value=s(o, MODE_SYSFS_RESET_VALUE),
        android_extra_sysfs_path=s(o, MODE_ANDROID_EXTRA_SYSFS_PATH),
        android_extra_sysfs_path2=s(o, MODE_ANDROID_EXTRA_SYSFS_PATH2),
        android_extra_sysfs_path3=s(o, MODE_ANDROID_EXTRA_SYSFS_PATH3),
        android_extra_sysfs_path4=s(o, MODE_ANDROID_EXTRA_SYSFS_PATH4),
        android_extra_sysfs_value=s(o, MODE_ANDROID_EXTRA_SYSFS_VALUE),
        android_extra_sysfs_value2=s(o, MODE_ANDROID_EXTRA_SYSFS_VALUE2),
        android_extra_sysfs_value3=s(o, MODE_ANDROID_EXTRA_SYSFS_VALUE3),
        android_extra_sysfs_value4=s(o, MODE_ANDROID_EXTRA_SYSFS_VALUE4),
        id_product=s(o, MODE_IDPRODUCT),
        id_vendor_override=s(o, MODE_IDVENDOROVERRIDE),
        nat=i(o, MODE_HAS_NAT),
        dhcp_server=i(o, MODE_HAS_DHCP_SERVER),
        connman_tethering=s(o, MODE_CONNMAN_TETHERING),
    )
    log.debug("Dynamic mode name = %s", data.mode_name)
    log.debug("Dynamic mode module = %s", data.mode_module)

    if data.mode_name is None or data.mode_module is None:
        raise ModeConfigError(f"{name}: mode_name or mode_module not defined")
    if data.network and data.network_interface is None:
        raise ModeConfigError(f"{name}: network not fully defined")
    # A sysfs path needs a value, and a reset value needs a path.
    if (data.sysfs_path is not None and data.sysfs_value is None) or (
        data.sysfs_reset_value is not None and data.sysfs_path is None
    ):
        raise ModeConfigError(f"{name}: sysfs_value not fully defined")

    log.debug("%s: successfully loaded", name)
    return data


def load_mode_list(
    diag: bool = False,
    mode_dir: str | os.PathLike = MODE_DIR_PATH,
    diag_dir: str | os.PathLike = DIAG_DIR_PATH,
) -> list[ModeData]:
    """Load every valid ``*.ini`` mode file, sorted by mode name.

    Diagnostic modes come from ``diag_dir`` when ``diag`` is true, normal
    modes from ``mode_dir`` otherwise. Invalid files are skipped.
    """
    dirpath = os.fspath(diag_dir if diag else mode_dir)
    paths = sorted(glob.glob(os.path.join(glob.escape(dirpath), "*.ini")))
    if not paths:
        log.debug("no mode configuration ini-files found")

    modes = []
    for path in paths:
        log.debug("Read file %s", path)
        try:
            modes.append(load_mode(path))
        except ModeConfigError as exc:
            log.error("%s", exc)
    modes.sort(key=lambda mode: mode.mode_name)
    return modes