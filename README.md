# gadgetmoded

Library pieces for managing USB gadget modes on a Linux device. It reads
mode definitions, finds mass-storage mount points, carries signals into
an event loop and prepares the USB network link and its DHCP server
configuration. It uses only the standard library.

## Installation

```
pip install gadgetmoded
```

For running the tests:

```
pip install "gadgetmoded[test]"
pytest
```

## Modules

- `gadgetmoded.mac`
  - `random_ether_addr` returns a random 6-byte unicast, locally
    administered ethernet address. The bytes come from an optional binary
    stream or from `os.urandom`.
  - `format_g_ether_options` renders an address as an
    `options g_ether host_addr=...` line.
  - `write_random_mac` writes such a line to the given file, by default
    `/etc/modprobe.d/g_ether.conf`, and returns the address.
  - `read_mac` reads the 17-character address text back. It returns
    `None` when the file is missing or too short.
- `gadgetmoded.dynconfig`
  - `load_mode` parses one mode `.ini` file, with its `[mode]` and
    `[options]` groups, into a `ModeData` dataclass.
  - `load_mode` raises `ModeConfigError` when:
    - the file cannot be read;
    - the name or module is missing;
    - network is enabled without an interface;
    - the sysfs path, value and reset value are inconsistent.
  - `load_mode_list` loads every valid `*.ini` file from the normal or
    diagnostic directory, skips invalid ones, and sorts the result by mode
    name.
  - `ModeData.copy` returns an independent copy.
- `gadgetmoded.storage`
  - `parse_mount_list` splits a comma-separated mount point setting.
  - `find_mount_device` looks up the device for a mount point in an fstab
    file.
  - `get_storage_info` resolves each mount point to a `StorageInfo`. It
    raises `StorageConfigError` if the setting, a mount point or its device
    is missing.
  - `parse_blocking_processes` extracts process names from `lsof`-style
    output lines, skipping the header line.
- `gadgetmoded.sigpipe`
  - `SignalPipe` traps signals, by default SIGINT, SIGQUIT, SIGTERM and
    SIGHUP, and queues them on a pipe.
  - Poll `fileno()` and call `dispatch()` to run your handler for one
    queued signal.
  - It works as a context manager, installing the handlers on entry and
    restoring them and closing the pipe on exit.
  - A second exit signal aborts the process.
- `gadgetmoded.netinfo`
  - `read_resolv_conf` takes up to two nameservers from a resolv.conf file
    into an `IpForwardData`, and reuses a single nameserver as the second
    one. It raises `OSError` if the file is unreadable and `ValueError` if
    it holds no nameserver.
  - `interface_exists` checks for an interface under `/sys/class/net`, or
    under another root you pass.
  - `choose_interface` returns the configured interface, falls back to the
    default (`usb0`), or returns `None`.
- `gadgetmoded.udhcpd`
  - `network_prefix` returns the first three fields of a dotted address.
  - `udhcpd_config_text` renders a udhcpd configuration. When an
    `IpForwardData` is given, it adds DNS and router lines.
  - `check_udhcpd_symlink` tells whether the configuration link points at
    the configuration file.
  - `write_udhcpd_config` writes the file and repairs the symlink.
  - Failures raise `NetworkConfigError`. This includes a malformed address.

## Example

```python
from gadgetmoded.dynconfig import load_mode_list
from gadgetmoded.netinfo import IpForwardData
from gadgetmoded.udhcpd import udhcpd_config_text

for mode in load_mode_list(False, "/etc/usb-moded/dyn-modes", "/etc/usb-moded/diag"):
    print(mode.mode_name, mode.mode_module)

forward = IpForwardData(dns1="192.0.2.53", dns2="192.0.2.54")
print(udhcpd_config_text("192.168.2.15", "255.255.255.0", "usb0", forward))
```

## What it does not do

This is a set of helpers, not a running daemon. It has no command to
start, and it does not watch cable state or system state. It does not
talk to a message bus, and it does not load kernel modules. It does not
write gadget function values to sysfs or check them afterwards. It does
not mount or unmount filesystems, and it does not run network or
firewall commands. The caller is expected to do these things with the
data these modules produce.