"""Helpers for a USB gadget mode daemon: modes, MAC, storage, signals and networking."""

__version__ = "0.1.0"

__all__ = [
    "mac",
    "dynconfig",
    "storage",
    "sigpipe",
    "netinfo",
    "udhcpd",
]