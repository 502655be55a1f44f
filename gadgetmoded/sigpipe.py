"""Deliver POSIX signals to a main loop through a self-pipe."""

from __future__ import annotations

import logging
import os
import signal
import struct
from collections.abc import Callable, Iterable

log = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGQUIT, signal.SIGTERM, signal.SIGHUP)
_EXIT_SIGNALS = frozenset({signal.SIGINT, signal.SIGQUIT, signal.SIGTERM})
_SIG = struct.Struct("=i")


class SignalPipe:
    """Traps signals and queues them on a pipe for dispatch from the main loop.

    Poll ``fileno()`` for readability and call ``dispatch()`` to run the
    handler for one queued signal. A second exit signal arriving before the
    main loop has shut down means the loop is stuck, and the process aborts.
    """

    def __init__(self, handler: Callable[[int], object],
                 signals: Iterable[int] = DEFAULT_SIGNALS) -> None:
        self.handler = handler
        self.signals = tuple(signals)
        self._read_fd = -1
        self._write_fd = -1
        self._previous: dict[int, object] = {}
        self._exit_tries = 0

    def __enter__(self) -> "SignalPipe":
        self.install()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def install(self) -> None:
        """Create the pipe if needed and install the signal handlers."""
        if self._read_fd == -1:
            self._read_fd, self._write_fd = os.pipe()
        for signum in self.signals:
            if signum not in self._previous:
                self._previous[signum] = signal.signal(signum, self.trap)

    def uninstall(self) -> None:
        """Restore the handlers that were in place before ``install``."""
        for signum, previous in self._previous.items():
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()

    def fileno(self) -> int:
        """Return the read end of the pipe for use with select or poll."""
        if self._read_fd == -1:
            raise ValueError("signal pipe is not installed")
        return self._read_fd

    def trap(self, signum: int, frame: object) -> None:
        """Queue ``signum`` on the pipe; abort on a repeated exit signal or write failure."""
        if signum in _EXIT_SIGNALS:
            self._exit_tries += 1
            if self._exit_tries >= 2:
                os.abort()
        try:
            written = os.write(self._write_fd, _SIG.pack(signum))
        except OSError:
            written = -1
        if written != _SIG.size:
            os.abort()

    def dispatch(self) -> int:
        """Read one queued signal, pass it to the handler and return its number."""
        data = os.read(self.fileno(), _SIG.size)
        if len(data) != _SIG.size:
            os.abort()
        (signum,) = _SIG.unpack(data)
        self.handler(signum)
        return signum

    def close(self) -> None:
        """Uninstall the handlers and close both ends of the pipe."""
        self.uninstall()
        for fd in (self._read_fd, self._write_fd):
            if fd != -1:
                os.close(fd)
        self._read_fd = self._write_fd = -1