"""Process run-state flag with signal handling, and a hex dump helper."""

import signal
import threading

_STOP_SIGNALS = ("SIGINT", "SIGHUP", "SIGTERM")


class RunFlag:
    """A thread-safe flag that stays set until it is cleared or a stop signal arrives."""

    def __init__(self):
        self._event = threading.Event()
        self._event.set()

    def is_running(self):
        """Return True while the program should keep running."""
        return self._event.is_set()

    def set_state(self, state):
        """Set the running state explicitly."""
        if state:
            self._event.set()
        else:
            self._event.clear()

    def install_signal_handlers(self):
        """Clear the flag on SIGINT, SIGHUP or SIGTERM.

        Returns a mapping of signal number to the handler that was replaced,
        so a caller can restore it.
        """
        previous = {}
        for name in _STOP_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            previous[signum] = signal.signal(signum, self._handle_signal)
        return previous

    def _handle_signal(self, signum, frame):
        self._event.clear()


def hex_dump(title, data):
    """Format bytes as a title line followed by 16-byte hex and text rows."""
    data = bytes(data)
    lines = [title]
    for offset in range(0, len(data), 16):
        chunk = data[offset:offset + 16]
        hex_part = "".join(f"{byte:02X} " for byte in chunk).ljust(48)
        text_part = "".join(chr(byte) if 0x20 <= byte < 0x7F else "." for byte in chunk)
        lines.append(f"{offset:04X}:  {hex_part}   *{text_part}*")
    return "\n".join(lines)