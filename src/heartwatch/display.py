"""Text rendering of the monitoring screen."""

from __future__ import annotations

import sys
from typing import TextIO

from heartwatch.models.state import MonitorSnapshot

TITLE = "Heart Rate Monitor"


def toggle_label(snapshot: MonitorSnapshot) -> str:
    return "Stop Monitoring" if snapshot.is_monitoring else "Start Monitoring"


def render(snapshot: MonitorSnapshot) -> list[str]:
    """Return the screen lines for *snapshot*.

    The heart rate is shown truncated to whole beats per minute.
    """
    lines = [
        TITLE,
        f"{int(snapshot.current_heart_rate)} BPM",
        toggle_label(snapshot),
    ]
    if snapshot.is_monitoring:
        lines.append("Monitoring Active")
    return lines


class ConsoleDisplay:
    """Snapshot listener that writes the screen to a stream when it changes."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._last: list[str] | None = None

    def __call__(self, snapshot: MonitorSnapshot) -> None:
        lines = render(snapshot)
        if lines == self._last:
            return
        self._last = lines
        self._stream.write(" | ".join(lines) + "\n")
        self._stream.flush()
