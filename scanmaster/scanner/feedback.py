"""
==============================================================================
Feedback Providers
==============================================================================

Beep / vibrate implementations.

- ConsoleFeedbackProvider: terminal bell on the server host
- QueueFeedbackProvider: collects events for forwarding to a remote client
- SilentFeedbackProvider: does nothing

==============================================================================
"""

from __future__ import annotations

import logging
import sys
import threading
from collections import deque
from typing import Deque, List

from .providers import FeedbackProvider


# Module logger
logger = logging.getLogger(__name__)


class ConsoleFeedbackProvider(FeedbackProvider):
    """Rings the terminal bell; vibration is logged only."""

    def __init__(self, bell_enabled: bool = True) -> None:
        self._bell_enabled = bell_enabled

    def beep(self) -> None:
        if self._bell_enabled:
            sys.stdout.write("\a")
            sys.stdout.flush()

    def vibrate(self) -> None:
        logger.debug("Vibrate requested (no haptics on this host)")


class QueueFeedbackProvider(FeedbackProvider):
    """
    Buffers feedback events until the owner drains them.

    Used by the WebSocket handler to forward beep/vibrate requests to the
    client device that actually has a speaker and a vibration motor.
    """

    def __init__(self, maxlen: int = 64) -> None:
        self._events: Deque[str] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def beep(self) -> None:
        with self._lock:
            self._events.append("beep")

    def vibrate(self) -> None:
        with self._lock:
            self._events.append("vibrate")

    def drain(self) -> List[str]:
        """Return and clear pending events, oldest first."""
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events


class SilentFeedbackProvider(FeedbackProvider):
    """No-op feedback."""

    def beep(self) -> None:
        pass

    def vibrate(self) -> None:
        pass
