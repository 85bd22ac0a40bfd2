"""
==============================================================================
Scan Session Controller Module
==============================================================================

Owns the lifecycle of one camera scanning session at a time.

Responsibilities:
-----------------
- Start / pause / resume / stop a session over a CameraProvider
- Filter detections (empty payload, format filter, duplicates)
- Fire feedback on every accepted detection
- Deliver exactly one terminal result per session

Acceptance (per detection, in frame order):
-------------------------------------------
1. Session inactive or paused  -> whole batch dropped
2. Empty payload               -> discarded
3. Format not in filter        -> discarded
4. Multi-scan duplicate        -> discarded
5. Accepted: single-scan ends the session; multi-scan ends it when
   max_scans > 0 and the accepted count reaches max_scans

Threading:
----------
Control calls (start/stop/toggle_flash) are serialized by a control lock
that is held across camera acquire/release. Session state is guarded by a
second lock shared with the frame callback. The terminal value is claimed
under that lock; callbacks and future resolution run outside both. A
camera that closes on its own ends its session with no result.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, Optional, Sequence, Set

from .feedback import SilentFeedbackProvider
from .models import ScanConfiguration, ScanDetection, ScanResult
from .normalizer import ResultNormalizer
from .providers import CameraProvider, FeedbackProvider


# Module logger
logger = logging.getLogger(__name__)


ResultCallback = Callable[[Optional[ScanResult]], None]
AcceptCallback = Callable[[ScanResult], None]


@dataclass
class SessionState:
    """Mutable per-session bookkeeping, reset on every start."""

    is_active: bool = False
    is_paused: bool = False
    seen_payloads: Set[str] = field(default_factory=set)
    accepted_count: int = 0

    def reset(self) -> None:
        self.is_active = False
        self.is_paused = False
        self.seen_payloads = set()
        self.accepted_count = 0

    def snapshot(self) -> "SessionState":
        return SessionState(
            is_active=self.is_active,
            is_paused=self.is_paused,
            seen_payloads=set(self.seen_payloads),
            accepted_count=self.accepted_count,
        )


class TerminalResult:
    """
    Single-assignment holder for a session's terminal result.

    The value is claimed first (under the session lock) and delivered
    later (outside it). The first claim wins; resolve() after a claim
    delivers the claimed value instead of its own.
    """

    def __init__(self, callback: Optional[ResultCallback] = None) -> None:
        self.future: "Future[Optional[ScanResult]]" = Future()
        self._callback = callback
        self._claimed = False
        self._delivered = False
        self._value: Optional[ScanResult] = None
        self._lock = threading.Lock()

    @property
    def resolved(self) -> bool:
        with self._lock:
            return self._claimed

    def claim(self, result: Optional[ScanResult]) -> bool:
        """Reserve the terminal value; False when one is already claimed."""
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            self._value = result
            return True

    def deliver(self) -> None:
        """Resolve the future and run the callback with the claimed value, once."""
        with self._lock:
            if not self._claimed or self._delivered:
                return
            self._delivered = True
            result = self._value

        self.future.set_result(result)
        if self._callback is not None:
            try:
                self._callback(result)
            except Exception:
                logger.exception("Terminal result callback failed")

    def resolve(self, result: Optional[ScanResult]) -> bool:
        claimed = self.claim(result)
        self.deliver()
        return claimed


class ScanSessionController:
    """
    Scan session controller.

    Attributes:
        _camera: Camera provider delivering raw detections
        _feedback: Beep / vibrate provider
        _normalizer: Raw record -> ScanDetection translator
        _state: Current SessionState (guarded by _lock)

    Example:
        >>> controller = ScanSessionController(camera, feedback)
        >>> future = controller.start(ScanConfiguration(multi_scan=True, max_scans=3))
        >>> result = future.result(timeout=30)
        >>> controller.stop()
    """

    def __init__(
        self,
        camera: CameraProvider,
        feedback: Optional[FeedbackProvider] = None,
        normalizer: Optional[ResultNormalizer] = None,
    ) -> None:
        self._camera = camera
        self._feedback = feedback or SilentFeedbackProvider()
        self._normalizer = normalizer or ResultNormalizer()

        self._state = SessionState()
        self._config: Optional[ScanConfiguration] = None
        self._terminal: Optional[TerminalResult] = None
        self._on_accept: Optional[AcceptCallback] = None
        self._handle: Any = None
        self._timer: Optional[threading.Timer] = None
        # Bumped on every start/stop so stale frames and timers are ignored
        self._generation = 0

        self._lock = threading.RLock()
        self._control_lock = threading.RLock()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> SessionState:
        """Copy of the current session state."""
        with self._lock:
            return self._state.snapshot()

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._state.is_active

    @property
    def config(self) -> Optional[ScanConfiguration]:
        with self._lock:
            return self._config

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(
        self,
        config: Optional[ScanConfiguration] = None,
        on_result: Optional[ResultCallback] = None,
        on_accept: Optional[AcceptCallback] = None,
    ) -> "Future[Optional[ScanResult]]":
        """
        Start a new session, replacing any running one.

        Args:
            config: Session options (defaults when None)
            on_result: Called once with the terminal result (None = no result)
            on_accept: Called with every accepted result, terminal one included

        Returns:
            Future resolved exactly once with the terminal result or None
        """
        config = config or ScanConfiguration()

        with self._control_lock:
            if self._teardown():
                logger.info("Previous scan session replaced")

            with self._lock:
                self._generation += 1
                generation = self._generation
                self._config = config
                self._state.reset()
                self._state.is_active = True
                self._on_accept = on_accept
                terminal = TerminalResult(on_result)
                self._terminal = terminal

            logger.info(
                f"🔍 Scan session started (multi_scan={config.multi_scan}, "
                f"max_scans={config.max_scans}, formats={sorted(config.allowed_formats) or 'ALL'})"
            )

            try:
                handle = self._camera.acquire(
                    config.camera_facing,
                    config.camera_resolution,
                    partial(self._on_frame, generation),
                    on_closed=partial(self._on_camera_closed, generation),
                )
            except Exception as e:
                logger.warning(f"Camera acquisition failed: {e}")
                self._teardown()
                return terminal.future

            with self._lock:
                self._handle = handle

            if config.enable_flash:
                self._set_torch(handle, True)

            if config.timeout_seconds > 0:
                timer = threading.Timer(
                    config.timeout_seconds,
                    self._end,
                    args=(generation, "⏱️ Scan session timed out"),
                )
                timer.daemon = True
                with self._lock:
                    self._timer = timer
                timer.start()

        return terminal.future

    def pause(self) -> None:
        """Drop incoming detections until resume(); state is kept."""
        with self._lock:
            self._state.is_paused = True
        logger.debug("Scan session paused")

    def resume(self) -> None:
        with self._lock:
            self._state.is_paused = False
        logger.debug("Scan session resumed")

    def stop(self, session: Optional[Future] = None) -> None:
        """
        End the session and release the camera.

        Idempotent. A session that has not produced a result yet resolves
        with None. The camera is released before this returns.

        Args:
            session: Future returned by start(); when given, the call is a
                no-op unless that session is still the current one
        """
        with self._control_lock:
            if session is not None:
                with self._lock:
                    current = self._terminal.future if self._terminal else None
                if current is not session:
                    return

            if self._teardown():
                logger.info("🛑 Scan session stopped")

    def toggle_flash(self, enable: bool) -> bool:
        """Switch the torch on the active camera; False when not applied."""
        with self._control_lock:
            with self._lock:
                handle = self._handle
            if handle is None:
                logger.debug("Torch toggle ignored: no camera acquired")
                return False
            return self._set_torch(handle, enable)

    # =========================================================================
    # DETECTION EVALUATION
    # =========================================================================

    def on_detections(self, detections: Sequence[ScanDetection]) -> None:
        """Evaluate one frame's detections against the current session."""
        self._evaluate(detections, generation=None)

    def _on_frame(self, generation: int, records: List[Any]) -> None:
        """Camera callback: normalize raw records and evaluate them."""
        with self._lock:
            if (
                generation != self._generation
                or not self._state.is_active
                or self._state.is_paused
            ):
                return

        if not records:
            return
        self._evaluate(self._normalizer.normalize_all(records), generation)

    def _evaluate(self, detections: Sequence[ScanDetection], generation: Optional[int]) -> None:
        accepted: List[ScanResult] = []
        final: Optional[ScanResult] = None

        with self._lock:
            state = self._state
            if generation is not None and generation != self._generation:
                return
            if not state.is_active or state.is_paused:
                return

            config = self._config
            terminal = self._terminal
            on_accept = self._on_accept

            for detection in detections:
                if not detection.payload:
                    continue

                if not config.accepts_format(detection.format_tag):
                    logger.debug(f"Format {detection.format_tag} filtered out")
                    continue

                if config.multi_scan and detection.payload in state.seen_payloads:
                    continue

                result = self._normalizer.to_result(detection)
                accepted.append(result)
                state.accepted_count += 1

                if not config.multi_scan:
                    final = result
                else:
                    state.seen_payloads.add(detection.payload)
                    if config.is_capped and state.accepted_count >= config.max_scans:
                        final = result

                if final is not None:
                    state.is_active = False
                    # Claimed here so a concurrent stop() delivers this result
                    if terminal is not None:
                        terminal.claim(final)
                    break

        for result in accepted:
            logger.debug(f"Accepted {result.format}: {result.data!r}")
            self._signal_feedback(config)
            if on_accept is not None:
                try:
                    on_accept(result)
                except Exception:
                    logger.exception("Accept callback failed")

        if final is not None and terminal is not None:
            terminal.deliver()
            logger.info(f"✅ Scan session finished with {final.format}")

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _teardown(self) -> bool:
        """
        Deactivate, release the camera, resolve a pending result with None.

        Caller must hold the control lock. Returns True if anything was torn
        down.
        """
        with self._lock:
            self._generation += 1
            was_active = self._state.is_active
            self._state.reset()
            self._config = None
            self._on_accept = None
            handle, self._handle = self._handle, None
            terminal, self._terminal = self._terminal, None
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()

        if handle is not None:
            try:
                self._camera.release(handle)
            except Exception as e:
                logger.warning(f"Camera release failed: {e}")

        if terminal is not None:
            terminal.resolve(None)

        return was_active or handle is not None

    def _end(self, generation: int, reason: str) -> None:
        """End a still-running session of the given generation with no result."""
        with self._control_lock:
            with self._lock:
                if generation != self._generation or not self._state.is_active:
                    return
            logger.info(reason)
            self._teardown()

    def _on_camera_closed(self, generation: int) -> None:
        """Camera callback: the frame source ended without being released."""
        # Runs on the camera worker, which teardown joins
        closer = threading.Thread(
            target=self._end,
            args=(generation, "📷 Camera closed, scan session ended"),
            name="scan-session-close",
            daemon=True,
        )
        closer.start()

    def _set_torch(self, handle: Any, enable: bool) -> bool:
        try:
            return bool(self._camera.set_torch(handle, enable))
        except Exception as e:
            logger.warning(f"Torch toggle failed: {e}")
            return False

    def _signal_feedback(self, config: ScanConfiguration) -> None:
        if config.feedback.beep:
            try:
                self._feedback.beep()
            except Exception as e:
                logger.debug(f"Beep failed: {e}")
        if config.feedback.vibrate:
            try:
                self._feedback.vibrate()
            except Exception as e:
                logger.debug(f"Vibrate failed: {e}")
