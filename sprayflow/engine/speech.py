"""Text-to-speech for movement announcements.

pyttsx3 blocks while it speaks and its engine must stay on one thread, so the
engine lives on a dedicated daemon worker. ``speak()`` only enqueues text and
returns immediately; the session never waits for speech.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from . import NO_AUDIO_ENV, audio_disabled

logger = logging.getLogger(__name__)

_STOP = object()


class SpeechEngine:
    """Fire-and-forget speech backed by pyttsx3.

    A new utterance replaces anything still queued, matching the behaviour
    of cancelling the previous announcement before speaking the next one.

    Args:
        rate: Words per minute passed to the driver (None keeps the default)
        volume: 0.0 - 1.0
    """

    def __init__(self, rate: Optional[int] = None, volume: float = 1.0):
        self.rate = rate
        self.volume = max(0.0, min(1.0, volume))
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._engine = None
        self._ready = threading.Event()
        self._init_ok = False
        self._failed = False
        self._started = False
        self._lock = threading.Lock()

    # -------- lifecycle -------------------------------------------------------
    def _ensure_started(self) -> bool:
        """Start the worker once. Never waits for the driver to come up.

        Returns False when speech is disabled or the driver already failed.
        """
        with self._lock:
            if not self._started:
                self._started = True
                if audio_disabled():
                    logger.info("[speech] disabled via %s", NO_AUDIO_ENV)
                    self._failed = True
                    self._ready.set()
                else:
                    self._thread = threading.Thread(target=self._run, name="sprayflow-speech", daemon=True)
                    self._thread.start()
            return not self._failed

    def _run(self) -> None:
        try:
            import pyttsx3

            engine = pyttsx3.init()
            if self.rate is not None:
                engine.setProperty("rate", int(self.rate))
            engine.setProperty("volume", self.volume)
        except Exception as e:
            logger.warning("[speech] pyttsx3 unavailable: %s", e)
            self._failed = True
            self._drain()
            self._ready.set()
            return

        self._engine = engine
        self._init_ok = True
        self._ready.set()
        logger.info("[speech] pyttsx3 engine ready")

        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            try:
                engine.say(str(item))
                engine.runAndWait()
            except Exception as e:
                logger.warning("[speech] utterance failed: %s", e)

    @property
    def available(self) -> bool:
        """Block (up to 5 s) until the driver is up; True if it can speak."""
        if not self._ensure_started():
            return False
        self._ready.wait(timeout=5.0)
        return self._init_ok

    # -------- speaking --------------------------------------------------------
    def speak(self, text: str) -> None:
        """Queue *text* and return immediately.

        Text queued while the driver is still starting is spoken once it is
        ready, or discarded if it fails to start.
        """
        if not text or not self._ensure_started():
            return
        self.cancel()
        self._queue.put(text)

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    def cancel(self) -> None:
        """Drop queued utterances and interrupt the current one."""
        self._drain()
        if self._engine is not None:
            try:
                self._engine.stop()
            except Exception as e:
                logger.debug("[speech] stop failed (non-critical): %s", e)

    def close(self) -> None:
        self.cancel()
        if self._thread is not None and self._thread.is_alive():
            self._queue.put(_STOP)
            self._thread.join(timeout=2.0)
        self._thread = None
