"""Output capabilities the session runner announces cues through.

The runner only depends on :class:`CueOutputs`. Production wiring uses
:class:`DeviceOutputs` (speech + tone); tests pass recording stubs and the
``simulate`` command passes :class:`NullOutputs`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .audio import ToneEngine
    from .speech import SpeechEngine

logger = logging.getLogger(__name__)


class CueOutputs(ABC):
    """Best-effort speech and tone. Implementations may raise; callers catch."""

    @abstractmethod
    def speak(self, text: str) -> None:
        """Announce *text*, replacing any announcement in progress."""

    @abstractmethod
    def cancel_speech(self) -> None:
        """Interrupt the current announcement."""

    @abstractmethod
    def play_tone(self) -> None:
        """Emit a short audible cue."""

    def close(self) -> None:
        """Release devices."""


class NullOutputs(CueOutputs):
    """Silent outputs."""

    def speak(self, text: str) -> None:
        return None

    def cancel_speech(self) -> None:
        return None

    def play_tone(self) -> None:
        return None


class DeviceOutputs(CueOutputs):
    """Speech through pyttsx3 and tone through pygame, both created lazily.

    Engines are only constructed when first needed, so a voice-only session
    never opens the mixer and a beep-only session never starts the speech
    worker.
    """

    def __init__(
        self,
        speech: Optional["SpeechEngine"] = None,
        tone: Optional["ToneEngine"] = None,
    ):
        self._speech = speech
        self._tone = tone

    @property
    def speech(self) -> "SpeechEngine":
        if self._speech is None:
            from .speech import SpeechEngine
            self._speech = SpeechEngine()
        return self._speech

    @property
    def tone(self) -> "ToneEngine":
        if self._tone is None:
            from .audio import ToneEngine
            self._tone = ToneEngine()
        return self._tone

    def speak(self, text: str) -> None:
        self.speech.speak(text)

    def cancel_speech(self) -> None:
        # Nothing to interrupt if speech never started
        if self._speech is not None:
            self._speech.cancel()

    def play_tone(self) -> None:
        self.tone.play_tone()

    def close(self) -> None:
        if self._speech is not None:
            self._speech.close()
        if self._tone is not None:
            self._tone.close()
