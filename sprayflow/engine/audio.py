# sprayflow/engine/audio.py
import logging

import pygame

from . import NO_AUDIO_ENV, audio_disabled
from .tone import generate_beep_int16


class ToneEngine:
    """
    Plays the cue beep through pygame's mixer.

    The mixer is initialised on first use. If that fails (no audio device,
    headless CI, SPRAYFLOW_NO_AUDIO=1) the engine stays unavailable and
    play_tone() does nothing.
    """
    def __init__(self, frequency_hz: float = 800.0, duration_s: float = 0.1):
        self.frequency_hz = frequency_hz
        self.duration_s = duration_s
        self.init_ok = False
        self._init_attempted = False
        self._sound = None
        self.logger = logging.getLogger(__name__)

    # -------- init -----------------------------------------------------------
    def _ensure_init(self) -> bool:
        if self._init_attempted:
            return self.init_ok
        self._init_attempted = True
        if audio_disabled():
            self.logger.info("[audio] disabled via %s", NO_AUDIO_ENV)
            return False
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.pre_init(44100, -16, 2, 512)
                pygame.mixer.init()
            self.init_ok = True
            self.logger.info("[audio] pygame mixer initialized")
        except Exception as e:
            self.logger.error("[audio] mixer init failed: %s", e)
        return self.init_ok

    @property
    def available(self) -> bool:
        return self._ensure_init()

    def _build_sound(self):
        freq, _size, channels = pygame.mixer.get_init()
        pcm = generate_beep_int16(
            frequency_hz=self.frequency_hz,
            duration_s=self.duration_s,
            sample_rate=freq,
            channels=channels,
        )
        if channels == 1:
            pcm = pcm[:, 0].copy()
        return pygame.sndarray.make_sound(pcm)

    # -------- playback -------------------------------------------------------
    def play_tone(self) -> None:
        if not self._ensure_init():
            return
        if self._sound is None:
            self._sound = self._build_sound()
        self._sound.play()

    def stop(self) -> None:
        if self._sound is not None:
            self._sound.stop()

    def close(self) -> None:
        self.stop()
        self._sound = None
        if self.init_ok:
            try:
                pygame.mixer.quit()
            except Exception as e:
                self.logger.debug("[audio] mixer quit error (non-critical): %s", e)
        self.init_ok = False
        self._init_attempted = False
