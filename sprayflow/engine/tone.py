from __future__ import annotations

import numpy as np


_BEEP_CACHE: dict[tuple[int, int, float, float, float, float], np.ndarray] = {}


def generate_beep_int16(
    *,
    frequency_hz: float = 800.0,
    duration_s: float = 0.1,
    sample_rate: int = 44100,
    channels: int = 2,
    peak: float = 0.3,
    floor: float = 0.01,
) -> np.ndarray:
    """Generate a short sine beep with an exponential decay.

    The gain starts at ``peak`` and ramps exponentially down to ``floor`` over
    the duration, which keeps the cue audible without a click at the end.

    Returns:
        numpy int16 array shaped (n_samples, channels)
    """

    duration_s = float(max(0.01, duration_s))
    sample_rate = int(max(8000, sample_rate))
    channels = int(max(1, channels))
    peak = float(min(1.0, max(0.0, peak)))
    floor = float(min(peak, max(1e-4, floor))) if peak > 0 else 0.0

    cache_key = (sample_rate, channels, float(frequency_hz), duration_s, peak, floor)
    cached = _BEEP_CACHE.get(cache_key)
    if cached is not None:
        return cached

    n = int(round(duration_s * sample_rate))
    t = np.arange(n, dtype=np.float64) / float(sample_rate)

    if peak > 0:
        # gain(t) = peak * (floor/peak) ** (t/duration)
        envelope = peak * np.power(floor / peak, t / duration_s)
    else:
        envelope = np.zeros(n, dtype=np.float64)

    wave = np.sin(2.0 * np.pi * float(frequency_hz) * t) * envelope
    pcm = np.clip(wave * 32767.0, -32768, 32767).astype(np.int16)

    out = np.ascontiguousarray(np.repeat(pcm[:, None], channels, axis=1))
    _BEEP_CACHE[cache_key] = out
    return out
