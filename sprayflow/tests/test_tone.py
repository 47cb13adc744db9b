import numpy as np

from ..engine.tone import generate_beep_int16


def test_beep_shape_and_dtype():
    pcm = generate_beep_int16(duration_s=0.1, sample_rate=44100, channels=2)
    assert pcm.dtype == np.int16
    assert pcm.shape == (4410, 2)
    assert np.array_equal(pcm[:, 0], pcm[:, 1])


def test_beep_decays():
    pcm = generate_beep_int16(frequency_hz=800.0, duration_s=0.2, sample_rate=8000, channels=1)
    samples = pcm[:, 0].astype(np.int32)
    head = np.abs(samples[:200]).max()
    tail = np.abs(samples[-200:]).max()
    assert head > 0.25 * 32767
    assert tail < head * 0.1


def test_beep_is_cached():
    a = generate_beep_int16(frequency_hz=660.0)
    b = generate_beep_int16(frequency_hz=660.0)
    assert a is b


def test_zero_peak_is_silent():
    pcm = generate_beep_int16(peak=0.0, sample_rate=8000, channels=1)
    assert not pcm.any()
