"""pytest configuration file."""

import logging

import pytest

from ..engine.outputs import CueOutputs


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (may take several seconds)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that spawn the CLI or need Qt"
    )


@pytest.fixture(autouse=True)
def _isolate_user_data(tmp_path, monkeypatch):
    # Never touch the real per-user settings or audio devices
    monkeypatch.setenv("SPRAYFLOW_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SPRAYFLOW_NO_AUDIO", "1")
    monkeypatch.setenv("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    logging.getLogger("sprayflow").setLevel(logging.DEBUG)
    yield


class RecordingOutputs(CueOutputs):
    """CueOutputs stand-in that records calls and can be told to fail."""

    def __init__(self, fail_speech: bool = False, fail_tone: bool = False):
        self.spoken: list[str] = []
        self.tones = 0
        self.cancels = 0
        self.fail_speech = fail_speech
        self.fail_tone = fail_tone

    def speak(self, text):
        if self.fail_speech:
            raise RuntimeError("speech device gone")
        self.spoken.append(text)

    def cancel_speech(self):
        self.cancels += 1

    def play_tone(self):
        if self.fail_tone:
            raise RuntimeError("no mixer")
        self.tones += 1

    def close(self):
        pass


@pytest.fixture
def outputs():
    return RecordingOutputs()
