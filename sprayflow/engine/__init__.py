"""Engine module for SprayFlow: cue selection and audio/speech outputs.

Device-backed engines (pygame, pyttsx3) are imported lazily by
``outputs.DeviceOutputs`` so importing this package never opens audio devices.
"""

import os

NO_AUDIO_ENV = "SPRAYFLOW_NO_AUDIO"


def audio_disabled() -> bool:
    return os.environ.get(NO_AUDIO_ENV, "").strip().lower() in {"1", "true", "yes", "on"}


from .selector import MovementSelector, pick  # noqa: E402
from .outputs import CueOutputs, DeviceOutputs, NullOutputs  # noqa: E402

__all__ = [
    'MovementSelector', 'pick',
    'CueOutputs', 'DeviceOutputs', 'NullOutputs',
    'NO_AUDIO_ENV', 'audio_disabled',
]
