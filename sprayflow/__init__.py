"""SprayFlow - movement metronome for spray wall warmups."""

__version__ = "0.1.0"
