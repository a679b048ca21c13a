"""ohlocal - Run OpenHands for local projects in per-project Docker containers."""

__version__ = "0.3.0"
