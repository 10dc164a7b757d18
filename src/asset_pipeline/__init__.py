"""Autonomous 3D asset generation pipeline."""

__version__ = "0.1.0"
