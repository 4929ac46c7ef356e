"""ECG Signal Lab: batch ECG filtering, peak detection and heart-rate estimation."""

__version__ = "0.1.0"
