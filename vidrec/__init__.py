"""In-process video recommendation service with simulated backends, failure injection and a trending-video fallback cache."""

__version__ = "0.1.0"