"""Register-level driver, DC motor control and logging for the TLE94112 multi-half-bridge IC."""

__version__ = "0.1.0"
__all__ = ["types", "logger", "driver", "motor"]