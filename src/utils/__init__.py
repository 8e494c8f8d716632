"""
Shared utilities for the equalizer

Provides:
- logging: Structured JSON / colored console logging with run context
- tracing: OpenTelemetry tracer setup and span helpers
- retry: Exponential backoff retries for transient file errors
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing", "retry"]
