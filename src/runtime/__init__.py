# src/runtime/__init__.py
"""Runtime wiring: logging setup, tick scheduling and guarded stepping."""
