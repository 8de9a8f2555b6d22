# src/monitoring/__init__.py
"""Event bus, structured event log, control surface and terminal dashboard."""
