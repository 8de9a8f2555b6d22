"""Fixtures shared by the demo CLI and the test-suite."""

from .sample_building import build_sample_building, SAMPLE_CONNECTORS, SAMPLE_EDGES, SAMPLE_NODES

__all__ = ["build_sample_building", "SAMPLE_CONNECTORS", "SAMPLE_EDGES", "SAMPLE_NODES"]
