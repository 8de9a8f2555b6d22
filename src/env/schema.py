# NavigationConfig dataclass resolved from config/navigation.yaml
# src/env/schema.py

from dataclasses import dataclass


@dataclass
class NavigationConfig:
    """Tuning for one navigation profile."""
    name: str = "default"
    mode: str = "manual"               # "manual" or "automatic"
    tick_period_ms: int = 50           # wall-clock period of the external tick
    speed_per_tick: float = 2.0        # map units walked per tick
    turn_threshold_rad: float = 0.5    # |angle| above this is a left/right turn
    epsilon: float = 1e-6              # hops shorter than this are connectors
    connector_cost: float = 50.0       # fixed cost of a stair/lift connector edge
    max_connector_hops: int = 16       # connectors skipped in one advance
    max_segment_hops: int = 64         # hops crossed in one tick
    snap_radius: float = 80.0          # drift tolerance before rerouting
    dead_end_policy: str = "stall"     # "stall" or "reroute"
