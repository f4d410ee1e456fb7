# config.py
# Simulation parameters. Time unit everywhere: milliseconds of simulated time.

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .vehicle import Direction

# --- Default configuration ---
VEHICLE_TYPES = ("Car", "Truck", "Bus")
DIRECTIONS = tuple(Direction)
WAITING_DELAY = (1000, 3000)       # time spent queued before entering the junction
CROSSING_DELAY = (1000, 2000)      # time spent inside the junction
GRACE_PERIOD = (5000, 5000)        # time a passed vehicle stays visible
INTERARRIVAL_DELAY = (1000, 3000)  # gap between two generated vehicles


@dataclass(frozen=True)
class DelayRange:
    """Inclusive bounds [low, high] of a uniformly drawn delay."""
    low: int
    high: int

    def __post_init__(self):
        if self.low < 0:
            raise ValueError(f"delay bounds must be non-negative, got {self.low}")
        if self.low > self.high:
            raise ValueError(f"delay low bound {self.low} exceeds high bound {self.high}")

    @classmethod
    def fixed(cls, value):
        return cls(value, value)

    @classmethod
    def coerce(cls, value):
        """Build from a DelayRange, a single number (fixed delay) or a (low, high) pair."""
        if isinstance(value, cls):
            return value
        if isinstance(value, (int, float)):
            return cls.fixed(int(value))
        low, high = value
        return cls(int(low), int(high))


@dataclass(frozen=True)
class SimulationConfig:
    vehicle_types: Tuple[str, ...] = VEHICLE_TYPES
    directions: Tuple[Direction, ...] = DIRECTIONS
    waiting_delay: DelayRange = field(default_factory=lambda: DelayRange(*WAITING_DELAY))
    crossing_delay: DelayRange = field(default_factory=lambda: DelayRange(*CROSSING_DELAY))
    grace_period: DelayRange = field(default_factory=lambda: DelayRange(*GRACE_PERIOD))
    interarrival_delay: DelayRange = field(default_factory=lambda: DelayRange(*INTERARRIVAL_DELAY))
    max_active: Optional[int] = None   # None: unbounded admission
    seed: Optional[int] = None

    def validate(self):
        if not self.vehicle_types:
            raise ValueError("vehicle_types must be a non-empty sequence")
        if not self.directions:
            raise ValueError("directions must be a non-empty sequence")
        for d in self.directions:
            if not isinstance(d, Direction):
                raise ValueError(f"directions must be Direction members, got {d!r}")
        for name in ("waiting_delay", "crossing_delay", "grace_period", "interarrival_delay"):
            if not isinstance(getattr(self, name), DelayRange):
                raise ValueError(f"{name} must be a DelayRange")
        if self.interarrival_delay.high == 0:
            # generator would never advance the clock
            raise ValueError("interarrival_delay must allow a positive delay")
        if self.max_active is not None and self.max_active < 1:
            raise ValueError("max_active must be None or at least 1")
        return self

    @classmethod
    def from_dict(cls, scenario):
        """
        Build a config from a plain scenario dict, e.g.
            {'seed': 7, 'waiting_delay': [500, 800], 'grace_period': 2000,
             'directions': ['North', 'East'], 'max_active': 40}
        Missing keys fall back to the module defaults.
        """
        directions = scenario.get('directions', DIRECTIONS)
        return cls(
            vehicle_types=tuple(scenario.get('vehicle_types', VEHICLE_TYPES)),
            directions=tuple(Direction.parse(d) for d in directions),
            waiting_delay=DelayRange.coerce(scenario.get('waiting_delay', WAITING_DELAY)),
            crossing_delay=DelayRange.coerce(scenario.get('crossing_delay', CROSSING_DELAY)),
            grace_period=DelayRange.coerce(scenario.get('grace_period', GRACE_PERIOD)),
            interarrival_delay=DelayRange.coerce(scenario.get('interarrival_delay', INTERARRIVAL_DELAY)),
            max_active=scenario.get('max_active', None),
            seed=scenario.get('seed', None),
        ).validate()


class DelaySampler:
    """
    Every random draw of one simulation goes through this object, so a fixed seed
    reproduces the whole run.
    """
    def __init__(self, config, rng=None):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

    def draw(self, bounds):
        if bounds.low == bounds.high:
            return bounds.low
        return int(self.rng.integers(bounds.low, bounds.high, endpoint=True))

    def waiting(self):
        return self.draw(self.config.waiting_delay)

    def crossing(self):
        return self.draw(self.config.crossing_delay)

    def grace(self):
        return self.draw(self.config.grace_period)

    def interarrival(self):
        return self.draw(self.config.interarrival_delay)

    def vehicle_type(self):
        types = self.config.vehicle_types
        return types[int(self.rng.integers(len(types)))]

    def direction(self):
        directions = self.config.directions
        return directions[int(self.rng.integers(len(directions)))]
