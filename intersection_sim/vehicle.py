# vehicle.py
# Vehicle record and the enums describing where it is and what it is doing.

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .errors import IllegalTransitionError


class VehicleState(Enum):
    """
    Lifecycle states, in the only order a vehicle may take them:
    WAITING -> CROSSING -> PASSED (then the vehicle is removed from the registry).
    """
    WAITING = (0, "Waiting")
    CROSSING = (1, "Crossing")
    PASSED = (2, "Passed")

    def __init__(self, rank, label):
        self.rank = rank
        self.label = label

    @property
    def successor(self):
        """Next state, or None for PASSED (terminal)."""
        for state in VehicleState:
            if state.rank == self.rank + 1:
                return state
        return None

    def __repr__(self):
        return self.name


class Direction(Enum):
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"

    @classmethod
    def parse(cls, value):
        """Accept a Direction, its name ('NORTH') or its label ('North')."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for d in cls:
            if text.upper() == d.name or text == d.value:
                return d
        raise ValueError(f"unknown direction: {value!r}")


class Zone(Enum):
    """
    Logical occupancy slot of the intersection. `cell` is the index of the slot
    in a row-major 3x3 grid whose centre (cell 4) is the junction itself.
    """
    A = 1
    B = 7
    C = 5
    D = 3

    @property
    def cell(self):
        return self.value


# fixed direction -> zone table
ZONE_BY_DIRECTION = {
    Direction.NORTH: Zone.A,
    Direction.SOUTH: Zone.B,
    Direction.EAST: Zone.C,
    Direction.WEST: Zone.D,
}


@dataclass(frozen=True)
class Vehicle:
    """
    One traversal attempt through the intersection.

    Records are immutable: a transition builds a new record with the state and its
    timestamp set together, and the registry swaps it in as one step. Readers can
    therefore never see `state == CROSSING` without `crossing_started_at`.
    """
    vid: str
    vehicle_type: str
    direction: Direction
    arrived_at: float
    state: VehicleState = VehicleState.WAITING
    crossing_started_at: Optional[float] = None
    passed_at: Optional[float] = None

    def advance(self, state, at):
        """Return the record after moving to `state` at sim time `at`."""
        if state is not self.state.successor:
            raise IllegalTransitionError(self.vid, self.state, state)
        if state is VehicleState.CROSSING:
            return replace(self, state=state, crossing_started_at=at)
        return replace(self, state=state, passed_at=at)

    @property
    def zone(self):
        """Zone occupied right now; only crossing vehicles occupy one."""
        if self.state is VehicleState.CROSSING:
            return ZONE_BY_DIRECTION[self.direction]
        return None

    def elapsed(self, now):
        # once passed, the figure freezes at the time spent waiting to cross
        if self.state is VehicleState.PASSED:
            return self.crossing_started_at - self.arrived_at
        return now - self.arrived_at

    @property
    def wait_time(self):
        if self.crossing_started_at is None:
            return None
        return self.crossing_started_at - self.arrived_at

    @property
    def crossing_time(self):
        if self.passed_at is None:
            return None
        return self.passed_at - self.crossing_started_at
