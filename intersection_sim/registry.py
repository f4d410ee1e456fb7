# registry.py
# Shared store of the vehicles currently in the intersection, and the immutable
# snapshots every view is built from.

import logging
import threading
from collections import Counter, namedtuple
from dataclasses import dataclass
from typing import Tuple

from .errors import DuplicateVehicleError, UnknownVehicleError
from .vehicle import Vehicle, VehicleState, Zone

logger = logging.getLogger(__name__)

VehicleRow = namedtuple('VehicleRow', ['vid', 'vehicle_type', 'direction', 'state', 'elapsed'])


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time copy of the registry. The table rows and the zone occupancy
    are both computed from this one object, never from two separate reads.
    """
    taken_at: float
    version: int
    vehicles: Tuple[Vehicle, ...]

    def __len__(self):
        return len(self.vehicles)

    def __iter__(self):
        return iter(self.vehicles)

    @property
    def is_empty(self):
        return not self.vehicles

    def get(self, vid):
        for v in self.vehicles:
            if v.vid == vid:
                return v
        return None

    def rows(self):
        """Table rows, in registration order."""
        return tuple(
            VehicleRow(v.vid, v.vehicle_type, v.direction, v.state, v.elapsed(self.taken_at))
            for v in self.vehicles
        )

    def occupancy(self):
        """
        Zone -> ids of every vehicle crossing in it. All four zones are present;
        several vehicles crossing from the same direction are all listed.
        """
        zones = {zone: [] for zone in Zone}
        for v in self.vehicles:
            zone = v.zone
            if zone is not None:
                zones[zone].append(v.vid)
        return {zone: tuple(vids) for zone, vids in zones.items()}

    def by_state(self):
        counts = Counter(v.state for v in self.vehicles)
        return {state: counts.get(state, 0) for state in VehicleState}


class VehicleRegistry:
    """
    Thread-safe collection of active vehicles.

    One lock guards the whole collection. Vehicle records are immutable, so a
    mutation is a single dict assignment under the lock and a snapshot is a
    shallow copy taken under the same lock.
    """
    def __init__(self, clock=None):
        # clock() returns the current sim time, stamped on snapshots
        self._clock = clock if clock is not None else (lambda: 0.0)
        self._lock = threading.Lock()
        self._vehicles = {}   # vid -> Vehicle, insertion ordered
        self._version = 0
        self._listeners = []

    # ---------- mutation ----------
    def register(self, vehicle):
        with self._lock:
            if vehicle.vid in self._vehicles:
                raise DuplicateVehicleError(vehicle.vid)
            self._vehicles[vehicle.vid] = vehicle
            snap = self._commit()
        self._notify(snap)

    def publish(self, vid, state, at):
        """Move one vehicle to its next state; returns the new record."""
        with self._lock:
            current = self._vehicles.get(vid)
            if current is None:
                raise UnknownVehicleError(vid)
            updated = current.advance(state, at)
            self._vehicles[vid] = updated
            snap = self._commit()
        self._notify(snap)
        return updated

    def remove(self, vid):
        """Drop a vehicle. Removing an id that is not present is a no-op returning None."""
        with self._lock:
            removed = self._vehicles.pop(vid, None)
            if removed is None:
                return None
            snap = self._commit()
        self._notify(snap)
        return removed

    # ---------- reads ----------
    def snapshot(self):
        with self._lock:
            return self._take()

    @property
    def version(self):
        with self._lock:
            return self._version

    def __len__(self):
        with self._lock:
            return len(self._vehicles)

    def __contains__(self, vid):
        with self._lock:
            return vid in self._vehicles

    # ---------- observers ----------
    def subscribe(self, callback):
        """
        Call `callback(snapshot)` after every mutation with the snapshot taken
        atomically with it. Returns a function that cancels the subscription.
        """
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)
        return unsubscribe

    # ---------- internals (caller holds the lock) ----------
    def _take(self):
        return Snapshot(self._clock(), self._version, tuple(self._vehicles.values()))

    def _commit(self):
        self._version += 1
        if self._listeners:
            return self._take()
        return None

    def _notify(self, snap):
        if snap is None:
            return
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            callback(snap)
