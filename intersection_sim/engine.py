# engine.py
# Intersection simulation (SimPy)
# One process per vehicle drives its lifecycle; one generator process creates vehicles.

import itertools
import logging
from collections import deque

import numpy as np
import simpy

from .config import DelaySampler, SimulationConfig
from .registry import VehicleRegistry
from .vehicle import Direction, Vehicle, VehicleState

logger = logging.getLogger(__name__)

SHUTDOWN = 'shutdown'
SAMPLE_SIZE = 10000   # completed vehicles kept for percentile statistics


# ----------------------
# Vehicle lifecycle worker
# ----------------------
class LifecycleWorker:
    """
    Drives one vehicle: WAITING (random delay) -> CROSSING (random delay) ->
    PASSED (grace period) -> removed from the registry.

    Each transition is published to the registry before the next wait starts.
    The vehicle is removed on every exit path, including cancellation, so a
    registry entry never outlives its worker.
    """
    def __init__(self, sim, vehicle):
        self.sim = sim
        self.env = sim.env
        self.vid = vehicle.vid
        self.state = vehicle.state
        self.wake_at = None        # sim time of the next transition
        self.cancelled = False
        self._cancel_requested = False
        self.process = self.env.process(self.run())

    def __repr__(self):
        return f'LifecycleWorker({self.vid}, {self.state.label}, wake_at={self.wake_at})'

    @property
    def is_alive(self):
        return self.process.is_alive

    def run(self):
        registry = self.sim.registry
        sampler = self.sim.sampler
        record = None
        try:
            yield self._hold(sampler.waiting())
            record = self._advance(registry, VehicleState.CROSSING)

            yield self._hold(sampler.crossing())
            record = self._advance(registry, VehicleState.PASSED)

            # stay visible so observers can see the completed state
            yield self._hold(sampler.grace())
            logger.debug("[%8.1f] %s retired", self.env.now, self.vid)
        except simpy.Interrupt as interrupt:
            self.cancelled = True
            logger.debug("[%8.1f] %s cancelled while %s (%s)",
                         self.env.now, self.vid, self.state.label, interrupt.cause)
        finally:
            registry.remove(self.vid)
            self.wake_at = None
            self.sim._worker_finished(self, record)

    def cancel(self, cause=SHUTDOWN):
        """Interrupt the worker at its current wait point. Safe to call more than once."""
        if self._cancel_requested or not self.process.is_alive:
            return
        self._cancel_requested = True
        self.process.interrupt(cause)

    def _hold(self, delay):
        self.wake_at = self.env.now + delay
        return self.env.timeout(delay)

    def _advance(self, registry, state):
        record = registry.publish(self.vid, state, self.env.now)
        self.state = state
        logger.debug("[%8.1f] %s -> %s", self.env.now, self.vid, state.label)
        return record


# ----------------------
# Vehicle generator
# ----------------------
class VehicleGenerator:
    """Creates a vehicle, then waits a random inter-arrival delay, until interrupted."""
    def __init__(self, sim):
        self.sim = sim
        self.env = sim.env
        self.process = self.env.process(self.run())

    @property
    def is_alive(self):
        return self.process.is_alive

    def run(self):
        try:
            while not self.sim.stopped:
                self.sim.admit()
                yield self.env.timeout(self.sim.sampler.interarrival())
        except simpy.Interrupt as interrupt:
            logger.info("[%8.1f] generator stopped (%s)", self.env.now, interrupt.cause)

    def cancel(self, cause=SHUTDOWN):
        if self.process.is_alive:
            self.process.interrupt(cause)


# ----------------------
# Simulation
# ----------------------
class IntersectionSimulation:
    """
    Four-way intersection with an unbounded stream of vehicles.

    env: simpy.Environment to run on. Defaults to a plain (as-fast-as-possible)
         environment; pass a simpy.rt.RealtimeEnvironment for wall-clock pacing.

    Worker policy: with config.max_active None every arrival gets its own worker,
    so the number of live processes grows with the arrival rate. With max_active
    set, an arrival that finds the registry full is dropped and counted.

    The registry is thread-safe; everything else must be driven from the thread
    that steps the environment.
    """
    def __init__(self, config=None, env=None, sample_size=SAMPLE_SIZE):
        self.config = (config if config is not None else SimulationConfig()).validate()
        self.env = env if env is not None else simpy.Environment()
        self.sampler = DelaySampler(self.config)
        self.registry = VehicleRegistry(clock=lambda: self.env.now)

        # runtime vars
        self.generator = None
        self.workers = {}   # vid -> LifecycleWorker
        self._ids = itertools.count(1)
        self._stopped = False

        # stats
        self.generated = 0
        self.dropped = 0
        self.retired = 0
        self.cancelled = 0
        self.total_wait = 0.0
        self.total_crossing = 0.0
        self.wait_times = deque(maxlen=sample_size)   # most recent only

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    # ---------- lifecycle control ----------
    def start(self):
        """Begin generating vehicles."""
        if self._stopped:
            raise RuntimeError("simulation has been stopped and cannot be restarted")
        if self.generator is not None:
            raise RuntimeError("simulation already started")
        logger.info("[%8.1f] simulation started (seed=%s)", self.env.now, self.config.seed)
        self.generator = VehicleGenerator(self)
        return self

    def run(self, until=None):
        """Advance the environment, e.g. run(until=env.now + 10000)."""
        self.env.run(until=until)

    def stop(self):
        """
        Cancel the generator and every live worker, then step the environment
        until all of them have exited. On return the registry is empty.
        Must not be called from inside a running simulation process.
        """
        if self._stopped:
            return
        self._stopped = True
        if self.generator is not None:
            self.generator.cancel()
        # interrupts are scheduled at the current time, ahead of any pending timeout
        while self._busy():
            for worker in list(self.workers.values()):
                worker.cancel()
            self.env.step()
        logger.info("[%8.1f] simulation stopped: %d retired, %d cancelled, %d dropped",
                    self.env.now, self.retired, self.cancelled, self.dropped)

    @property
    def stopped(self):
        return self._stopped

    def _busy(self):
        if self.generator is not None and self.generator.is_alive:
            return True
        return bool(self.workers)

    # ---------- arrivals ----------
    def admit(self):
        """Handle one arrival from the generator; returns the worker or None if dropped."""
        limit = self.config.max_active
        if limit is not None and len(self.registry) >= limit:
            self.dropped += 1
            logger.warning("[%8.1f] intersection saturated (%d active), arrival dropped",
                           self.env.now, limit)
            return None
        return self.spawn()

    def spawn(self, vehicle_type=None, direction=None):
        """
        Create, register and start one vehicle. Unset attributes are drawn at random.
        Raises ValueError, with nothing registered, for a type or direction outside
        the configured sets.
        """
        if self._stopped:
            raise RuntimeError("simulation has been stopped")
        if vehicle_type is None:
            vehicle_type = self.sampler.vehicle_type()
        elif vehicle_type not in self.config.vehicle_types:
            raise ValueError(f"unknown vehicle type: {vehicle_type!r}")
        if direction is None:
            direction = self.sampler.direction()
        else:
            direction = Direction.parse(direction)
            if direction not in self.config.directions:
                raise ValueError(f"direction {direction.value} is not enabled")
        vehicle = Vehicle(
            vid=f'V-{next(self._ids):05d}',
            vehicle_type=vehicle_type,
            direction=direction,
            arrived_at=self.env.now,
        )
        self.registry.register(vehicle)
        self.generated += 1
        worker = LifecycleWorker(self, vehicle)
        self.workers[vehicle.vid] = worker
        logger.debug("[%8.1f] %s arrives: %s from %s",
                     self.env.now, vehicle.vid, vehicle_type, direction.value)
        return worker

    def _worker_finished(self, worker, record):
        self.workers.pop(worker.vid, None)
        if worker.cancelled:
            self.cancelled += 1
            return
        self.retired += 1
        if record is not None and record.state is VehicleState.PASSED:
            self.total_wait += record.wait_time
            self.total_crossing += record.crossing_time
            self.wait_times.append(record.wait_time)

    # ---------- reads ----------
    def snapshot(self):
        return self.registry.snapshot()

    def results(self):
        res = {}
        res['generated'] = self.generated
        res['dropped'] = self.dropped
        res['retired'] = self.retired
        res['cancelled'] = self.cancelled
        res['active'] = len(self.registry)
        res['live_workers'] = len(self.workers)
        res['avg_wait'] = (self.total_wait / self.retired) if self.retired else 0.0
        res['p95_wait'] = float(np.percentile(list(self.wait_times), 95)) if self.wait_times else 0.0
        res['avg_crossing'] = (self.total_crossing / self.retired) if self.retired else 0.0
        # vehicles retired per simulated second
        res['throughput'] = (self.retired / (self.env.now / 1000.0)) if self.env.now > 0 else 0.0
        return res
