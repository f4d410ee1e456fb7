# runner.py
# Wall-clock execution: steps a RealtimeEnvironment on a background thread so that
# views can poll snapshots from the main thread.

import logging
import threading
import time

import simpy.rt

from .engine import IntersectionSimulation

logger = logging.getLogger(__name__)

MS = 0.001  # wall seconds per simulated millisecond at real speed


class RealtimeRunner:
    """
    speed: 1.0 runs in real time, 10.0 ten times faster.
    idle_poll: seconds to wait when no event is scheduled.

    The simulation thread waits for the next event on a threading.Event instead of
    sleeping, so stop() is honoured immediately at any wait point.
    """
    def __init__(self, config=None, speed=1.0, idle_poll=0.05):
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.env = simpy.rt.RealtimeEnvironment(factor=MS / speed, strict=False)
        self.simulation = IntersectionSimulation(config, env=self.env)
        self.idle_poll = idle_poll
        self._halt = threading.Event()
        self._thread = None
        self._error = None

    @property
    def registry(self):
        return self.simulation.registry

    @property
    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def snapshot(self):
        return self.simulation.registry.snapshot()

    def start(self):
        if self._thread is not None:
            raise RuntimeError("runner already started")
        self._thread = threading.Thread(target=self._run, name="intersection-sim", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout=10.0):
        """
        Ask the simulation thread to shut down and wait until every worker has
        deregistered its vehicle. Re-raises a fatal error hit by the thread.
        """
        self._halt.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                raise TimeoutError(f"simulation thread did not stop within {timeout}s")
        if self._error is not None:
            raise self._error

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    # ---------- simulation thread ----------
    def _run(self):
        try:
            self.simulation.start()
            self._drive()
        except Exception as exc:
            logger.exception("simulation thread failed")
            self._error = exc
        finally:
            try:
                self.simulation.stop()
            except Exception as exc:
                logger.exception("simulation shutdown failed")
                if self._error is None:
                    self._error = exc

    def _drive(self):
        env = self.env
        env.sync()
        wall_start = time.monotonic()
        sim_start = env.now
        while not self._halt.is_set():
            due = env.peek()
            if due == float('inf'):
                self._halt.wait(self.idle_poll)
                continue
            remaining = wall_start + (due - sim_start) * env.factor - time.monotonic()
            if remaining > 0 and self._halt.wait(remaining):
                break
            env.step()
