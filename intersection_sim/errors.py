# errors.py
# Exceptions raised by the intersection simulation core.
# Cancellation is not an error: workers and the generator handle simpy.Interrupt themselves.


class SimulationError(Exception):
    """Base class for invariant violations inside the simulation core."""


class DuplicateVehicleError(SimulationError):
    """A vehicle id was registered while another vehicle with that id is still active."""

    def __init__(self, vid):
        super().__init__(f"vehicle {vid} is already registered")
        self.vid = vid


class UnknownVehicleError(SimulationError, KeyError):
    """A transition was published for a vehicle the registry does not hold."""

    def __init__(self, vid):
        super().__init__(f"vehicle {vid} is not registered")
        self.vid = vid

    def __str__(self):
        # KeyError would repr() the message
        return self.args[0]


class IllegalTransitionError(SimulationError):
    def __init__(self, vid, current, requested):
        super().__init__(f"vehicle {vid}: illegal transition {current.label} -> {requested.label}")
        self.vid = vid
        self.current = current
        self.requested = requested
