# intersection_sim
# Discrete-event simulation (SimPy) of vehicles crossing a four-way intersection.

from .config import DelayRange, DelaySampler, SimulationConfig
from .engine import IntersectionSimulation, LifecycleWorker, VehicleGenerator
from .errors import (DuplicateVehicleError, IllegalTransitionError, SimulationError,
                     UnknownVehicleError)
from .registry import Snapshot, VehicleRegistry, VehicleRow
from .runner import RealtimeRunner
from .stats import mean_ci_95, run_replications
from .vehicle import ZONE_BY_DIRECTION, Direction, Vehicle, VehicleState, Zone

__all__ = [
    'DelayRange', 'DelaySampler', 'SimulationConfig',
    'IntersectionSimulation', 'LifecycleWorker', 'VehicleGenerator',
    'DuplicateVehicleError', 'IllegalTransitionError', 'SimulationError', 'UnknownVehicleError',
    'Snapshot', 'VehicleRegistry', 'VehicleRow',
    'RealtimeRunner',
    'mean_ci_95', 'run_replications',
    'ZONE_BY_DIRECTION', 'Direction', 'Vehicle', 'VehicleState', 'Zone',
]
