import pytest

from intersection_sim import DelayRange, SimulationConfig


@pytest.fixture
def fixed_config():
    """Deterministic delays: wait 100, cross 50, visible 500 more, arrivals every 1000."""
    return SimulationConfig(
        waiting_delay=DelayRange.fixed(100),
        crossing_delay=DelayRange.fixed(50),
        grace_period=DelayRange.fixed(500),
        interarrival_delay=DelayRange.fixed(1000),
        seed=1,
    )


@pytest.fixture
def recorder():
    """Collects every snapshot a registry publishes."""
    class Recorder:
        def __init__(self):
            self.snapshots = []

        def __call__(self, snapshot):
            self.snapshots.append(snapshot)

        def history(self, vid):
            """States observed for one vehicle, consecutive duplicates collapsed."""
            states = []
            for snap in self.snapshots:
                v = snap.get(vid)
                if v is not None and (not states or states[-1] is not v.state):
                    states.append(v.state)
            return states

    return Recorder()
