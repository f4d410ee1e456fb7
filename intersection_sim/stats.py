# stats.py
# Independent replications of the headless simulation, with 95% confidence intervals.

import logging
import math
import statistics

from .config import SimulationConfig
from .engine import IntersectionSimulation

logger = logging.getLogger(__name__)

METRICS = ('generated', 'dropped', 'retired', 'active', 'avg_wait', 'p95_wait',
           'avg_crossing', 'throughput')


# ----------------------
# Helper: Confidence Interval (95%)
# ----------------------
def mean_ci_95(data):
    n = len(data)
    if n == 0:
        return (None, None, None)
    mean = statistics.mean(data)
    if n == 1:
        return (mean, mean, mean)
    stdev = statistics.stdev(data)
    # normal approximation, z = 1.96
    z = 1.96
    se = stdev / math.sqrt(n)
    return (mean, mean - z*se, mean + z*se)


def statistics_95(samples):
    mean, lo, hi = mean_ci_95(samples)
    return {'mean': mean, '95ci': (lo, hi)}


def run_once(config, duration):
    """Run one headless simulation for `duration` ms and return its results (taken before shutdown)."""
    with IntersectionSimulation(config) as sim:
        sim.start()
        sim.run(until=duration)
        return sim.results()


def run_replications(scenario, duration, reps=10):
    """
    scenario: dict accepted by SimulationConfig.from_dict. Replication r uses
    seed scenario['seed'] + r when a seed is given.
    Returns {'metrics': {name: {'mean', '95ci'}}, 'summaries': [results, ...]}.
    """
    if reps < 1:
        raise ValueError("reps must be at least 1")
    base_seed = scenario.get('seed', None)
    summaries = []
    for r in range(reps):
        cfg = dict(scenario)
        cfg['seed'] = (base_seed + r) if base_seed is not None else None
        logger.info("replication %d (seed=%s)", r, cfg['seed'])
        summaries.append(run_once(SimulationConfig.from_dict(cfg), duration))

    metrics = {}
    for name in METRICS:
        metrics[name] = statistics_95([s[name] for s in summaries])
    return {'metrics': metrics, 'summaries': summaries}
