# __main__.py
# python -m intersection_sim --help

import argparse
import logging
import sys
import time

from .config import SimulationConfig
from .engine import IntersectionSimulation
from .runner import RealtimeRunner
from .stats import run_replications
from .view import ConsoleView

logger = logging.getLogger("intersection_sim")


def build_argparser():
    p = argparse.ArgumentParser(description="Four-way intersection vehicle simulation.")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--duration", type=int, default=30000,
                   help="simulated milliseconds to run (0 = until Ctrl-C, realtime only)")
    p.add_argument("--refresh", type=int, default=1000, help="milliseconds between frames")
    p.add_argument("--realtime", action="store_true", help="pace the simulation with the wall clock")
    p.add_argument("--speed", type=float, default=1.0, help="realtime speed-up factor")
    p.add_argument("--max-active", type=int, default=None,
                   help="drop arrivals while this many vehicles are active (default: unbounded)")
    p.add_argument("--reps", type=int, default=None,
                   help="run N headless replications and print mean +- 95%% CI per metric")
    p.add_argument("--no-color", action="store_true")
    p.add_argument("--log-level", default="WARNING")
    return p


def parse_args(argv):
    p = build_argparser()
    args = p.parse_args(argv)
    if args.refresh <= 0:
        p.error("--refresh must be positive")
    if args.speed <= 0:
        p.error("--speed must be positive")
    if args.max_active is not None and args.max_active < 1:
        p.error("--max-active must be at least 1")
    if args.reps is not None and args.reps < 1:
        p.error("--reps must be at least 1")
    if args.duration < 0 or (args.duration == 0 and not args.realtime):
        p.error("--duration must be positive outside realtime mode")
    if args.reps is not None and args.realtime:
        p.error("--reps runs headless and cannot be combined with --realtime")
    return args


def run_headless(config, args, view):
    with IntersectionSimulation(config) as sim:
        sim.start()
        while sim.env.now < args.duration:
            sim.run(until=min(sim.env.now + args.refresh, args.duration))
            print(view.render(sim.snapshot()))
            print()
        res = sim.results()
    return res


def run_realtime(config, args, view):
    runner = RealtimeRunner(config, speed=args.speed).start()
    deadline = time.monotonic() + args.duration / 1000.0 / args.speed if args.duration > 0 else None
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(args.refresh / 1000.0 / args.speed)
            print(view.render(runner.snapshot()))
            print()
    except KeyboardInterrupt:
        logger.info("interrupted, shutting down")
    runner.stop()
    return runner.simulation.results()


def fmt(stat, fmt_mean="{:.4f}", fmt_ci="({:.4f}, {:.4f})"):
    mean = stat.get('mean', None)
    lo, hi = stat.get('95ci', (None, None))
    if mean is None:
        return "N/A"
    if lo is None or hi is None:
        return fmt_mean.format(mean)
    return f"{fmt_mean.format(mean)} ± {fmt_ci.format(lo, hi)}"


def print_replications(args):
    scenario = {'seed': args.seed, 'max_active': args.max_active}
    out = run_replications(scenario, duration=args.duration, reps=args.reps)
    print(f"=== {args.reps} replications of {args.duration} ms (mean ± 95%CI) ===")
    for name, stat in out['metrics'].items():
        print(f"{name:>14}: {fmt(stat)}")


def main(argv=None):
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(stream=sys.stderr, level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if args.reps is not None:
        print_replications(args)
        return 0
    config = SimulationConfig(max_active=args.max_active, seed=args.seed)
    view = ConsoleView(color=not args.no_color)
    if args.realtime:
        res = run_realtime(config, args, view)
    else:
        res = run_headless(config, args, view)
    for key, value in res.items():
        print(f"{key:>14}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
