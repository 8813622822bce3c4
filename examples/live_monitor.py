"""Watch a run from the calling thread while it executes in the background.

``Simulation`` owns its own event loop thread, so a synchronous caller can
poll snapshots, queue lengths and server workloads the way a dashboard
would, then stop the run and print the final summary.
"""

from __future__ import annotations

import time

from dispatchsimulator import Simulation, SimulationConfig


def format_row(elapsed: float, snapshot, lengths: dict[str, int], workloads: dict[str, float]) -> str:
    queues = " ".join(f"{name.replace(' queue', '')}={depth:>2}" for name, depth in lengths.items())
    loads = " ".join(f"{name} load={seconds * 1000:.0f}ms" for name, seconds in workloads.items())
    return (
        f"t={elapsed:6.1f}s processed={snapshot.processed:>5} rejected={snapshot.rejected:>4} "
        f"avg={snapshot.avg_response_time * 1000:7.1f}ms tput={snapshot.throughput:5.2f}/s | {queues} | {loads}"
    )


if __name__ == "__main__":
    import argparse

    import dispatchsimulator

    parser = argparse.ArgumentParser(description="Live dispatch monitor")
    parser.add_argument("--mode", default="smallest-queue", help="random, round-robin or smallest-queue")
    parser.add_argument("--rate", type=float, default=8.0, help="Arrivals per second (0-10)")
    parser.add_argument("--duration", type=float, default=60.0, help="Simulated duration (s)")
    parser.add_argument("--time-scale", type=float, default=0.1, help="Wall seconds per simulated second")
    parser.add_argument("--refresh", type=float, default=0.5, help="Wall seconds between rows")
    args = parser.parse_args()

    dispatchsimulator.configure_from_env()
    sim = Simulation(
        SimulationConfig(balancing_mode=args.mode, arrival_rate=args.rate, time_scale=args.time_scale)
    )
    sim.start()
    try:
        while sim.engine.clock.now() < args.duration:
            time.sleep(args.refresh)
            print(format_row(sim.engine.clock.now(), sim.snapshot(), sim.queue_lengths(), sim.workloads()))
    except KeyboardInterrupt:
        print("Interrupted")
    finally:
        summary = sim.stop(timeout=10.0)
    print()
    print(summary)
