"""Compare the three balancing policies under the same offered load.

Runs one simulation per policy with identical arrival rate, request mix
and seed, then prints each run summary and saves a comparison chart plus
per-policy queue depth and response time plots.

## Architecture Diagram

```
    ┌───────────┐     ┌──────────────┐     ┌────────────┐     ┌──────────┐
    │ Generator │────►│ Pending (20) │────►│ Dispatcher │──┬─►│ Server 1 │ (10)
    │ (Poisson) │     └──────────────┘     │  (policy)  │  ├─►│ Server 2 │ (10)
    └───────────┘                          └────────────┘  └─►│ Server 3 │ (10)
                                                              └──────────┘
```

## What to look for

Mean service time with a uniform size mix is (0.1 + 0.3 + 1.0) / 3, about
0.47s, so three servers sustain roughly 6.4 req/s. Below that rate all
policies keep up; above it, random placement fills individual queues
first, and smallest-queue keeps depths level the longest.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from dispatchsimulator import BalancingMode, SimulationConfig, SimulationEngine, SimulationSummary


def run_policy(
    mode: BalancingMode,
    arrival_rate: float,
    duration_s: float,
    time_scale: float,
    seed: int | None,
) -> tuple[SimulationEngine, SimulationSummary]:
    config = SimulationConfig(
        balancing_mode=mode,
        arrival_rate=arrival_rate,
        time_scale=time_scale,
        seed=seed,
    )
    engine = SimulationEngine(config)
    summary = asyncio.run(engine.run_for(duration_s))
    return engine, summary


def visualize_results(runs: list[tuple[SimulationEngine, SimulationSummary]], output_dir: Path) -> None:
    from dispatchsimulator.visual import (
        plot_policy_comparison,
        plot_queue_depths,
        plot_response_times,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    plot_policy_comparison([summary for _, summary in runs], output_dir / "policy_comparison.png")
    for engine, summary in runs:
        if engine.probe is not None:
            plot_queue_depths(
                engine.probe.series,
                output_dir / f"queue_depths_{summary.balancing_mode}.png",
                title=f"Queue depth ({summary.balancing_mode})",
            )
        plot_response_times(
            engine.metrics.response_times,
            output_dir / f"response_times_{summary.balancing_mode}.png",
        )


if __name__ == "__main__":
    import argparse

    import dispatchsimulator

    parser = argparse.ArgumentParser(description="Balancing policy comparison")
    parser.add_argument("--rate", type=float, default=7.0, help="Arrivals per second (0-10)")
    parser.add_argument("--duration", type=float, default=120.0, help="Simulated duration (s)")
    parser.add_argument("--time-scale", type=float, default=0.05, help="Wall seconds per simulated second")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (use -1 for random)")
    parser.add_argument("--output", type=str, default="output/policy_comparison", help="Output directory")
    parser.add_argument("--no-viz", action="store_true", help="Skip visualization generation")
    args = parser.parse_args()

    dispatchsimulator.configure_from_env()
    seed = None if args.seed == -1 else args.seed

    print("Running policy comparison...")
    print(f"  Arrival rate: {args.rate} req/s for {args.duration}s (time scale {args.time_scale})")

    runs = []
    for mode in BalancingMode:
        engine, summary = run_policy(mode, args.rate, args.duration, args.time_scale, seed)
        runs.append((engine, summary))
        print()
        print(summary)

    if not args.no_viz:
        output_dir = Path(args.output)
        visualize_results(runs, output_dir)
        print(f"\nVisualizations saved to: {output_dir.absolute()}")
