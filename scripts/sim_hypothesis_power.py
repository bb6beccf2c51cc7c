#!/usr/bin/env python3
"""
Hypothesis Power Simulation for Market Lab

Measures how often each scenario's hypotheses come out significant when the
player does everything right: the metric named in the hypothesis, the two
sectors it compares, and the matching test.

For each hypothesis the script draws fresh samples (bypassing the sample
cache) for the two sectors, runs the test, and reports the share of trials
with p < threshold. Hypotheses that compare sectors in the same performance
group are expected to rarely be significant; hypotheses that compare a
positive and a negative sector should almost always be.

Usage:
    python scripts/sim_hypothesis_power.py
    python scripts/sim_hypothesis_power.py --trials 500 --seed 42
    python scripts/sim_hypothesis_power.py --sample-size 50 --scenario 3
"""

import argparse
import sys

from marketlab.engine import SimulationContext, metric_for_hypothesis, metric_id_for_name
from marketlab.engine.validator import get_metric_type
from marketlab.models import MetricType, TestKind
from marketlab.parameters import DEFAULT_SAMPLE_SIZE


def sectors_in_statement(statement: str, sector_names: list[str]) -> list[str]:
    """Sector names mentioned in a statement, in order of appearance."""
    text = statement.lower()
    found = [(text.find(name.lower()), name) for name in sector_names if name.lower() in text]
    return [name for _, name in sorted(found)]


def simulate_hypothesis(context, scenario_index, hypothesis, trials, sample_size):
    """Run one hypothesis many times.

    Returns:
        Dict with the metric, sectors, groups and significant share, or None
        if the hypothesis does not name a metric and two sectors
    """
    metric_name = hypothesis.metric or metric_for_hypothesis(hypothesis.statement)
    sectors = sectors_in_statement(hypothesis.statement, [s.name for s in context.sectors])
    if metric_name is None or len(sectors) < 2:
        return None

    metric_id = metric_id_for_name(metric_name)
    kind = TestKind.T_TEST if get_metric_type(metric_name) == MetricType.NUMERICAL else TestKind.CHI_SQUARE
    threshold = context.situations[scenario_index].test_criteria.threshold
    sector_a, sector_b = sectors[0], sectors[1]
    group_a = context.classifier.classify(sector_a, scenario_index)
    group_b = context.classifier.classify(sector_b, scenario_index)

    significant = 0
    for _ in range(trials):
        sample_a = context.data_generator.sample(metric_id, group_a, sample_size, sector_a, use_cache=False)
        sample_b = context.data_generator.sample(metric_id, group_b, sample_size, sector_b, use_cache=False)
        result = context.test_engine.run_test(kind, sample_a, sample_b, threshold=threshold)
        if result.significant:
            significant += 1
    context.test_engine.clear_cache()

    return {
        "metric": metric_name,
        "test": kind.value,
        "sectors": (sector_a, sector_b),
        "groups": (group_a.value, group_b.value),
        "power": significant / trials,
    }


def run_power_simulation(context, trials, sample_size, only_scenario=None):
    """Print the significant share for every hypothesis."""
    print("=" * 100)
    print("HYPOTHESIS POWER")
    print(f"Trials per hypothesis: {trials}   Sample size: {sample_size}")
    print("=" * 100)
    print()
    print(f"{'Scn':>3} {'Hyp':>3} {'Metric':<34} {'Groups':<20} {'Test':<10} {'Significant':>11}")
    print("-" * 100)

    skipped = 0
    for scenario_index, situation in enumerate(context.situations):
        if only_scenario is not None and scenario_index != only_scenario:
            continue
        for hypothesis_index, hypothesis in enumerate(situation.hypotheses):
            row = simulate_hypothesis(context, scenario_index, hypothesis, trials, sample_size)
            if row is None:
                skipped += 1
                continue
            groups = f"{row['groups'][0]} vs {row['groups'][1]}"
            print(
                f"{scenario_index + 1:>3} {hypothesis_index + 1:>3} {row['metric']:<34} "
                f"{groups:<20} {row['test']:<10} {row['power']:>10.1%}"
            )

    print("-" * 100)
    if skipped:
        print(f"Skipped {skipped} hypotheses without a recognizable metric or sector pair")
    print()


def main():
    """Run the hypothesis power simulation."""
    parser = argparse.ArgumentParser(description="Measure how often each hypothesis tests significant")
    parser.add_argument("--trials", type=int, default=200,
                        help="Number of trials per hypothesis (default: 200)")
    parser.add_argument("--sample-size", type=int, default=DEFAULT_SAMPLE_SIZE,
                        help=f"Observations per sample (default: {DEFAULT_SAMPLE_SIZE})")
    parser.add_argument("--scenario", type=int, default=None,
                        help="Only simulate this 1-based scenario")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducibility")
    args = parser.parse_args()

    if args.trials <= 0:
        print("--trials must be positive", file=sys.stderr)
        sys.exit(2)

    context = SimulationContext.from_repository(random_seed=args.seed)
    only_scenario = args.scenario - 1 if args.scenario is not None else None

    print()
    print("MARKET LAB HYPOTHESIS SIMULATION")
    print("=" * 100)
    print()

    run_power_simulation(context, args.trials, args.sample_size, only_scenario)

    print("=" * 100)
    print("SIMULATION COMPLETE")
    print("=" * 100)


if __name__ == "__main__":
    main()
