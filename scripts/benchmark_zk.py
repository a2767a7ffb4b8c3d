#!/usr/bin/env python3
"""
Role Proof Benchmark Script
===========================

Benchmarks generation, verification and batch verification latency of
clearance role proofs against an in-memory nullifier store.

Usage:
    python scripts/benchmark_zk.py [--iterations N] [--stage NAME] [--output FILE]
"""

import argparse
import asyncio
import json
import random
import statistics
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rolezk.zk import BatchVerifier, InMemoryNullifierStore, RoleProver, RoleVerifier


# Configuration
TARGET_TIME_MS = 50.0
DEFAULT_ITERATIONS = 200
BATCH_SIZE = 50


@dataclass
class BenchmarkResult:
    """Result of a benchmark run."""
    stage: str
    iterations: int
    min_ms: float
    max_ms: float
    mean_ms: float
    median_ms: float
    p95_ms: float
    p99_ms: float
    success_rate: float
    pass_target: bool


def percentile(data: list[float], p: int) -> float:
    """Calculate percentile."""
    sorted_data = sorted(data)
    index = int(len(sorted_data) * p / 100)
    return sorted_data[min(index, len(sorted_data) - 1)]


def summarize(stage: str, times: list[float], iterations: int, successes: int) -> BenchmarkResult:
    if not times:
        return BenchmarkResult(stage, iterations, 0, 0, 0, 0, 0, 0, 0, False)

    return BenchmarkResult(
        stage=stage,
        iterations=iterations,
        min_ms=min(times),
        max_ms=max(times),
        mean_ms=statistics.mean(times),
        median_ms=statistics.median(times),
        p95_ms=percentile(times, 95),
        p99_ms=percentile(times, 99),
        success_rate=successes / iterations,
        pass_target=percentile(times, 95) < TARGET_TIME_MS,
    )


async def benchmark_generate(prover: RoleProver, iterations: int) -> tuple[BenchmarkResult, list]:
    """Benchmark proof generation; returns the proofs for later stages."""
    times: list[float] = []
    proofs = []

    print(f"\nBenchmarking: generate ({iterations} iterations)")

    for i in range(iterations):
        min_clearance = random.randint(1, 3)
        start = time.perf_counter()
        proof = await prover.generate(
            owner_clearance=3,
            min_clearance=min_clearance,
            owner_id=f"BENCH-OWNER-{i:05d}",
        )
        times.append((time.perf_counter() - start) * 1000)
        proofs.append(proof)

    return summarize("generate", times, iterations, len(proofs)), proofs


async def benchmark_verify(verifier: RoleVerifier, proofs: list) -> BenchmarkResult:
    """Benchmark single-proof verification."""
    times: list[float] = []
    successes = 0

    print(f"Benchmarking: verify ({len(proofs)} iterations)")

    for proof in proofs:
        start = time.perf_counter()
        result = await verifier.verify(proof)
        times.append((time.perf_counter() - start) * 1000)
        if result.valid:
            successes += 1
        else:
            print(f"  ✗ {proof.proof_id}: {result.rejection_reason}")

    return summarize("verify", times, len(proofs), successes)


async def benchmark_batch(prover: RoleProver, verifier: RoleVerifier, iterations: int) -> BenchmarkResult:
    """Benchmark batch verification of BATCH_SIZE proofs per round."""
    times: list[float] = []
    successes = 0
    batch_verifier = BatchVerifier(verifier)

    rounds = max(1, iterations // BATCH_SIZE)
    print(f"Benchmarking: batch ({rounds} rounds x {BATCH_SIZE} proofs)")

    for i in range(rounds):
        proofs = [
            await prover.generate(owner_clearance=2, min_clearance=2, owner_id=f"BATCH-{i}-{j}")
            for j in range(BATCH_SIZE)
        ]
        start = time.perf_counter()
        results = await batch_verifier.verify_all(proofs)
        times.append((time.perf_counter() - start) * 1000)
        if all(r.valid for r in results):
            successes += 1

    return summarize(f"batch_{BATCH_SIZE}", times, rounds, successes)


def print_results(results: list[BenchmarkResult]) -> bool:
    """Print benchmark results summary."""
    print(f"\n{'='*70}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*70}")
    print(f"\n{'Stage':<15} | {'P95':>10} | {'Mean':>10} | {'Target':>9} | Status")
    print("-" * 70)

    all_pass = True
    for r in results:
        status = "PASS" if r.pass_target else "FAIL"
        if not r.pass_target:
            all_pass = False
        print(f"{r.stage:<15} | {r.p95_ms:>8.3f}ms | {r.mean_ms:>8.3f}ms | <{TARGET_TIME_MS:.0f}ms | {status}")

    for r in results:
        print(f"\n{r.stage}:")
        print(f"  Iterations:   {r.iterations}")
        print(f"  Success rate: {r.success_rate*100:.1f}%")
        print(f"  Median:       {r.median_ms:.3f}ms")
        print(f"  P99:          {r.p99_ms:.3f}ms")
    print()

    return all_pass


async def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark clearance role proofs")
    parser.add_argument("--iterations", "-n", type=int, default=DEFAULT_ITERATIONS,
                        help=f"Number of iterations (default: {DEFAULT_ITERATIONS})")
    parser.add_argument("--stage", "-s", type=str, choices=["generate", "verify", "batch"],
                        help="Benchmark a single stage only")
    parser.add_argument("--output", "-o", type=str, help="Output JSON file for results")
    args = parser.parse_args()

    store = InMemoryNullifierStore()
    prover = RoleProver(store=store)
    verifier = RoleVerifier(store=store)

    results: list[BenchmarkResult] = []

    generated, proofs = await benchmark_generate(prover, args.iterations)
    if args.stage in (None, "generate"):
        results.append(generated)
    if args.stage in (None, "verify"):
        results.append(await benchmark_verify(verifier, proofs))
    if args.stage in (None, "batch"):
        results.append(await benchmark_batch(prover, verifier, args.iterations))

    all_pass = print_results(results)

    if args.output:
        output_data = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "target_ms": TARGET_TIME_MS,
            "results": [asdict(r) for r in results],
            "all_pass": all_pass,
        }
        with open(args.output, "w") as f:
            json.dump(output_data, f, indent=2)
        print(f"Results saved to: {args.output}")

    sys.exit(0 if all_pass else 1)


if __name__ == "__main__":
    asyncio.run(main())
