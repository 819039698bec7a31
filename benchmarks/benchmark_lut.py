"""
Benchmark LUT construction and pixel mapping.
"""

import time
from typing import Callable

import numpy as np

from flavorlut import Algorithm, Flavor, LutBuilder, PixelMapper


def benchmark_function(func: Callable, warmup: int = 3, iterations: int = 20) -> tuple[float, float]:
    """Benchmark a function and return mean and std time in milliseconds."""
    # Warmup
    for _ in range(warmup):
        func()

    # Benchmark
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        end = time.perf_counter()
        times.append((end - start) * 1000)  # Convert to ms

    return np.mean(times), np.std(times)


def benchmark_build():
    """Benchmark full LUT builds for each algorithm family and slab size."""
    print("=" * 80)
    print("LutBuilder: full 256^3 builds")
    print("=" * 80)

    for slab_size in (4, 16, 64):
        builder = LutBuilder(slab_size=slab_size)
        for algorithm in (Algorithm.NEAREST_NEIGHBOR, Algorithm.SHEPARDS_METHOD):
            mean_time, std_time = benchmark_function(
                lambda: builder.build(Flavor.MOCHA, algorithm), warmup=1, iterations=3
            )
            print(f"  slab={slab_size:3d} {algorithm.label:<18} {mean_time:9.1f} ± {std_time:6.1f} ms")


def benchmark_apply():
    """Benchmark PixelMapper throughput."""
    print("\n" + "=" * 80)
    print("PixelMapper: RGBA images")
    print("=" * 80)

    mapper = PixelMapper(LutBuilder().build(Flavor.MOCHA, Algorithm.NEAREST_NEIGHBOR))
    rng = np.random.default_rng(0)

    for side in (256, 1024, 4096):
        pixels = rng.integers(0, 256, size=(side, side, 4), dtype=np.uint8)

        mean_copy, std_copy = benchmark_function(lambda: mapper.apply(pixels))
        mean_inplace, std_inplace = benchmark_function(lambda: mapper.apply(pixels, inplace=True))
        throughput = (side * side / mean_inplace) * 1000  # pixels per second

        print(f"\n--- {side}x{side} ---")
        print(f"  Copy:     {mean_copy:8.3f} ± {std_copy:6.3f} ms")
        print(f"  In-place: {mean_inplace:8.3f} ± {std_inplace:6.3f} ms")
        print(f"            {throughput:14,.0f} pixels/sec")


if __name__ == "__main__":
    benchmark_build()
    benchmark_apply()
