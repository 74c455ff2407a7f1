"""
Memory usage benchmarks for parsing.

Measures peak Python heap usage with tracemalloc for each library, and
the node high-water mark of sjzon trees through a BudgetAllocator.
"""

import json
import tracemalloc
from typing import Any

import orjson
import pytest
import ujson  # type: ignore[import-untyped]

import sjzon
from benchmarks.data_generators import generate_relaxed_data
from benchmarks.data_generators import generate_test_data

DATA_TYPES = [
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
]


def measure_memory_usage(func: Any, *args: Any) -> tuple[Any, int]:
    """
    Measures peak memory usage during function execution.

    Returns:
        Tuple of (function_result, peak_memory_bytes)
    """
    tracemalloc.start()
    try:
        result = func(*args)
        _, peak = tracemalloc.get_traced_memory()
        return result, peak
    finally:
        tracemalloc.stop()


class TestMemoryUsage:
    """Memory usage benchmarks for parsing."""

    @pytest.mark.parametrize("data_type", DATA_TYPES)
    def test_sjzon_memory(self, data_type: str) -> None:
        test_data = generate_test_data(data_type)
        doc, peak_memory = measure_memory_usage(sjzon.parse, test_data)

        print(f"\nsjzon {data_type}: {peak_memory:,} bytes")
        assert doc.root is not None

    @pytest.mark.parametrize("data_type", DATA_TYPES)
    def test_node_high_water_mark(self, data_type: str) -> None:
        """Strict and relaxed renderings build the same number of nodes."""
        strict = sjzon.BudgetAllocator()
        relaxed = sjzon.BudgetAllocator()
        sjzon.parse(generate_test_data(data_type), allocator=strict).close()
        sjzon.parse(generate_relaxed_data(data_type), allocator=relaxed).close()

        print(f"\nsjzon {data_type}: {strict.peak_nodes:,} nodes")
        assert strict.live_nodes == relaxed.live_nodes == 0
        assert strict.peak_nodes > 0

    def test_memory_comparison_summary(self) -> None:
        """Prints a memory usage comparison table."""
        results = {}

        for data_type in DATA_TYPES:
            test_data = generate_test_data(data_type)

            results[data_type] = {
                "stdlib_json": measure_memory_usage(json.loads, test_data)[1],
                "orjson": measure_memory_usage(
                    orjson.loads, test_data.encode("utf-8")
                )[1],
                "ujson": measure_memory_usage(ujson.loads, test_data)[1],
                "sjzon": measure_memory_usage(sjzon.parse, test_data)[1],
            }

        libraries = ["stdlib_json", "orjson", "ujson", "sjzon"]
        print("\n" + "=" * 72)
        print("MEMORY USAGE COMPARISON (bytes)")
        print("=" * 72)
        print(f"{'Data Type':<20}" + "".join(f"{n:<13}" for n in libraries))
        print("-" * 72)
        for data_type, measurements in results.items():
            print(
                f"{data_type:<20}"
                + "".join(f"{measurements[n]:<13,}" for n in libraries)
            )
        print("=" * 72)

        print("\nsjzon vs stdlib_json")
        for data_type, measurements in results.items():
            ratio = measurements["sjzon"] / measurements["stdlib_json"]
            print(f"{data_type}: {ratio:.2f}x")

        assert len(results) == len(DATA_TYPES)
