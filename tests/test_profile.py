"""
Tests for opt-in section profiling.
"""

from collections.abc import Iterator

import pytest

import sjzon


@pytest.fixture
def profiling() -> Iterator[None]:
    sjzon.clear_hot_path_stats()
    sjzon.set_profiling(True)
    yield
    sjzon.set_profiling(False)
    sjzon.clear_hot_path_stats()


def test_sections_recorded(profiling: None) -> None:
    """
    Validates that parsing and printing record their sections.
    """
    text = 'a = [1 2] b = "x"'
    doc = sjzon.parse(text)
    doc.print()

    stats = sjzon.get_hot_path_stats()
    assert stats["parse_document"].call_count == 1
    assert stats["parse_document"].chars_processed == len(text)
    assert stats["parse_number"].call_count == 2
    assert stats["parse_array"].call_count == 1
    assert stats["serialize"].call_count == 1
    assert stats["skip"].mean_time_ns >= 0


def test_disabled_records_nothing() -> None:
    sjzon.set_profiling(False)
    sjzon.clear_hot_path_stats()
    sjzon.parse("a=1")
    assert sjzon.get_hot_path_stats() == {}
