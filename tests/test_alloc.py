"""
Allocator tests: budgets, exhaustion during parsing and release accounting.
"""

import pytest

import sjzon


def test_heap_allocator_is_default() -> None:
    doc = sjzon.Document()
    assert isinstance(doc.allocator, sjzon.HeapAllocator)
    assert isinstance(doc.allocator, sjzon.Allocator)
    assert isinstance(sjzon.BudgetAllocator(), sjzon.Allocator)


def test_budget_rejects_negative_limits() -> None:
    with pytest.raises(ValueError, match="max_nodes"):
        sjzon.BudgetAllocator(max_nodes=-1)
    with pytest.raises(ValueError, match="max_text"):
        sjzon.BudgetAllocator(max_text=-1)


def test_budget_counts_nodes_and_text(budget: sjzon.BudgetAllocator) -> None:
    """
    Validates the live counters during a parse and after close().
    """
    doc = sjzon.parse('key = "value" list = [1 2]', allocator=budget)
    assert budget.live_nodes == doc.live_nodes == 5
    assert budget.live_text == len("key") + len("value") + len("list")

    doc.close()
    assert budget.live_nodes == 0
    assert budget.live_text == 0
    assert budget.peak_nodes == 5


def test_node_budget_exhausted_while_parsing() -> None:
    """
    Validates that exhaustion fails the parse at the current position and
    releases the partial tree.
    """
    allocator = sjzon.BudgetAllocator(max_nodes=2)
    with pytest.raises(sjzon.JSONDecodeError) as exc_info:
        sjzon.parse("[1, 2, 3]", allocator=allocator)

    err = exc_info.value
    assert err.msg == "Out of memory"
    assert err.pos == 4
    assert isinstance(err.__cause__, sjzon.AllocationError)
    assert sjzon.get_error_position() == 4
    assert allocator.live_nodes == 0


def test_text_budget_exhausted_while_parsing() -> None:
    allocator = sjzon.BudgetAllocator(max_text=4)
    with pytest.raises(sjzon.JSONDecodeError, match="Out of memory"):
        sjzon.parse('a = "long string"', allocator=allocator)
    assert allocator.live_text == 0
    assert allocator.live_nodes == 0


def test_exhaustion_while_building() -> None:
    """
    Validates that failed constructors leave nothing allocated behind.
    """
    allocator = sjzon.BudgetAllocator(max_nodes=3)
    doc = sjzon.Document(allocator=allocator)
    with pytest.raises(sjzon.AllocationError, match="node budget of 3"):
        doc.create_int_array([1, 2, 3])
    assert allocator.live_nodes == 0

    allocator = sjzon.BudgetAllocator(max_text=3)
    doc = sjzon.Document(allocator=allocator)
    with pytest.raises(sjzon.AllocationError, match="text budget of 3"):
        doc.create_string("four")
    assert allocator.live_nodes == 0
    assert isinstance(sjzon.AllocationError("x"), MemoryError)


def test_exhaustion_while_appending_reference() -> None:
    allocator = sjzon.BudgetAllocator(max_nodes=2)
    doc = sjzon.Document(allocator=allocator)
    array = doc.create_array()
    value = doc.create_null()
    with pytest.raises(sjzon.AllocationError):
        doc.append_reference(array, value)
    assert doc.size(array) == 0
    assert allocator.live_nodes == 2


def test_custom_allocator_sees_every_request() -> None:
    """
    Validates that a user allocator backs nodes and strings.
    """

    class Recording(sjzon.HeapAllocator):
        def __init__(self) -> None:
            self.texts: list[str] = []
            self.freed_nodes = 0

        def allocate_text(self, text: str) -> str:
            self.texts.append(text)
            return text

        def free_node(self, node: sjzon.Node) -> None:
            self.freed_nodes += 1

    allocator = Recording()
    with sjzon.parse('name = "x"', allocator=allocator) as doc:
        assert doc.allocator is allocator
    assert allocator.texts[:2] == ["x", "name"]
    assert allocator.freed_nodes == 2
