"""
Pytest configuration and shared fixtures for sjzon tests.

Provides immutable test data fixtures and a helper that flattens a parsed
tree into builtin Python values for comparison.
"""

from dataclasses import dataclass
from typing import Any

import pytest

import sjzon
from sjzon import Document
from sjzon import Handle
from sjzon import Kind


@dataclass(frozen=True)
class JsonTestCase:
    """
    Immutable container for parser test case data.

    Holds test input and expected behavior for consistent test execution.
    """

    description: str
    input_data: str
    should_fail: bool = False
    expected_output: Any = None
    skip_reason: str = ""


def to_python(doc: Document, handle: Handle | None = None) -> Any:
    """Converts a subtree into None/bool/float/str/list/dict values."""
    if handle is None:
        handle = doc.root
    assert handle is not None

    kind = doc.kind(handle)
    if kind is Kind.NULL:
        return None
    if kind in (Kind.TRUE, Kind.FALSE):
        return doc.as_bool(handle)
    if kind is Kind.NUMBER:
        return doc.as_double(handle)
    if kind is Kind.STRING:
        return doc.as_string(handle)
    if kind is Kind.ARRAY:
        return [to_python(doc, child) for child in doc.children(handle)]
    return {
        doc.member_name(child): to_python(doc, child)
        for child in doc.children(handle)
    }


def member_names(doc: Document, handle: Handle | None = None) -> list[Any]:
    """Member names of an object in child order."""
    if handle is None:
        handle = doc.root
    assert handle is not None
    return [doc.member_name(child) for child in doc.children(handle)]


@pytest.fixture
def json_pass_cases() -> list[JsonTestCase]:
    """
    Provides strict JSON documents, which are a subset of the relaxed
    grammar and must parse unchanged.
    """
    return [
        JsonTestCase(
            description="pass1.json - complex nested structure",
            input_data="""[
    "JSON Test Pattern pass1",
    {"object with 1 member":["array with 1 element"]},
    {},
    [],
    -42,
    true,
    false,
    null,
    {
        "integer": 1234567890,
        "real": -9876.543210,
        "e": 0.123456789e-12,
        "E": 1.234567890E+34,
        "":  23456789012E66,
        "zero": 0,
        "one": 1,
        "space": " ",
        "quote": "\\"",
        "backslash": "\\\\",
        "controls": "\\b\\f\\n\\r\\t",
        "slash": "/ & \\/",
        "alpha": "abcdefghijklmnopqrstuvwyz",
        "ALPHA": "ABCDEFGHIJKLMNOPQRSTUVWYZ",
        "digit": "0123456789",
        "0123456789": "digit",
        "special": "`1~!@#$%^&*()_+-={':[,]}|;.</>?",
        "hex": "\\u0123\\u4567\\u89AB\\uCDEF\\uabcd\\uef4A",
        "true": true,
        "false": false,
        "null": null,
        "array":[  ],
        "object":{  },
        "address": "50 St. James Street",
        "url": "https://www.JSON.org/",
        "comment": "// /* <!-- --",
        "# -- --> */": " ",
        " s p a c e d " :[1,2 , 3

,

4 , 5        ,          6           ,7        ],"compact":[1,2,3,4,5,6,7],
        "jsontext": "{\\"object with 1 member\\":[\\"array with 1 element\\"]}"
    }
]""",
        ),
        JsonTestCase(
            description="pass2.json - deep nesting",
            input_data='[[[[[[[[[[[[[[[[[[["Not too deep"]]]]]]]]]]]]]]]]]]]',
        ),
        JsonTestCase(
            description="pass3.json - simple object",
            input_data='{"JSON Test Pattern pass3": {"The outermost value": "must be an object or array.", "In this test": "It is an object."}}',
        ),
    ]


@pytest.fixture
def relaxed_pass_cases() -> list[JsonTestCase]:
    """
    Provides documents using the relaxed extensions and their builtin
    equivalents.
    """
    return [
        JsonTestCase("implicit object", "a=1 b=2", False, {"a": 1, "b": 2}),
        JsonTestCase(
            "implicit object with colons and commas",
            'name: "x", size: 3',
            False,
            {"name": "x", "size": 3},
        ),
        JsonTestCase("array without commas", "[1 2 3]", False, [1, 2, 3]),
        JsonTestCase(
            "object without commas", "{a:1 b:2}", False, {"a": 1, "b": 2}
        ),
        JsonTestCase(
            "equals separator", '{ name = "x" }', False, {"name": "x"}
        ),
        JsonTestCase(
            "line comment", "{ // comment\n a:1 }", False, {"a": 1}
        ),
        JsonTestCase("block comment", "{ /* c */ a:1 }", False, {"a": 1}),
        JsonTestCase(
            "comments everywhere",
            "// header\n/* block */ a /* x */ = /* y */ [1, /* z */ 2] // end",
            False,
            {"a": [1, 2]},
        ),
        JsonTestCase(
            "nested implicit values",
            "settings = { volume = 0.5 muted = false } tags = [\"a\" \"b\"]",
            False,
            {"settings": {"volume": 0.5, "muted": False}, "tags": ["a", "b"]},
        ),
        JsonTestCase(
            "identifier with digits and underscores",
            "_key_2 = null",
            False,
            {"_key_2": None},
        ),
        JsonTestCase("stray closing brace", "a=1 }", False, {"a": 1}),
        JsonTestCase("empty implicit object", "}", False, {}),
    ]


@pytest.fixture
def basic_json_values() -> list[JsonTestCase]:
    """
    Provides basic values wrapped in an array, since a bare scalar at the
    top level is read as the start of an implicit object.
    """
    return [
        JsonTestCase("null value", "[null]", False, [None]),
        JsonTestCase("true boolean", "[true]", False, [True]),
        JsonTestCase("false boolean", "[false]", False, [False]),
        JsonTestCase("integer", "[42]", False, [42]),
        JsonTestCase("negative integer", "[-17]", False, [-17]),
        JsonTestCase("float", "[3.14]", False, [3.14]),
        JsonTestCase("empty string", '[""]', False, [""]),
        JsonTestCase("simple string", '["hello"]', False, ["hello"]),
        JsonTestCase("empty array", "[]", False, []),
        JsonTestCase("empty object", "{}", False, {}),
        JsonTestCase("simple array", "[1, 2, 3]", False, [1, 2, 3]),
        JsonTestCase(
            "simple object", '{"key": "value"}', False, {"key": "value"}
        ),
        JsonTestCase("bare scalar", "42", True),
    ]


@pytest.fixture
def budget() -> sjzon.BudgetAllocator:
    """An allocator that only counts until a test sets a limit."""
    return sjzon.BudgetAllocator()
