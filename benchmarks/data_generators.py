"""
Test data generators for parsing benchmarks.

Every generator returns a builtin value tree; ``generate_test_data`` renders
it as strict JSON and ``generate_relaxed_data`` as the relaxed dialect:
- Different sizes (small settings file, large scene description)
- Different shapes (flat/nested/mixed arrays)
- String-heavy content with escape sequences
"""

import json
import random
import string
from typing import Any

_ESCAPE_PROBABILITY = 0.3
_IDENTIFIER_START = string.ascii_letters + "_"


def generate_test_data(data_type: str) -> str:
    """Generates strict JSON text of the given shape."""
    return json.dumps(_build(data_type))


def generate_relaxed_data(data_type: str) -> str:
    """Generates relaxed text of the given shape; objects become implicit."""
    data = _build(data_type)
    if isinstance(data, dict):
        return "// generated\n" + _relaxed_members(data, 0)
    return _relaxed(data, 0)


def _build(data_type: str) -> Any:
    generators = {
        "small_object": _small_settings,
        "large_object": _large_scene,
        "mixed_array": _mixed_array,
        "nested_structure": _nested_structure,
        "string_heavy": _string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type]()


def _relaxed(value: Any, depth: int) -> str:
    if isinstance(value, dict):
        return "{\n" + _relaxed_members(value, depth + 1) + "\t" * depth + "}"
    if isinstance(value, list):
        return "[" + " ".join(_relaxed(item, depth) for item in value) + "]"
    return json.dumps(value)


def _relaxed_members(data: dict[str, Any], depth: int) -> str:
    indent = "\t" * depth
    lines = []
    for key, value in data.items():
        name = key if _is_identifier(key) else json.dumps(key)
        lines.append(f"{indent}{name} = {_relaxed(value, depth)}\n")
    return "".join(lines)


def _is_identifier(key: str) -> bool:
    return (
        bool(key)
        and key[0] in _IDENTIFIER_START
        and all(c.isascii() and (c.isalnum() or c == "_") for c in key)
    )


def _small_settings() -> dict[str, Any]:
    """A small settings document (< 1KB)."""
    return {
        "version": 3,
        "title": "Main Menu",
        "fullscreen": True,
        "volume": 0.75,
        "resolution": [1920, 1080],
        "controls": {"invert_y": False, "sensitivity": 1.25},
    }


def _large_scene() -> dict[str, Any]:
    """A scene description (> 10KB) with many nodes and materials."""
    return {
        "scene_id": random.randint(1000000, 9999999),
        "name": _random_string(16),
        "camera": {
            "position": [_coord(), _coord(), _coord()],
            "fov": round(random.uniform(40.0, 90.0), 1),
            "clip": {"near": 0.1, "far": 5000.0},
        },
        "materials": [
            {
                "name": f"mat_{i:03d}",
                "color": [round(random.random(), 3) for _ in range(4)],
                "roughness": round(random.random(), 2),
                "texture": f"textures/{_random_string(10)}.dds",
            }
            for i in range(40)
        ],
        "objects": [
            {
                "id": i,
                "class": random.choice(["mesh", "light", "trigger", "decal"]),
                "position": [_coord(), _coord(), _coord()],
                "rotation": [round(random.uniform(-1, 1), 4) for _ in range(4)],
                "scale": round(random.uniform(0.5, 2.0), 2),
                "visible": random.choice([True, False]),
                "parent": random.choice([None, random.randint(0, 99)]),
            }
            for i in range(60)
        ],
    }


def _mixed_array() -> list[Any]:
    """A large array with mixed value types."""
    pick = [
        lambda i: random.randint(-1000, 1000),
        lambda i: round(random.uniform(-100.0, 100.0), 3),
        lambda i: _random_string(random.randint(5, 30)),
        lambda i: random.choice([True, False]),
        lambda i: None,
        lambda i: {"index": i, "tag": _random_string(10)},
    ]
    return [random.choice(pick)(i) for i in range(200)]


def _nested_structure() -> dict[str, Any]:
    """A deeply nested structure."""

    def node(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"leaf": _random_string(10)}
        return {
            "depth": depth,
            "label": _random_string(15),
            "children": [node(depth - 1) for _ in range(3)],
            "next": node(depth - 1),
        }

    return node(7)


def _string_heavy() -> dict[str, Any]:
    """Many strings containing characters that need escaping."""

    def escaped_string() -> str:
        chars = []
        for _ in range(50):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(random.choice('"\\/\b\f\n\r\t'))
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    return {
        "lines": [escaped_string() for _ in range(100)],
        "localized": [
            chr(random.randint(0x00C0, 0x04FF)) * 8 for _ in range(50)
        ],
        "paths": {
            f"asset_{i}": f"C:\\Assets\\{_random_string(8)}\\mesh_{i}.dae"
            for i in range(20)
        },
    }


def _coord() -> float:
    return round(random.uniform(-500.0, 500.0), 3)


def _random_string(length: int) -> str:
    return "".join(random.choices(string.ascii_letters, k=length))
