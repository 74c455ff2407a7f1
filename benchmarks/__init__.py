"""
Benchmark suite for sjzon parsing and serialization.

Compares sjzon on strict JSON against:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

and measures sjzon alone on relaxed documents (implicit root, bare keys,
``=`` separators, no commas, comments) that the other libraries reject.
"""
