"""Path parameter patterns.

``:name`` segments use the ``str`` pattern. ``{name:type}`` segments pick
one of the patterns below. Captured values always reach handlers as
strings; the type only narrows what matches.
"""

CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}
