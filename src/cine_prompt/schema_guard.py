"""Schema complexity guard for Gemini structured output.

Gemini rejects response schemas that nest too deeply, declare too many
properties, or carry oversized enums, and the API error it returns does
not say which limit was hit. Pydantic emits nested models as ``$defs``
referenced through ``$ref``, so every check here follows references.
"""

from __future__ import annotations


class SchemaComplexityError(ValueError):
    """Raised when a JSON schema exceeds Gemini's structured output limits."""


def check_schema_complexity(
    schema: dict,
    *,
    max_depth: int = 5,
    max_properties: int = 50,
    max_enum_size: int = 20,
) -> None:
    """Validate schema complexity against Gemini's structured output limits.

    Raises:
        SchemaComplexityError: If any limit is exceeded.
    """
    defs = schema.get("$defs", {})

    depth = _measure_depth(schema, defs)
    if depth > max_depth:
        raise SchemaComplexityError(
            f"Schema depth {depth} exceeds limit {max_depth}. Flatten nested objects."
        )

    count = _count_properties(schema, defs)
    if count > max_properties:
        raise SchemaComplexityError(
            f"Schema has {count} properties, exceeds limit {max_properties}."
        )

    for node in _walk(schema, defs):
        if len(node.get("enum", ())) > max_enum_size:
            raise SchemaComplexityError(
                f"Enum has {len(node['enum'])} values, exceeds limit {max_enum_size}."
            )


def _resolve(node: dict, defs: dict, seen: frozenset[str]) -> tuple[dict, frozenset[str]]:
    """Follow a local ``#/$defs/Name`` reference; cycles resolve to an empty node."""
    ref = node.get("$ref")
    if not ref:
        return node, seen
    name = ref.rsplit("/", 1)[-1]
    if name in seen or name not in defs:
        return {}, seen
    return defs[name], seen | {name}


def _children(node: dict) -> list[tuple[dict, int]]:
    """Sub-schemas of *node* with the depth increment each contributes."""
    out: list[tuple[dict, int]] = [(p, 1) for p in node.get("properties", {}).values()]
    if isinstance(node.get("items"), dict):
        out.append((node["items"], 1))
    for key in ("allOf", "anyOf", "oneOf"):
        out.extend((sub, 0) for sub in node.get(key, []))
    return out


def _measure_depth(
    node: dict, defs: dict, current: int = 0, seen: frozenset[str] = frozenset()
) -> int:
    node, seen = _resolve(node, defs, seen)
    deepest = current
    for child, step in _children(node):
        deepest = max(deepest, _measure_depth(child, defs, current + step, seen))
    return deepest


def _count_properties(node: dict, defs: dict, seen: frozenset[str] = frozenset()) -> int:
    node, seen = _resolve(node, defs, seen)
    count = len(node.get("properties", {}))
    for child, _ in _children(node):
        count += _count_properties(child, defs, seen)
    return count


def _walk(node: dict, defs: dict, seen: frozenset[str] = frozenset()):
    node, seen = _resolve(node, defs, seen)
    yield node
    for child, _ in _children(node):
        yield from _walk(child, defs, seen)
