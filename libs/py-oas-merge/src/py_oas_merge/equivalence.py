"""Content equivalence that ignores free-text documentation."""

from typing import Any, Iterable

DESCRIPTIVE_FIELDS = frozenset(("description", "summary"))

NAME_OVERRIDE_EXTENSION = "x-speakeasy-name-override"
MODEL_NAMESPACE_EXTENSION = "x-speakeasy-model-namespace"
NAMESPACE_EXTENSIONS = frozenset((NAME_OVERRIDE_EXTENSION, MODEL_NAMESPACE_EXTENSION))


def strip_fields(node: Any, fields: Iterable[str], text_only: bool = False) -> Any:
    """Return a copy of ``node`` with ``fields`` removed from every mapping.

    With ``text_only`` a key is dropped only when its value is a string, so a
    schema property that happens to be called ``description`` still counts.
    """
    fields = frozenset(fields)
    if isinstance(node, dict):
        return {
            k: strip_fields(v, fields, text_only)
            for k, v in node.items()
            if not (k in fields and (not text_only or isinstance(v, str)))
        }
    if isinstance(node, list):
        return [strip_fields(v, fields, text_only) for v in node]
    return node


def strip_descriptive_fields(node: Any) -> Any:
    return strip_fields(node, DESCRIPTIVE_FIELDS, text_only=True)


def is_equivalent(a: Any, b: Any) -> bool:
    """True when a and b differ at most in description/summary text."""
    if a is None or b is None:
        return a is b
    return strip_descriptive_fields(a) == strip_descriptive_fields(b)


def is_equivalent_ignoring_namespace(a: Any, b: Any) -> bool:
    """Like is_equivalent, also ignoring the namespacing extensions."""
    if a is None or b is None:
        return a is b
    a = strip_fields(strip_descriptive_fields(a), NAMESPACE_EXTENSIONS)
    b = strip_fields(strip_descriptive_fields(b), NAMESPACE_EXTENSIONS)
    return a == b
