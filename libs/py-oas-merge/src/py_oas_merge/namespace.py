"""
Namespacing of component names

When an input carries a namespace, its components are renamed
``<namespace>_<name>`` before the merge, marked with the
``x-speakeasy-name-override`` / ``x-speakeasy-model-namespace``
extensions, and every local $ref to them is rewritten.
"""
import re
from typing import Any, Dict, Iterator, List, Optional, Sequence

import structlog

from .document import Document
from .equivalence import (
    MODEL_NAMESPACE_EXTENSION,
    NAME_OVERRIDE_EXTENSION,
    is_equivalent_ignoring_namespace,
)
from .errors import InputValidationError, MergeWarning, ReferenceRewriteError

logger = structlog.get_logger(__name__)

NAMESPACE_PATTERN = re.compile(r"^[a-zA-Z0-9_\-\.]+$")

NAMESPACED_KINDS = (
    "schemas",
    "parameters",
    "responses",
    "requestBodies",
    "headers",
    "securitySchemes",
)

Mappings = Dict[str, Dict[str, str]]


def validate_namespace(namespace: Optional[str]):
    if not namespace:
        return
    if not NAMESPACE_PATTERN.match(namespace):
        raise InputValidationError(
            f"invalid namespace {namespace!r}: must contain only alphanumeric characters "
            "(a-z, A-Z, 0-9), underscores (_), hyphens (-), and dots (.)"
        )


def validate_namespaces(namespaces: Optional[Sequence[Optional[str]]], document_count: int):
    """Reject namespace lists that don't fit the documents being merged.

    Namespacing is all-or-nothing: either every document has one or none do.
    """
    if document_count == 0:
        raise InputValidationError("no documents to merge")
    if not namespaces:
        return
    if len(namespaces) != document_count:
        raise InputValidationError(
            f"namespace count ({len(namespaces)}) must match document count ({document_count})"
        )

    for i, namespace in enumerate(namespaces):
        try:
            validate_namespace(namespace)
        except InputValidationError as e:
            raise InputValidationError(f"namespace at index {i}: {e}") from e

    named = [bool(ns) for ns in namespaces]
    if any(named) and not all(named):
        missing = [i for i, has in enumerate(named) if not has]
        raise InputValidationError(
            f"namespaces must be given for all documents or none; missing at index {missing}"
        )


def _mark(node: Any, original_name: str, namespace: str):
    if not isinstance(node, dict) or "$ref" in node:
        return
    node[NAME_OVERRIDE_EXTENSION] = original_name
    node[MODEL_NAMESPACE_EXTENSION] = namespace


def _mark_content(component: Any, original_name: str, namespace: str):
    if not isinstance(component, dict) or "$ref" in component:
        return
    for media_type in (component.get("content") or {}).values():
        if isinstance(media_type, dict):
            _mark(media_type.get("schema"), original_name, namespace)


def _mark_component(kind: str, component: Any, original_name: str, namespace: str):
    if kind == "schemas" or kind == "securitySchemes":
        _mark(component, original_name, namespace)
    elif kind in ("parameters", "headers"):
        if isinstance(component, dict) and "$ref" not in component:
            _mark(component.get("schema"), original_name, namespace)
    else:
        _mark_content(component, original_name, namespace)


def apply_namespace(doc: Document, namespace: str) -> List[MergeWarning]:
    """Prefix doc's component names with ``namespace`` and rewrite references."""
    if not namespace or doc.components is None:
        return []

    mappings: Mappings = {}
    for kind in NAMESPACED_KINDS:
        entries = doc.components.get(kind)
        if not entries:
            continue
        renamed = {}
        mappings[kind] = {}
        for name, component in entries.items():
            new_name = f"{namespace}_{name}"
            mappings[kind][name] = new_name
            _mark_component(kind, component, name, namespace)
            renamed[new_name] = component
        doc.components[kind] = renamed

    warnings = rewrite_references(doc, mappings)
    update_security_requirements(doc, mappings.get("securitySchemes", {}))
    return warnings


def _decode_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def _encode_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def rewrite_reference(ref: Any, mappings: Mappings) -> Any:
    """Return ``ref`` pointing at the renamed component, or unchanged.

    Nested pointers (``#/components/schemas/Pet/properties/name``) keep
    their tail.
    """
    if not isinstance(ref, str):
        raise ReferenceRewriteError(ref, "reference is not a string")
    if not ref.startswith("#/components/"):
        return ref

    parts = ref[len("#/"):].split("/")
    if len(parts) < 3:
        return ref
    kind, name = parts[1], _decode_segment(parts[2])
    new_name = mappings.get(kind, {}).get(name)
    if new_name is None:
        return ref
    parts[2] = _encode_segment(new_name)
    return "#/" + "/".join(parts)


def _iter_nodes(node: Any) -> Iterator[dict]:
    if isinstance(node, dict):
        yield node
        for value in node.values():
            yield from _iter_nodes(value)
    elif isinstance(node, list):
        for value in node:
            yield from _iter_nodes(value)


def _document_roots(doc: Document) -> Iterator[Any]:
    for section_items in (doc.paths, doc.webhooks):
        for item in (section_items or {}).values():
            yield item.parameters
            yield item.extra
            for op in item.operations.values():
                yield op.fields
    if doc.components is not None:
        yield doc.components


def rewrite_references(doc: Document, mappings: Mappings) -> List[MergeWarning]:
    """Rewrite every local $ref (and discriminator mapping) in doc.

    A reference that can't be rewritten is logged, recorded as a warning
    and left as it is.
    """
    if not any(mappings.values()):
        return []

    warnings = []
    for root in _document_roots(doc):
        for node in _iter_nodes(root):
            if "$ref" in node:
                try:
                    node["$ref"] = rewrite_reference(node["$ref"], mappings)
                except ReferenceRewriteError as e:
                    logger.error("reference_rewrite_failed", ref=repr(e.ref), reason=e.reason)
                    warnings.append(MergeWarning(str(e)))

            discriminator = node.get("discriminator")
            if isinstance(discriminator, dict) and isinstance(discriminator.get("mapping"), dict):
                mapping = discriminator["mapping"]
                for key, target in mapping.items():
                    if isinstance(target, str):
                        mapping[key] = rewrite_reference(target, mappings)
    return warnings


def _remap_security(requirements: Any, mapping: Dict[str, str]) -> Any:
    if not isinstance(requirements, list):
        return requirements
    remapped = []
    for requirement in requirements:
        if isinstance(requirement, dict):
            requirement = {mapping.get(k, k): v for k, v in requirement.items()}
        remapped.append(requirement)
    return remapped


def update_security_requirements(doc: Document, mapping: Dict[str, str]):
    """Rename security requirement keys at document and operation level."""
    if not mapping:
        return
    if doc.security is not None:
        doc.security = _remap_security(doc.security, mapping)
    for _, _, _, op in doc.iter_operations():
        if "security" in op.fields:
            op.fields["security"] = _remap_security(op.fields["security"], mapping)


def collapse_equivalent_security_schemes(doc: Document) -> List[MergeWarning]:
    """Fold namespaced security schemes back into one when they are equivalent.

    Schemes are grouped by their original name; a group collapses only when
    every member matches ignoring descriptive text and the namespacing
    extensions. The last member wins.
    """
    if doc.components is None or not doc.components.get("securitySchemes"):
        return []
    schemes = doc.components["securitySchemes"]

    groups: Dict[str, List[str]] = {}
    for name, scheme in schemes.items():
        if not isinstance(scheme, dict) or "$ref" in scheme:
            continue
        original = scheme.get(NAME_OVERRIDE_EXTENSION)
        if isinstance(original, str) and original:
            groups.setdefault(original, []).append(name)

    renames: Dict[str, str] = {}
    winners = set()
    for original, names in groups.items():
        if len(names) < 2:
            continue
        first = schemes[names[0]]
        if not all(is_equivalent_ignoring_namespace(first, schemes[n]) for n in names[1:]):
            continue
        for name in names:
            renames[name] = original
        winners.add(names[-1])

    if not renames:
        return []

    collapsed = {}
    for name, scheme in schemes.items():
        if name in renames and name not in winners:
            continue
        if name in winners:
            scheme = {k: v for k, v in scheme.items()
                      if k not in (NAME_OVERRIDE_EXTENSION, MODEL_NAMESPACE_EXTENSION)}
            name = renames[name]
        collapsed[name] = scheme
    doc.components["securitySchemes"] = collapsed

    update_security_requirements(doc, renames)
    return rewrite_references(doc, {"securitySchemes": renames})
