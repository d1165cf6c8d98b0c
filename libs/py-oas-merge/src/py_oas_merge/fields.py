"""
Overwrite and union rules for document fields other than tags and paths

- openapi: greatest version wins
- info, security, externalDocs: last document wins
- extensions: key-wise union, last wins on conflict
- servers: merged by URL, or pushed down onto operations when the two
  sets share no URL
- components: key-wise per kind, last wins
"""
from typing import Any, Dict, List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from .document import Document, is_extension
from .equivalence import is_equivalent
from .errors import MergeWarning


def _parse_version(value: Optional[str]) -> Optional[Version]:
    if not value:
        return None
    try:
        return Version(value)
    except InvalidVersion:
        return None


def merge_openapi_version(merged: Optional[str], incoming: Optional[str]) -> Optional[str]:
    merged_version = _parse_version(merged)
    incoming_version = _parse_version(incoming)
    if merged_version is None or (incoming_version is not None and incoming_version > merged_version):
        return incoming if incoming else merged
    return merged


def merge_extensions(
    merged: Optional[Dict[str, Any]],
    incoming: Optional[Dict[str, Any]],
    location: Optional[str] = None,
) -> Tuple[Dict[str, Any], List[MergeWarning]]:
    """Union of two extension maps; the incoming value wins on conflict."""
    if not merged:
        return dict(incoming or {}), []
    if not incoming:
        return merged, []

    warnings = []
    for name, value in incoming.items():
        if name in merged and merged[name] != value:
            warnings.append(
                MergeWarning(f"conflicting extension {name}: {merged[name]!r} != {value!r}", location)
            )
        merged[name] = value
    return merged, warnings


def merge_servers(
    merged: List[Dict[str, Any]],
    incoming: List[Dict[str, Any]],
    is_global: bool,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Merge server lists by URL.

    Returns ``(servers, pushed_down)``. For document-level (``is_global``)
    lists that share no URL, ``servers`` is empty and ``pushed_down`` holds
    the incoming servers, which then belong on operations instead.
    """
    if not merged:
        return list(incoming or []), []
    if not incoming:
        return merged, []

    merged_urls = {s.get("url") for s in merged}
    shares_url = any(s.get("url") in merged_urls for s in incoming)
    if is_global and not shares_url:
        return [], list(incoming)

    result = list(merged)
    for server in incoming:
        for i, existing in enumerate(result):
            if existing.get("url") == server.get("url"):
                result[i] = server
                break
        else:
            result.append(server)
    return result, []


def set_operation_servers(doc: Document, servers: List[Dict[str, Any]]):
    """Give every operation without its own servers (or path-level servers) ``servers``."""
    if not servers or doc.paths is None:
        return
    for item in doc.paths.values():
        if item.servers:
            continue
        for op in item.operations.values():
            if not op.servers:
                op.servers = list(servers)


def _parameter_key(param: Any) -> Any:
    if isinstance(param, dict):
        if "$ref" in param:
            return ("$ref", param["$ref"])
        return (param.get("name"), param.get("in"))
    return None


def merge_parameters(merged: List[Any], incoming: List[Any]) -> List[Any]:
    """Merge parameter lists, replacing same-named parameters in place."""
    if not merged:
        return list(incoming or [])

    result = list(merged)
    for param in incoming or []:
        key = _parameter_key(param)
        for i, existing in enumerate(result):
            if key is not None and _parameter_key(existing) == key:
                result[i] = param
                break
        else:
            result.append(param)
    return result


def merge_components(
    merged: Optional[Dict[str, Any]],
    incoming: Optional[Dict[str, Any]],
) -> Tuple[Optional[Dict[str, Any]], List[MergeWarning]]:
    if incoming is None:
        return merged, []
    if merged is None:
        return incoming, []

    warnings: List[MergeWarning] = []
    for kind, entries in incoming.items():
        if is_extension(kind):
            if kind in merged and merged[kind] != entries:
                warnings.append(MergeWarning(f"conflicting extension {kind}", "#/components"))
            merged[kind] = entries
            continue

        target = merged.setdefault(kind, {})
        if target is None:
            target = merged[kind] = {}
        for name, component in (entries or {}).items():
            if name in target:
                existing = target[name]
                if not is_equivalent(existing, component):
                    warnings.append(
                        MergeWarning(f"{kind} {name} is not equivalent across documents, last one wins",
                                     f"#/components/{kind}/{name}")
                    )
                component = _carry_extensions(existing, component)
            target[name] = component
    return merged, warnings


def _carry_extensions(existing: Any, incoming: Any) -> Any:
    """Keep extensions of an overwritten component that the winner doesn't set."""
    if not isinstance(existing, dict) or not isinstance(incoming, dict):
        return incoming
    carried = {k: v for k, v in existing.items() if is_extension(k) and k not in incoming}
    if not carried:
        return incoming
    return {**incoming, **carried}
