"""
Deterministic serialization of merged documents

Top-level keys are always written in the same order. Below that the
merge preserves input order, which is itself deterministic for a given
input list. ``sort=True`` additionally orders ``paths``/``webhooks`` by key
and every mapping under ``components`` alphabetically.
"""
import json
from typing import Any, Dict

import yaml

from .document import Document, PathItem

YAML = "yaml"
JSON = "json"


class _NoAliasDumper(yaml.SafeDumper):
    # Shared parameter and server objects must be written out in full.
    def ignore_aliases(self, data):
        return True


def _sort_recursive(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _sort_recursive(node[k]) for k in sorted(node, key=str)}
    if isinstance(node, list):
        return [_sort_recursive(v) for v in node]
    return node


def _path_items_dict(items: Dict[str, PathItem], sort: bool) -> Dict[str, Any]:
    keys = sorted(items) if sort else list(items)
    return {k: items[k].to_dict() for k in keys}


def to_dict(doc: Document, sort: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {"openapi": doc.openapi, "info": doc.info}
    if "jsonSchemaDialect" in doc.extra:
        out["jsonSchemaDialect"] = doc.extra["jsonSchemaDialect"]
    if doc.servers:
        out["servers"] = doc.servers
    if doc.security is not None:
        out["security"] = doc.security
    if doc.tags:
        out["tags"] = [tag.to_dict() for tag in doc.tags]
    if doc.paths is not None or doc.paths_extensions:
        paths = _path_items_dict(doc.paths or {}, sort)
        paths.update(doc.paths_extensions)
        out["paths"] = paths
    if doc.webhooks is not None:
        out["webhooks"] = _path_items_dict(doc.webhooks, sort)
    if doc.components is not None:
        out["components"] = _sort_recursive(doc.components) if sort else doc.components
    if doc.external_docs is not None:
        out["externalDocs"] = doc.external_docs
    for key, value in doc.extra.items():
        out.setdefault(key, value)
    out.update(doc.extensions)
    return out


def dumps(doc: Document, output_format: str = YAML, sort: bool = False) -> bytes:
    data = to_dict(doc, sort=sort)
    if output_format == YAML:
        text = yaml.dump(data, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True, default_flow_style=False)
    elif output_format == JSON:
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"
    else:
        raise ValueError(f"unsupported output format: {output_format}")
    return text.encode("utf-8")


def format_for_path(path: str) -> str:
    """YAML for .yaml/.yml outputs, JSON otherwise."""
    return YAML if str(path).lower().endswith((".yaml", ".yml")) else JSON
