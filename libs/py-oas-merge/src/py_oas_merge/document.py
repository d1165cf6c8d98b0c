"""
In-memory model of an OpenAPI 3.x document

Only the parts the merge engine reasons about are modelled explicitly
(tags, path items, operation ids and operation tags). Everything else is
kept as plain parsed data and copied verbatim.
"""
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import MalformedDocumentError

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

PATHS = "paths"
WEBHOOKS = "webhooks"


def is_extension(key: Any) -> bool:
    return isinstance(key, str) and key.startswith("x-")


@dataclass
class Operation:
    """A single operation; every field other than operationId and tags is opaque."""
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def operation_id(self) -> Optional[str]:
        value = self.fields.get("operationId")
        return value if isinstance(value, str) and value else None

    @operation_id.setter
    def operation_id(self, value: Optional[str]):
        if value is None:
            self.fields.pop("operationId", None)
        else:
            self.fields["operationId"] = value

    @property
    def tags(self) -> List[str]:
        tags = self.fields.get("tags")
        return tags if isinstance(tags, list) else []

    @tags.setter
    def tags(self, value: List[str]):
        if value or "tags" in self.fields:
            self.fields["tags"] = list(value)

    @property
    def servers(self) -> List[Dict[str, Any]]:
        return self.fields.get("servers") or []

    @servers.setter
    def servers(self, value: List[Dict[str, Any]]):
        self.fields["servers"] = value

    @classmethod
    def from_dict(cls, data: Any, where: str) -> "Operation":
        if not isinstance(data, dict):
            raise MalformedDocumentError(f"operation at {where} is not a mapping")
        return cls(fields=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return self.fields


@dataclass
class PathItem:
    operations: Dict[str, Operation] = field(default_factory=dict)
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: List[Any] = field(default_factory=list)
    servers: List[Dict[str, Any]] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)
    ref: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None and not self.operations

    @classmethod
    def from_dict(cls, data: Any, where: str) -> "PathItem":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise MalformedDocumentError(f"path item {where} is not a mapping")

        item = cls()
        for key, value in data.items():
            if key in HTTP_METHODS:
                item.operations[key] = Operation.from_dict(value, f"{where} {key}")
            elif key == "$ref":
                item.ref = value
            elif key == "summary":
                item.summary = value
            elif key == "description":
                item.description = value
            elif key == "parameters":
                item.parameters = _expect_mappings(value, f"{where} parameters")
            elif key == "servers":
                item.servers = _expect_mappings(value, f"{where} servers")
            elif is_extension(key):
                item.extensions[key] = value
            else:
                item.extra[key] = value
        return item

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.ref is not None:
            out["$ref"] = self.ref
        if self.summary is not None:
            out["summary"] = self.summary
        if self.description is not None:
            out["description"] = self.description
        for method, op in self.operations.items():
            out[method] = op.to_dict()
        if self.servers:
            out["servers"] = self.servers
        if self.parameters:
            out["parameters"] = self.parameters
        out.update(self.extra)
        out.update(self.extensions)
        return out


@dataclass
class Tag:
    name: str
    summary: Optional[str] = None
    description: Optional[str] = None
    parent: Optional[str] = None
    kind: Optional[str] = None
    external_docs: Optional[Dict[str, Any]] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Tag":
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise MalformedDocumentError(f"tag {data!r} has no name")
        tag = cls(name=data["name"])
        for key, value in data.items():
            if key == "name":
                continue
            elif key == "summary":
                tag.summary = value
            elif key == "description":
                tag.description = value
            elif key == "parent":
                tag.parent = value
            elif key == "kind":
                tag.kind = value
            elif key == "externalDocs":
                tag.external_docs = value
            elif is_extension(key):
                tag.extensions[key] = value
            else:
                tag.extra[key] = value
        return tag

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        if self.summary is not None:
            out["summary"] = self.summary
        if self.description is not None:
            out["description"] = self.description
        if self.parent is not None:
            out["parent"] = self.parent
        if self.kind is not None:
            out["kind"] = self.kind
        if self.external_docs is not None:
            out["externalDocs"] = self.external_docs
        out.update(self.extra)
        out.update(self.extensions)
        return out


@dataclass
class Document:
    """A parsed OpenAPI document.

    ``paths``, ``webhooks`` and ``components`` are ``None`` when the source
    document omits them, so that a merge of one document round-trips.
    ``components`` maps a component kind to its named entries; ``x-`` keys
    sit alongside the kinds.
    """
    openapi: str
    info: Dict[str, Any] = field(default_factory=dict)
    servers: List[Dict[str, Any]] = field(default_factory=list)
    security: Optional[List[Dict[str, List[str]]]] = None
    tags: List[Tag] = field(default_factory=list)
    paths: Optional[Dict[str, PathItem]] = None
    paths_extensions: Dict[str, Any] = field(default_factory=dict)
    webhooks: Optional[Dict[str, PathItem]] = None
    components: Optional[Dict[str, Any]] = None
    external_docs: Optional[Dict[str, Any]] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, source: Optional[str] = None) -> "Document":
        if not isinstance(data, dict):
            raise MalformedDocumentError("document is not a mapping", source)

        version = data.get("openapi")
        if version is None:
            raise MalformedDocumentError("missing openapi version", source)
        version = str(version)
        if not version.startswith("3."):
            raise MalformedDocumentError("only OpenAPI 3.x is supported", source)

        doc = cls(openapi=version)
        try:
            for key, value in data.items():
                if key == "openapi":
                    continue
                elif key == "info":
                    doc.info = value or {}
                elif key == "servers":
                    doc.servers = _expect_mappings(value, "servers")
                elif key == "security":
                    doc.security = _expect_list(value, "security")
                elif key == "tags":
                    doc.tags = [Tag.from_dict(t) for t in _expect_list(value, "tags")]
                elif key == "paths":
                    doc.paths, doc.paths_extensions = _path_items(value, "paths")
                elif key == "webhooks":
                    doc.webhooks, _ = _path_items(value, "webhooks")
                elif key == "components":
                    doc.components = _expect_mapping(value, "components")
                    for kind, entries in doc.components.items():
                        if not is_extension(kind):
                            _expect_mapping(entries, f"components.{kind}")
                elif key == "externalDocs":
                    doc.external_docs = value
                elif is_extension(key):
                    doc.extensions[key] = value
                else:
                    doc.extra[key] = value
        except MalformedDocumentError as e:
            if source and e.source is None:
                raise MalformedDocumentError(str(e), source) from e
            raise
        return doc

    def copy(self) -> "Document":
        return copy.deepcopy(self)

    def schemas(self) -> Dict[str, Any]:
        if self.components is None:
            return {}
        return self.components.get("schemas") or {}

    def path_items(self, section: str) -> Optional[Dict[str, PathItem]]:
        return self.paths if section == PATHS else self.webhooks

    def set_path_items(self, section: str, items: Dict[str, PathItem]):
        if section == PATHS:
            self.paths = items
        else:
            self.webhooks = items

    def iter_operations(self) -> Iterator[Tuple[str, str, str, Operation]]:
        """Yield (section, path, method, operation) over paths, then webhooks."""
        for section in (PATHS, WEBHOOKS):
            items = self.path_items(section) or {}
            for path, item in items.items():
                for method, op in item.operations.items():
                    yield section, path, method, op


def _expect_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedDocumentError(f"{where} is not a list")
    return value


def _expect_mappings(value: Any, where: str) -> List[Dict[str, Any]]:
    items = _expect_list(value, where)
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedDocumentError(f"{where}[{i}] is not a mapping")
    return list(items)


def _expect_mapping(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedDocumentError(f"{where} is not a mapping")
    return value


def _path_items(value: Any, where: str) -> Tuple[Dict[str, PathItem], Dict[str, Any]]:
    items: Dict[str, PathItem] = {}
    extensions: Dict[str, Any] = {}
    for key, raw in _expect_mapping(value, where).items():
        if is_extension(key):
            extensions[key] = raw
        else:
            items[key] = PathItem.from_dict(raw, f"{where}.{key}")
    return items, extensions
