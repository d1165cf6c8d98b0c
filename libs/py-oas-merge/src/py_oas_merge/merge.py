"""
Merge an ordered list of OpenAPI documents into one

The documents are folded left to right into an accumulator. Each step
merges scalar fields, servers, tags, paths, webhooks and components while
a MergeState records provenance. Two passes then run over the result:
operationId deduplication and operation tag normalization. Input order
is authoritative: on a true conflict the later document wins.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, field_validator

from .config import get_settings
from .document import PATHS, WEBHOOKS, Document
from .errors import MergeWarning
from .fields import (
    merge_components,
    merge_extensions,
    merge_openapi_version,
    merge_servers,
    set_operation_servers,
)
from .loader import load_document, load_file
from .logging import PerformanceLogger, get_logger
from .namespace import apply_namespace, collapse_equivalent_security_schemes, validate_namespaces
from .operations import deduplicate_operation_ids, merge_paths
from .sorter import dumps, format_for_path
from .state import MergeState, init_merge_state
from .tags import merge_tags, normalize_operation_tags, update_operation_tag_refs


class MergeInput(BaseModel):
    """One document to merge, with an optional namespace."""

    document: Any
    namespace: Optional[str] = None
    source: Optional[str] = None

    @field_validator("document")
    @classmethod
    def _supported_document(cls, value: Any) -> Any:
        if not isinstance(value, (Document, dict, bytes, str)):
            raise ValueError(f"unsupported document type {type(value).__name__}")
        return value


@dataclass
class MergeResult:
    document: Document
    warnings: List[MergeWarning] = field(default_factory=list)


def merge_into(
    state: MergeState,
    merged: Document,
    doc: Document,
    namespace: Optional[str],
    counter: int,
) -> List[MergeWarning]:
    """Fold ``doc`` (document number ``counter``) into ``merged`` in place."""
    warnings: List[MergeWarning] = []

    merged.openapi = merge_openapi_version(merged.openapi, doc.openapi)

    if doc.info:
        merged.info = doc.info

    merged.extensions, ext_warnings = merge_extensions(merged.extensions, doc.extensions, "#")
    warnings.extend(ext_warnings)

    servers, pushed_down = merge_servers(merged.servers, doc.servers, is_global=True)
    if pushed_down:
        set_operation_servers(merged, merged.servers)
        set_operation_servers(doc, pushed_down)
        merged.servers = []
    else:
        merged.servers = servers

    if doc.security is not None:
        merged.security = doc.security

    existing_renames, incoming_renames = merge_tags(state, merged, doc, namespace, counter)
    update_operation_tag_refs(merged, existing_renames)
    update_operation_tag_refs(doc, incoming_renames)

    warnings.extend(merge_paths(state, merged, doc, namespace, counter, PATHS))
    warnings.extend(merge_paths(state, merged, doc, namespace, counter, WEBHOOKS))

    merged.components, component_warnings = merge_components(merged.components, doc.components)
    warnings.extend(component_warnings)

    if doc.external_docs is not None:
        merged.external_docs = doc.external_docs

    merged.extra.update(doc.extra)
    return warnings


def _fold(documents: Sequence[Document], namespaces: Optional[Sequence[Optional[str]]]) -> MergeResult:
    # documents are owned by this call and get mutated
    state = MergeState()
    merged: Optional[Document] = None
    warnings: List[MergeWarning] = []

    for counter, doc in enumerate(documents, start=1):
        namespace = namespaces[counter - 1] if namespaces else None
        if namespace:
            warnings.extend(apply_namespace(doc, namespace))

        if merged is None:
            merged = doc
            init_merge_state(state, doc, namespace, counter)
            continue

        warnings.extend(merge_into(state, merged, doc, namespace, counter))

    deduplicate_operation_ids(state, merged)
    normalize_operation_tags(merged)
    warnings.extend(collapse_equivalent_security_schemes(merged))
    return MergeResult(document=merged, warnings=warnings)


def merge(documents: Sequence[Document], namespaces: Optional[Sequence[Optional[str]]] = None) -> MergeResult:
    """Merge parsed documents; ``namespaces`` parallels ``documents`` when given."""
    validate_namespaces(namespaces, len(documents))
    return _fold([doc.copy() for doc in documents], namespaces)


def merge_documents(inputs: Sequence[Union[MergeInput, dict]]) -> MergeResult:
    """Merge documents given as MergeInput (or MergeInput-shaped mappings).

    Raises InputValidationError before any work when namespace usage is
    inconsistent, and MalformedDocumentError when any input can't be loaded.
    """
    inputs = [i if isinstance(i, MergeInput) else MergeInput(**i) for i in inputs]
    namespaces = [i.namespace for i in inputs]
    validate_namespaces(namespaces, len(inputs))

    documents = [load_document(i.document, i.source) for i in inputs]
    return _fold(documents, namespaces if any(namespaces) else None)


def merge_two(merged: Document, doc: Document) -> Tuple[Document, List[MergeWarning]]:
    """Merge two documents without namespaces; the second counts as document 2."""
    merged, doc = merged.copy(), doc.copy()
    state = MergeState()
    init_merge_state(state, merged, None)
    warnings = merge_into(state, merged, doc, None, 2)
    deduplicate_operation_ids(state, merged)
    return merged, warnings


def merge_to_bytes(
    inputs: Sequence[Union[MergeInput, dict]],
    output_format: Optional[str] = None,
    sort: bool = False,
) -> bytes:
    result = merge_documents(inputs)
    return dumps(result.document, output_format or get_settings().default_format, sort=sort)


def merge_files(
    paths: Sequence[Union[str, Path]],
    output: Union[str, Path],
    namespaces: Optional[Sequence[Optional[str]]] = None,
    sort: bool = False,
) -> MergeResult:
    """Merge the files at ``paths`` and write the result to ``output``.

    The output format follows the output extension.
    """
    logger = get_logger(__name__)
    validate_namespaces(namespaces, len(paths))

    with PerformanceLogger("merge_openapi", inputs=len(paths), output=str(output)):
        documents = [load_file(p) for p in paths]
        result = _fold(documents, namespaces if namespaces and any(namespaces) else None)

        for warning in result.warnings:
            logger.warning("merge_warning", message=warning.message, location=warning.location)

        output = Path(output)
        output.write_bytes(dumps(result.document, format_for_path(output), sort=sort))

    logger.info(
        "merge_written",
        output=str(output),
        inputs=len(paths),
        warnings=len(result.warnings),
    )
    return result

