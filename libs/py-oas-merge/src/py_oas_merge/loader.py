"""Turn raw YAML or JSON into the document model."""

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .document import Document
from .errors import MalformedDocumentError


def _stringify_keys(node: Any) -> Any:
    # YAML parses `200:` as an int key; OpenAPI keys are always strings.
    if isinstance(node, dict):
        return {str(k): _stringify_keys(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_stringify_keys(v) for v in node]
    return node


def parse(data: Union[bytes, str], source: Optional[str] = None) -> Any:
    """Parse JSON, falling back to YAML."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f"not valid UTF-8: {e}", source) from e

    try:
        return json.loads(data)
    except ValueError:
        pass

    try:
        return yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise MalformedDocumentError(f"input is neither valid JSON nor YAML: {e}", source) from e


def load_document(data: Union[bytes, str, dict, Document], source: Optional[str] = None) -> Document:
    """Load a document from raw bytes, text, an already parsed mapping, or a Document.

    The result never aliases the caller's data.
    """
    if isinstance(data, Document):
        return data.copy()
    if isinstance(data, (bytes, str)):
        data = parse(data, source)
    elif not isinstance(data, dict):
        raise MalformedDocumentError(f"unsupported document type {type(data).__name__}", source)
    return Document.from_dict(_stringify_keys(data), source)


def load_file(path: Union[str, Path]) -> Document:
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise MalformedDocumentError(f"cannot read file: {e}", str(path)) from e
    return load_document(raw, str(path))
