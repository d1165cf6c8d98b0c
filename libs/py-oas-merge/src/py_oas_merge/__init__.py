"""OpenAPI document merging library."""

from .document import (
    Document,
    Operation,
    PathItem,
    Tag,
)

from .errors import (
    MergeError,
    InputValidationError,
    MalformedDocumentError,
    ReferenceRewriteError,
    MergeWarning,
)

from .loader import load_document, load_file

from .merge import (
    MergeInput,
    MergeResult,
    merge,
    merge_documents,
    merge_files,
    merge_to_bytes,
    merge_two,
)

from .sorter import dumps, to_dict

from .state import disambiguating_suffix

__all__ = [
    # Document model
    "Document",
    "Operation",
    "PathItem",
    "Tag",
    "load_document",
    "load_file",

    # Errors
    "MergeError",
    "InputValidationError",
    "MalformedDocumentError",
    "ReferenceRewriteError",
    "MergeWarning",

    # Merge
    "MergeInput",
    "MergeResult",
    "merge",
    "merge_documents",
    "merge_files",
    "merge_to_bytes",
    "merge_two",
    "disambiguating_suffix",

    # Serialization
    "dumps",
    "to_dict",
]

__version__ = "0.1.0"
