"""
Provenance bookkeeping shared by every step of one merge call

A MergeState remembers which input document (1-based position and
optional namespace) contributed each tag, path+method slot and
operationId currently in the accumulated document. Later documents use it
to compute disambiguating suffixes.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .document import PATHS, Document, Operation


def disambiguating_suffix(namespace: Optional[str], counter: int) -> str:
    """Return the namespace when there is one, else the 1-based counter."""
    if namespace:
        return namespace
    return str(counter)


def unique_name(candidate: str, taken: Set[str], ignore_case: bool = False) -> str:
    """Return candidate, or candidate_2, candidate_3, ... if it is taken.

    With ``ignore_case``, ``taken`` must hold lowercase names.
    """
    name, n = candidate, 2
    while (name.lower() if ignore_case else name) in taken:
        name = f"{candidate}_{n}"
        n += 1
    return name


def path_method_key(path: str, method: str, section: str = PATHS) -> str:
    key = f"{path}|{method}"
    if section != PATHS:
        return f"{section}:{key}"
    return key


@dataclass
class TagEntry:
    current_name: str
    namespace: Optional[str]
    counter: int
    suffixed: bool = False


@dataclass
class OpProvenance:
    namespace: Optional[str]
    counter: int


@dataclass
class OpIdEntry:
    path: str
    method: str
    namespace: Optional[str]
    section: str = PATHS

    def matches(self, section: str, path: str, method: str) -> bool:
        return self.section == section and self.path == path and self.method == method


@dataclass
class MergeState:
    # lowercase tag name -> every live tag sharing that key (suffixed ones included)
    tag_tracker: Dict[str, List[TagEntry]] = field(default_factory=dict)
    # "path|method" -> document that owns the slot
    op_tracker: Dict[str, OpProvenance] = field(default_factory=dict)
    # operationId -> every location using it
    op_id_tracker: Dict[str, List[OpIdEntry]] = field(default_factory=dict)

    def register_tag(self, name: str, namespace: Optional[str], counter: int, suffixed: bool = False):
        self.tag_tracker.setdefault(name.lower(), []).append(
            TagEntry(current_name=name, namespace=namespace, counter=counter, suffixed=suffixed)
        )

    def register_op(
        self,
        path: str,
        method: str,
        namespace: Optional[str],
        counter: int,
        op: Optional[Operation],
        section: str = PATHS,
    ):
        """Record that document ``counter`` now owns path+method."""
        self.op_tracker[path_method_key(path, method, section)] = OpProvenance(namespace, counter)

        op_id = op.operation_id if op is not None else None
        if not op_id:
            return
        # Drop a previous entry for the same slot so an overwrite with equal
        # content is never counted twice.
        entries = [e for e in self.op_id_tracker.get(op_id, []) if not e.matches(section, path, method)]
        entries.append(OpIdEntry(path=path, method=method, namespace=namespace, section=section))
        self.op_id_tracker[op_id] = entries

    def unregister_op(self, path: str, method: str, op: Optional[Operation], section: str = PATHS):
        """Forget path+method, e.g. when its operation moves to a fragment path."""
        self.op_tracker.pop(path_method_key(path, method, section), None)

        op_id = op.operation_id if op is not None else None
        if not op_id or op_id not in self.op_id_tracker:
            return
        self.op_id_tracker[op_id] = [
            e for e in self.op_id_tracker[op_id] if not e.matches(section, path, method)
        ]

    def provenance(self, path: str, method: str, section: str = PATHS) -> OpProvenance:
        # Slots are always registered on insert; counter 1 is the first document.
        return self.op_tracker.get(path_method_key(path, method, section), OpProvenance(None, 1))

    def duplicate_operation_ids(self) -> Dict[str, List[OpIdEntry]]:
        return {op_id: entries for op_id, entries in self.op_id_tracker.items() if len(entries) > 1}


def init_merge_state(state: MergeState, doc: Document, namespace: Optional[str], counter: int = 1):
    """Register the first document's tags and operations."""
    for tag in doc.tags:
        state.register_tag(tag.name, namespace, counter)

    for section, path, method, op in doc.iter_operations():
        state.register_op(path, method, namespace, counter, op, section)
