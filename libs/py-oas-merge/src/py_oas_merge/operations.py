"""
Path and operation merging

Operations at the same path+method that differ only in description or
summary text are the same operation: the incoming one overwrites the
existing one. Any other difference is a conflict, resolved by forking both
operations onto fragment paths (``/pets#1``, ``/pets#svcA``) named after the
document that contributed each of them.
"""
from typing import Dict, List, Optional

from .document import PATHS, Document, PathItem
from .equivalence import is_equivalent
from .errors import MergeWarning
from .fields import merge_extensions, merge_parameters, merge_servers
from .state import MergeState, disambiguating_suffix, unique_name


def fragment_path(path: str, namespace: Optional[str], counter: int) -> str:
    return f"{path}#{disambiguating_suffix(namespace, counter)}"


def _register_item(state: MergeState, path: str, item: PathItem, namespace, counter, section):
    for method, op in item.operations.items():
        state.register_op(path, method, namespace, counter, op, section)


def _unregister_item(state: MergeState, path: str, item: PathItem, section):
    for method, op in item.operations.items():
        state.unregister_op(path, method, op, section)


def _merge_path_item_fields(merged: PathItem, item: PathItem, location: str) -> List[MergeWarning]:
    if item.summary:
        merged.summary = item.summary
    if item.description:
        merged.description = item.description
    merged.parameters = merge_parameters(merged.parameters, item.parameters)
    merged.servers, _ = merge_servers(merged.servers, item.servers, is_global=False)
    merged.extra.update(item.extra)
    merged.extensions, warnings = merge_extensions(merged.extensions, item.extensions, location)
    return warnings


def _fragment_item(items: Dict[str, PathItem], path: str, parameters: List) -> PathItem:
    fragment = items.get(path)
    if fragment is None:
        # Path-level parameters travel with the operation so {id}-style
        # templates stay declared.
        fragment = PathItem(parameters=list(parameters))
        items[path] = fragment
    return fragment


def merge_paths(
    state: MergeState,
    merged: Document,
    doc: Document,
    namespace: Optional[str],
    counter: int,
    section: str = PATHS,
) -> List[MergeWarning]:
    """Merge doc's paths (or webhooks, per ``section``) into merged."""
    warnings: List[MergeWarning] = []

    if section == PATHS:
        merged.paths_extensions, ext_warnings = merge_extensions(
            merged.paths_extensions, doc.paths_extensions, "#/paths"
        )
        warnings.extend(ext_warnings)

    incoming_items = doc.path_items(section)
    if incoming_items is None:
        return warnings

    merged_items = merged.path_items(section)
    if merged_items is None:
        merged.set_path_items(section, incoming_items)
        for path, item in incoming_items.items():
            _register_item(state, path, item, namespace, counter, section)
        return warnings

    for path, item in incoming_items.items():
        location = f"#/{section}/{path}"
        existing = merged_items.get(path)

        if existing is None:
            merged_items[path] = item
            _register_item(state, path, item, namespace, counter, section)
            continue

        if item.is_reference or existing.is_reference:
            _unregister_item(state, path, existing, section)
            merged_items[path] = item
            _register_item(state, path, item, namespace, counter, section)
            continue

        conflicts = [
            method
            for method, op in item.operations.items()
            if method in existing.operations
            and not is_equivalent(existing.operations[method].to_dict(), op.to_dict())
        ]

        for method, op in item.operations.items():
            if method in conflicts:
                continue
            if method in existing.operations:
                state.unregister_op(path, method, existing.operations[method], section)
            existing.operations[method] = op
            state.register_op(path, method, namespace, counter, op, section)

        warnings.extend(_merge_path_item_fields(existing, item, location))

        for method in conflicts:
            existing_op = existing.operations.pop(method)
            incoming_op = item.operations[method]
            owner = state.provenance(path, method, section)
            state.unregister_op(path, method, existing_op, section)

            existing_path = fragment_path(path, owner.namespace, owner.counter)
            incoming_path = fragment_path(path, namespace, counter)
            if existing_path == incoming_path:
                warnings.append(
                    MergeWarning(f"conflicting {method} operations share fragment {incoming_path}, last one wins",
                                 location)
                )

            _fragment_item(merged_items, existing_path, existing.parameters).operations[method] = existing_op
            state.register_op(existing_path, method, owner.namespace, owner.counter, existing_op, section)

            _fragment_item(merged_items, incoming_path, item.parameters).operations[method] = incoming_op
            state.register_op(incoming_path, method, namespace, counter, incoming_op, section)

        if conflicts and not existing.operations:
            del merged_items[path]

    return warnings


def deduplicate_operation_ids(state: MergeState, doc: Document):
    """Suffix every operationId that more than one surviving operation uses.

    A suffixed id that another operation already uses gets a further
    ``_<n>`` until it is unique.
    """
    duplicates = state.duplicate_operation_ids()
    if not duplicates:
        return

    taken = {op.operation_id for _, _, _, op in doc.iter_operations() if op.operation_id}
    for section, path, method, op in doc.iter_operations():
        op_id = op.operation_id
        if op_id not in duplicates:
            continue
        for position, entry in enumerate(duplicates[op_id], start=1):
            if entry.matches(section, path, method):
                new_id = unique_name(f"{op_id}_{disambiguating_suffix(entry.namespace, position)}", taken)
                taken.add(new_id)
                op.operation_id = new_id
                break
