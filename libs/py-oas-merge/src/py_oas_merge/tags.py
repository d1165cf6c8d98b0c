"""
Tag merging

Tags are deduplicated case-insensitively. Two tags with the same
lowercase name and equivalent content collapse into one (the later one
wins, casing included); tags whose content differs are both suffixed with
their document's disambiguating suffix.
"""
from typing import Dict, List, Optional, Tuple

from .document import Document, Tag
from .equivalence import is_equivalent
from .state import MergeState, TagEntry, disambiguating_suffix, unique_name

Renames = Dict[str, str]


def tags_content_equal(a: Tag, b: Tag) -> bool:
    """Compare two tags ignoring name, description and summary."""
    return (
        a.parent == b.parent
        and a.kind == b.kind
        and is_equivalent(a.external_docs, b.external_docs)
        and a.extensions == b.extensions
    )


def _live_entries(merged: Document, entries: List[TagEntry]) -> List[Tuple[int, int]]:
    """Pair each tracker entry with the index of its tag in merged.tags."""
    positions = {tag.name: i for i, tag in enumerate(merged.tags)}
    return [(ei, positions[e.current_name]) for ei, e in enumerate(entries) if e.current_name in positions]


def merge_tags(
    state: MergeState,
    merged: Document,
    doc: Document,
    namespace: Optional[str],
    counter: int,
) -> Tuple[Renames, Renames]:
    """Fold doc's tags into merged.

    Returns ``(existing_renames, incoming_renames)``: old -> new tag names
    to apply to operations already in ``merged`` and to operations of
    ``doc`` respectively.
    """
    existing_renames: Renames = {}
    incoming_renames: Renames = {}

    for tag in doc.tags:
        key = tag.name.lower()
        entries = state.tag_tracker.get(key)
        live = _live_entries(merged, entries) if entries else []
        taken = {t.name.lower() for t in merged.tags}

        if not live:
            if key in taken:
                # The name is already used by a suffixed tag from another key.
                original = tag.name
                tag.name = unique_name(f"{original}_{disambiguating_suffix(namespace, counter)}", taken, True)
                incoming_renames[original] = tag.name
                merged.tags.append(tag)
                state.tag_tracker.setdefault(key, []).append(TagEntry(tag.name, namespace, counter, suffixed=True))
                continue
            merged.tags.append(tag)
            state.register_tag(tag.name, namespace, counter)
            continue

        match = next(((ei, ti) for ei, ti in live if tags_content_equal(merged.tags[ti], tag)), None)
        if match is not None:
            entry_idx, tag_idx = match
            entry = entries[entry_idx]
            existing = merged.tags[tag_idx]
            if entry.suffixed:
                # The slot already carries a disambiguated name; the newcomer takes it over.
                if tag.name != existing.name:
                    incoming_renames[tag.name] = existing.name
                tag.name = existing.name
            elif tag.name != existing.name:
                existing_renames[existing.name] = tag.name
            merged.tags[tag_idx] = tag
            entries[entry_idx] = TagEntry(tag.name, namespace, counter, entry.suffixed)
            continue

        entry_idx, tag_idx = live[0]
        entry = entries[entry_idx]
        existing = merged.tags[tag_idx]
        if not entry.suffixed:
            renamed = unique_name(
                f"{existing.name}_{disambiguating_suffix(entry.namespace, entry.counter)}", taken, True
            )
            existing_renames[existing.name] = renamed
            existing.name = renamed
            entry.current_name = renamed
            entry.suffixed = True
            taken.add(renamed.lower())

        original = tag.name
        tag.name = unique_name(f"{original}_{disambiguating_suffix(namespace, counter)}", taken, True)
        incoming_renames[original] = tag.name
        merged.tags.append(tag)
        entries.append(TagEntry(tag.name, namespace, counter, suffixed=True))

    return existing_renames, incoming_renames


def update_operation_tag_refs(doc: Document, renames: Renames):
    """Rewrite operation-level tag references according to ``renames``.

    References match the renamed tag in any casing.
    """
    if not renames:
        return
    lowered = {old.lower(): new for old, new in renames.items()}
    for _, _, _, op in doc.iter_operations():
        if op.tags:
            op.tags = [lowered.get(t.lower(), t) if isinstance(t, str) else t for t in op.tags]


def normalize_operation_tags(doc: Document):
    """Make every operation use one casing per tag.

    Declared tags define the canonical casing; for undeclared tags the first
    casing met while walking operations wins.
    """
    canonical: Dict[str, str] = {}
    for tag in doc.tags:
        canonical.setdefault(tag.name.lower(), tag.name)

    for _, _, _, op in doc.iter_operations():
        if not op.tags:
            continue
        normalized = []
        for name in op.tags:
            if isinstance(name, str):
                name = canonical.setdefault(name.lower(), name)
            if name not in normalized:
                normalized.append(name)
        op.tags = normalized
