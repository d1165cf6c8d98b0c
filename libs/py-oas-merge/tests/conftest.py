import textwrap

import pytest

from py_oas_merge import MergeInput, merge_documents, to_dict


def make_inputs(docs, namespaces=None):
    namespaces = namespaces or [None] * len(docs)
    return [
        MergeInput(document=textwrap.dedent(doc), namespace=namespace, source=f"doc{i}")
        for i, (doc, namespace) in enumerate(zip(docs, namespaces), start=1)
    ]


@pytest.fixture
def merge_yaml():
    """Merge inline YAML documents and return the MergeResult"""
    def _merge(*docs, namespaces=None):
        return merge_documents(make_inputs(docs, namespaces))
    return _merge


@pytest.fixture
def merged_dict(merge_yaml):
    """Merge inline YAML documents and return the output as plain data"""
    def _merge(*docs, namespaces=None):
        return to_dict(merge_yaml(*docs, namespaces=namespaces).document)
    return _merge
