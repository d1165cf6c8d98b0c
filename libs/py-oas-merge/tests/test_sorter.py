import json

import yaml

from py_oas_merge import Document, dumps, to_dict
from py_oas_merge.sorter import format_for_path


def make_doc():
    return Document.from_dict({
        "x-top": True,
        "components": {"schemas": {"B": {"type": "object"}, "A": {"type": "string"}}},
        "paths": {"/z": {"get": {}}, "/a": {"get": {}}},
        "tags": [{"name": "t"}],
        "info": {"title": "T"},
        "openapi": "3.1.0",
        "servers": [{"url": "https://example.com"}],
    })


def test_top_level_key_order():
    assert list(to_dict(make_doc())) == [
        "openapi", "info", "servers", "tags", "paths", "components", "x-top",
    ]


def test_insertion_order_kept_unless_sorted():
    doc = make_doc()
    assert list(to_dict(doc)["paths"]) == ["/z", "/a"]

    data = to_dict(doc, sort=True)
    assert list(data["paths"]) == ["/a", "/z"]
    assert list(data["components"]["schemas"]) == ["A", "B"]


def test_shared_objects_written_without_aliases():
    server = {"url": "https://example.com"}
    doc = Document.from_dict({
        "openapi": "3.1.0",
        "paths": {
            "/a": {"get": {"servers": [server]}},
            "/b": {"get": {"servers": [server]}},
        },
    })
    out = dumps(doc).decode()
    assert "&id" not in out and "*id" not in out
    assert yaml.safe_load(out)["paths"]["/b"]["get"]["servers"] == [server]


def test_json_output():
    assert json.loads(dumps(make_doc(), "json"))["openapi"] == "3.1.0"


def test_format_for_path():
    assert format_for_path("out.yaml") == "yaml"
    assert format_for_path("OUT.YML") == "yaml"
    assert format_for_path("out.json") == "json"
