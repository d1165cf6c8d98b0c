from py_oas_merge.document import Document, Operation
from py_oas_merge.state import MergeState, disambiguating_suffix, path_method_key, unique_name


def op_ids(data):
    return {
        (path, method): op.get("operationId")
        for path, item in data.get("paths", {}).items()
        for method, op in item.items()
        if isinstance(op, dict) and method in ("get", "put", "post", "delete", "patch")
    }


def test_same_path_method_same_content_last_wins(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              responses:
                "200":
                  description: OK
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              responses:
                "200":
                  description: OK
        """,
    )
    assert list(data["paths"]) == ["/pets"]


def test_same_path_different_methods_merge(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              responses:
                "200":
                  description: OK
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            post:
              responses:
                "201":
                  description: Created
        """,
    )
    assert list(data["paths"]) == ["/pets"]
    assert list(data["paths"]["/pets"]) == ["get", "post"]


def test_conflict_forks_onto_positional_fragments(merged_dict):
    """Different operationIds on one path+method fork into path#1 and path#2"""
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPets
              responses:
                "200":
                  description: List all pets
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listAnimals
              responses:
                "200":
                  description: List all animals
        """,
    )
    assert op_ids(data) == {
        ("/pets#1", "get"): "listPets",
        ("/pets#2", "get"): "listAnimals",
    }
    assert "/pets" not in data["paths"]


def test_description_only_difference_keeps_single_path(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              summary: v1
              responses:
                "200":
                  description: List pets v1
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              summary: v2
              responses:
                "200":
                  description: List pets v2
        """,
        namespaces=["v1", "v2"],
    )
    assert list(data["paths"]) == ["/pets"]
    get = data["paths"]["/pets"]["get"]
    assert get["summary"] == "v2"
    assert get["responses"]["200"]["description"] == "List pets v2"


def test_conflict_forks_onto_namespace_fragments(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPetsV1
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPetsV2
        """,
        namespaces=["v1", "v2"],
    )
    assert op_ids(data) == {
        ("/pets#v1", "get"): "listPetsV1",
        ("/pets#v2", "get"): "listPetsV2",
    }


def test_fragment_suffix_matches_contributing_document(merged_dict):
    """The existing side's suffix is the document that contributed it, not 1"""
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /cats:
            get:
              operationId: listCats
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPetsV2
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPetsV3
        """,
    )
    assert op_ids(data) == {
        ("/cats", "get"): "listCats",
        ("/pets#2", "get"): "listPetsV2",
        ("/pets#3", "get"): "listPetsV3",
    }


def test_mixed_conflicting_and_non_conflicting_methods(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPetsV1
            post:
              operationId: createPet
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPetsV2
            delete:
              operationId: deletePets
        """,
        namespaces=["svcA", "svcB"],
    )
    assert op_ids(data) == {
        ("/pets", "post"): "createPet",
        ("/pets", "delete"): "deletePets",
        ("/pets#svcA", "get"): "listPetsV1",
        ("/pets#svcB", "get"): "listPetsV2",
    }


def test_two_conflicting_methods_share_fragments(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: getA
            put:
              operationId: putA
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: getB
            put:
              operationId: putB
        """,
    )
    assert op_ids(data) == {
        ("/pets#1", "get"): "getA",
        ("/pets#1", "put"): "putA",
        ("/pets#2", "get"): "getB",
        ("/pets#2", "put"): "putB",
    }


def test_fragments_keep_path_level_parameters(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /things/{id}:
            parameters:
              - name: id
                in: path
                required: true
                schema: {type: string}
            get:
              operationId: getThingA
        """,
        """
        openapi: 3.1.0
        paths:
          /things/{id}:
            get:
              operationId: getThingB
        """,
    )
    assert data["paths"]["/things/{id}#1"]["parameters"][0]["name"] == "id"
    assert "parameters" not in data["paths"]["/things/{id}#2"]


def test_path_level_fields_merge(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            summary: first
            description: first
            x-a: 1
            parameters:
              - name: limit
                in: query
                schema: {type: integer}
            get:
              operationId: listPets
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            summary: second
            x-b: 2
            parameters:
              - name: limit
                in: query
                schema: {type: string}
              - name: offset
                in: query
            post:
              operationId: createPet
        """,
    )
    item = data["paths"]["/pets"]
    assert item["summary"] == "second"
    assert item["description"] == "first"
    assert item["x-a"] == 1 and item["x-b"] == 2
    assert [p["name"] for p in item["parameters"]] == ["limit", "offset"]
    assert item["parameters"][0]["schema"] == {"type": "string"}


def test_reference_path_item_is_replaced(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPets
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            $ref: '#/components/pathItems/Pets'
        """,
    )
    assert data["paths"]["/pets"] == {"$ref": "#/components/pathItems/Pets"}


def test_webhooks_fork_like_paths(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        webhooks:
          newPet:
            post:
              operationId: onNewPet
              requestBody:
                content:
                  application/json:
                    schema: {type: object}
        """,
        """
        openapi: 3.1.0
        webhooks:
          newPet:
            post:
              operationId: onNewPet
              requestBody:
                content:
                  application/json:
                    schema: {type: string}
        """,
    )
    assert sorted(data["webhooks"]) == ["newPet#1", "newPet#2"]
    assert data["webhooks"]["newPet#1"]["post"]["operationId"] == "onNewPet_1"
    assert data["webhooks"]["newPet#2"]["post"]["operationId"] == "onNewPet_2"


def test_same_operation_id_same_content_not_flagged(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPets
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPets
        """,
    )
    assert op_ids(data) == {("/pets", "get"): "listPets"}


def test_conflicting_operations_sharing_an_id_are_deduplicated(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPets
              responses:
                "200": {description: OK}
        """,
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: listPets
              responses:
                "206": {description: Partial}
        """,
    )
    assert op_ids(data) == {
        ("/pets#1", "get"): "listPets_1",
        ("/pets#2", "get"): "listPets_2",
    }


def test_duplicate_operation_ids_suffixed_by_position(merged_dict):
    data = merged_dict(
        """
        openapi: 3.1.0
        paths:
          /pets:
            get:
              operationId: list
        """,
        """
        openapi: 3.1.0
        paths:
          /dogs:
            get:
              operationId: list
        """,
    )
    assert op_ids(data) == {("/pets", "get"): "list_1", ("/dogs", "get"): "list_2"}


def test_three_documents_same_operation_id(merged_dict):
    docs = [
        f"""
        openapi: 3.1.0
        paths:
          /{name}:
            get:
              operationId: fetch
        """
        for name in ("a", "b", "c")
    ]
    data = merged_dict(*docs, namespaces=["a", "b", "c"])
    assert op_ids(data) == {
        ("/a", "get"): "fetch_a",
        ("/b", "get"): "fetch_b",
        ("/c", "get"): "fetch_c",
    }


def test_same_operation_id_on_distinct_paths(merged_dict):
    """Distinct paths stay distinct; only the operationIds are suffixed"""
    spec_a = """
        openapi: 3.1.0
        info: {title: A, version: 1.0.0}
        paths:
          /a/things/{id}:
            patch:
              operationId: patchThing
              parameters:
                - name: id
                  in: path
                  required: true
                  schema: {type: string}
              responses:
                "200": {description: ok}
        """
    spec_b = spec_a.replace("/a/things", "/b/things").replace("title: A", "title: B")

    data = merged_dict(spec_a, spec_b, namespaces=["svcA", "svcB"])

    assert op_ids(data) == {
        ("/a/things/{id}", "patch"): "patchThing_svcA",
        ("/b/things/{id}", "patch"): "patchThing_svcB",
    }
    assert not any("#" in path for path in data["paths"])


def test_register_and_unregister_keep_trackers_consistent():
    state = MergeState()
    op = Operation(fields={"operationId": "listPets"})

    state.register_op("/pets", "get", "a", 1, op)
    state.register_op("/pets", "get", "b", 2, op)
    assert state.provenance("/pets", "get").counter == 2
    assert len(state.op_id_tracker["listPets"]) == 1

    state.unregister_op("/pets", "get", op)
    assert path_method_key("/pets", "get") not in state.op_tracker
    assert state.op_id_tracker["listPets"] == []


def test_webhook_slots_tracked_apart_from_paths():
    doc = Document.from_dict({
        "openapi": "3.1.0",
        "paths": {"ping": {"get": {"operationId": "ping"}}},
        "webhooks": {"ping": {"get": {"operationId": "ping"}}},
    })
    state = MergeState()
    for section, path, method, op in doc.iter_operations():
        state.register_op(path, method, None, 1, op, section)
    assert len(state.op_tracker) == 2
    assert len(state.duplicate_operation_ids()["ping"]) == 2


def test_disambiguating_suffix():
    assert disambiguating_suffix("svcA", 3) == "svcA"
    assert disambiguating_suffix(None, 3) == "3"
    assert disambiguating_suffix("", 1) == "1"


def test_suffixed_operation_id_never_reuses_an_existing_id(merged_dict):
    docs = [
        f"""
        openapi: 3.1.0
        paths:
          /{path}:
            get:
              operationId: {op_id}
        """
        for path, op_id in (("a", "fetch"), ("b", "fetch"), ("c", "fetch_1"))
    ]
    data = merged_dict(*docs)
    assert op_ids(data) == {
        ("/a", "get"): "fetch_1_2",
        ("/b", "get"): "fetch_2",
        ("/c", "get"): "fetch_1",
    }


def test_unique_name():
    assert unique_name("fetch_1", {"fetch"}) == "fetch_1"
    assert unique_name("fetch_1", {"fetch_1", "fetch_1_2"}) == "fetch_1_3"
    assert unique_name("Pets_1", {"pets_1"}, ignore_case=True) == "Pets_1_2"
