"""Tests for the React Flow parser."""

import json

import pytest

from flowbuild import ReactFlowParser
from flowbuild.utils.errors import GraphValidationError


def editor_document():
    return {
        "id": "canvas-1",
        "nodes": [
            {
                "id": "fetch",
                "type": "custom",
                "data": {"type": "httpRequest", "node": {"url": "https://example.com"}},
                "position": {"x": 0, "y": 0},
            },
            {
                "id": "parse",
                "data": {"name": "jsonParse", "inputs": {"strict": True}},
            },
            {"id": "store", "type": "sink", "data": {}},
        ],
        "edges": [
            {"source": "fetch", "target": "parse", "sourceHandle": "out"},
            {"source": "parse", "target": "store"},
        ],
        "viewport": {"x": 0, "y": 0, "zoom": 1},
    }


def test_parse_document():
    flow = ReactFlowParser().parse(editor_document())

    assert flow.id == "canvas-1"
    assert [(v.id, v.type) for v in flow.vertices] == [
        ("fetch", "httpRequest"),
        ("parse", "jsonParse"),
        ("store", "sink"),
    ]
    assert flow.vertices[0].config == {"url": "https://example.com"}
    assert flow.vertices[1].config == {"strict": True}
    assert flow.vertices[2].config == {}
    assert [(e.source, e.target) for e in flow.edges] == [("fetch", "parse"), ("parse", "store")]


def test_type_map_and_explicit_flow_id():
    parser = ReactFlowParser(type_map={"httpRequest": "fetch", "sink": "passthrough"})

    flow = parser.parse(json.dumps(editor_document()), flow_id="renamed")

    assert flow.id == "renamed"
    assert [v.type for v in flow.vertices] == ["fetch", "jsonParse", "passthrough"]


def test_parse_wrapped_document():
    flow = ReactFlowParser().parse({"data": editor_document()}, flow_id="wrapped")

    assert flow.id == "wrapped"
    assert len(flow.vertices) == 3


def test_node_without_type_rejected():
    document = {"nodes": [{"id": "A", "data": {}}]}

    with pytest.raises(GraphValidationError, match="Node 'A' has no type"):
        ReactFlowParser().parse(document)


def test_malformed_documents_rejected():
    parser = ReactFlowParser()

    with pytest.raises(GraphValidationError):
        parser.parse("{not json")

    with pytest.raises(GraphValidationError):
        parser.parse("[1, 2]")

    with pytest.raises(GraphValidationError):
        parser.parse({"edges": []})


def test_parsed_graph_is_validated():
    document = editor_document()
    document["edges"].append({"source": "store", "target": "fetch"})

    with pytest.raises(GraphValidationError):
        ReactFlowParser().parse(document)


@pytest.mark.parametrize(
    "data, message",
    [
        ({"type": "constant", "inputs": "abc"}, "inputs must be an object"),
        ({"type": "constant", "inputs": ["a", "b"]}, "inputs must be an object"),
        ({"type": {"x": 1}}, "type must be a string"),
        ({"name": 7}, "type must be a string"),
    ],
)
def test_malformed_node_data_rejected(data, message):
    document = {"nodes": [{"id": "A", "data": data}]}

    with pytest.raises(GraphValidationError, match=f"Node 'A' {message}"):
        ReactFlowParser().parse(document)
