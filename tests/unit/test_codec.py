import pytest

from decisionflow.core.exceptions import FormatError, StartNodeReferenceError
from decisionflow.flowchart.codec import (
    YAML_MIME_TYPE,
    decode_flowchart,
    encode_flowchart,
    export_filename,
    flowcharts_equal,
    load_flowchart,
)
from decisionflow.flowchart.model import (
    ORIGIN,
    DecisionNode,
    FlowInput,
    Flowchart,
    InputType,
    Position,
    TerminatorNode,
)

from tests.conftest import make_flowchart

APPROVAL_YAML = """\
inputs:
- name: score
  type: Double
startNode: check
nodes:
  approve: !terminator
    output:
      approved: true
  check: !decision
    condition: input.score > 5
    negativePath: reject
    positivePath: approve
  reject: !terminator
    output:
      approved: false
"""


@pytest.fixture
def approval_flowchart():
    return make_flowchart(
        [
            TerminatorNode(id="reject", output={"approved": False}, position=Position(10, 20)),
            DecisionNode(
                id="check",
                condition="input.score > 5",
                positive_path="approve",
                negative_path="reject",
            ),
            TerminatorNode(id="approve", output={"approved": True}),
        ],
        start="check",
        inputs=[FlowInput("score", InputType.DOUBLE)],
    )


class TestEncode:
    def test_canonical_text(self, approval_flowchart):
        assert encode_flowchart(approval_flowchart) == APPROVAL_YAML

    def test_encoding_is_deterministic(self, approval_flowchart):
        reordered = approval_flowchart.copy(
            nodes=dict(reversed(list(approval_flowchart.nodes.items())))
        )
        assert encode_flowchart(reordered) == encode_flowchart(approval_flowchart)

    def test_empty_paths_are_omitted(self):
        flowchart = make_flowchart([DecisionNode(id="d", condition="x")], start="d")
        text = encode_flowchart(flowchart)
        assert "positivePath" not in text
        assert "negativePath" not in text

    def test_empty_nodes_map_is_explicitly_tagged(self):
        text = encode_flowchart(Flowchart(start_node_id="s"))
        assert "nodes: !!map {}" in text
        assert decode_flowchart(text).nodes == {}

    def test_positions_are_not_written(self, approval_flowchart):
        assert "position" not in encode_flowchart(approval_flowchart)

    def test_only_the_nodes_map_gets_an_explicit_tag(self):
        flowchart = make_flowchart([TerminatorNode(id="t", output={})], start="t")
        text = encode_flowchart(flowchart)
        assert "output: {}" in text
        assert "!!map" not in text

    def test_text_resembling_empty_nodes_is_left_alone(self):
        flowchart = make_flowchart(
            [TerminatorNode(id="t", output={"note": "a\nnodes: {}"})],
            start="t",
            inputs=[FlowInput("first\nnodes: {}", InputType.STRING)],
        )
        text = encode_flowchart(flowchart)
        assert "!!map" not in text
        decoded = decode_flowchart(text)
        assert decoded.inputs[0].name == "first\nnodes: {}"
        assert decoded.nodes["t"].output == {"note": "a\nnodes: {}"}


class TestDecode:
    def test_decode_canonical_text(self, approval_flowchart):
        decoded = decode_flowchart(APPROVAL_YAML)
        assert decoded.start_node_id == "check"
        assert decoded.inputs == [FlowInput("score", InputType.DOUBLE)]
        assert decoded.nodes["check"].negative_path == "reject"
        assert decoded.nodes["approve"].output == {"approved": True}
        assert all(node.position == ORIGIN for node in decoded.nodes.values())
        assert flowcharts_equal(decoded, approval_flowchart)

    def test_round_trip_of_sample(self, discount_flowchart):
        decoded = decode_flowchart(encode_flowchart(discount_flowchart))
        assert flowcharts_equal(decoded, discount_flowchart)
        assert encode_flowchart(decoded) == encode_flowchart(discount_flowchart)

    def test_round_trip_with_yaml_keyword_ids(self, branch_flowchart):
        # "yes" and "no" are booleans in YAML 1.1 and must survive quoted.
        decoded = decode_flowchart(encode_flowchart(branch_flowchart))
        assert set(decoded.nodes) == {"check", "yes", "no"}
        assert decoded.nodes["check"].positive_path == "yes"
        assert decoded.start_node_id == "check"
        assert flowcharts_equal(decoded, branch_flowchart)

    def test_untagged_nodes_use_fields(self):
        decoded = decode_flowchart(
            "startNode: a\n"
            "nodes:\n"
            "  a:\n"
            "    condition: input.x\n"
            "    positivePath: b\n"
            "  b:\n"
            "    output:\n"
            "      done: 1\n"
        )
        assert isinstance(decoded.nodes["a"], DecisionNode)
        assert decoded.nodes["a"].negative_path == ""
        assert isinstance(decoded.nodes["b"], TerminatorNode)
        assert decoded.inputs == []

    def test_bare_terminator_tag_has_empty_output(self):
        decoded = decode_flowchart("startNode: t\nnodes:\n  t: !terminator\n")
        assert decoded.nodes["t"].output == {}

    def test_boolean_condition_is_kept_as_text(self):
        decoded = decode_flowchart("startNode: d\nnodes:\n  d: !decision\n    condition: true\n")
        assert decoded.nodes["d"].condition == "true"

    def test_unknown_node_shape_names_the_node(self):
        with pytest.raises(FormatError) as excinfo:
            decode_flowchart("startNode: a\nnodes:\n  a:\n    label: hello\n")
        assert excinfo.value.message == 'Invalid or unknown node type for node ID "a".'

    @pytest.mark.parametrize(
        "text, fragment",
        [
            ("- just\n- a list\n", "root should be an object"),
            ("nodes: {}\n", "missing or invalid startNode"),
            ("startNode: a\n", "missing or invalid nodes map"),
            ("startNode: a\nnodes: [a]\n", "missing or invalid nodes map"),
            ("startNode: [unclosed\n", "could not be parsed"),
        ],
    )
    def test_malformed_documents(self, text, fragment):
        with pytest.raises(FormatError) as excinfo:
            decode_flowchart(text)
        assert fragment in str(excinfo.value)

    def test_unknown_input_type_is_rejected(self):
        with pytest.raises(FormatError):
            decode_flowchart(
                "inputs:\n- name: x\n  type: Integer\nstartNode: t\nnodes:\n  t: !terminator\n"
            )

    def test_terminator_output_must_be_a_mapping(self):
        with pytest.raises(FormatError):
            decode_flowchart("startNode: t\nnodes:\n  t: !terminator\n    output: [1, 2]\n")

    def test_duplicate_node_keys_are_rejected(self):
        text = (
            "startNode: a\n"
            "nodes:\n"
            "  a: !decision\n"
            "    condition: input.x\n"
            "    positivePath: b\n"
            "  b: !terminator\n"
            "    output: {r: 1}\n"
            "  b: !terminator\n"
            "    output: {r: 2}\n"
        )
        with pytest.raises(FormatError) as excinfo:
            decode_flowchart(text)
        assert "duplicate key 'b'" in str(excinfo.value)

    def test_yaml_keywords_with_the_same_value_collide(self):
        text = (
            "startNode: a\n"
            "nodes:\n"
            "  a: !terminator\n"
            "  yes: !terminator\n"
            "    output: {k: 1}\n"
            "  true: !terminator\n"
            "    output: {k: 2}\n"
        )
        with pytest.raises(FormatError):
            decode_flowchart(text)

    def test_ids_that_read_back_the_same_collide(self):
        text = (
            "startNode: a\n"
            "nodes:\n"
            "  a: !terminator\n"
            "  1: !terminator\n"
            "  '1': !terminator\n"
        )
        with pytest.raises(FormatError) as excinfo:
            decode_flowchart(text)
        assert excinfo.value.message == 'Invalid YAML format: duplicate node ID "1".'

    def test_duplicate_keys_inside_output_are_rejected(self):
        with pytest.raises(FormatError):
            decode_flowchart("startNode: t\nnodes:\n  t: !terminator\n    output: {k: 1, k: 2}\n")


class TestLoad:
    def test_load_lays_out_nodes(self):
        loaded = load_flowchart(APPROVAL_YAML)
        assert loaded.nodes["check"].position.y < loaded.nodes["approve"].position.y
        assert loaded.nodes["approve"].position != loaded.nodes["reject"].position

    def test_load_without_layout_keeps_origin(self):
        loaded = load_flowchart(APPROVAL_YAML, layout=False)
        assert loaded.nodes["check"].position == ORIGIN

    def test_missing_start_node_is_rejected(self):
        with pytest.raises(StartNodeReferenceError) as excinfo:
            load_flowchart(APPROVAL_YAML.replace("startNode: check", "startNode: nowhere"))
        assert '"nowhere"' in str(excinfo.value)


def test_export_metadata():
    assert export_filename() == "flowchart.yaml"
    assert YAML_MIME_TYPE == "text/yaml"
