import pytest
from dcmodel.errors import ParseError
from dcmodel.MODELS.node_tree import MappingNode, ScalarNode, SequenceNode, from_python, to_python
from dcmodel.PARSERS.yaml_loader import YamlLoader, load_node_tree


def test_load_tracks_paths_and_marks():
    tree = load_node_tree("""
services:
  web:
    ports:
      - "8080:80"
""")
    port = tree["services"]["web"]["ports"][0]
    assert isinstance(port, ScalarNode)
    assert port.value == "8080:80"
    assert port.path == ("services", "web", "ports", 0)
    assert port.mark.line == 5


def test_scalars_keep_source_text():
    tree = load_node_tree("a: yes\nb: 3.10\nc: 8080:80\nd: 'quoted'\n")
    assert tree["a"].value is True
    assert tree["a"].as_text() == "yes"
    assert tree["b"].as_text() == "3.10"
    assert tree["c"].as_text() == "8080:80"
    assert tree["d"].as_text() == "quoted"


def test_empty_document_is_empty_mapping():
    assert load_node_tree("") == MappingNode()


def test_anchors_and_merge_keys_are_expanded():
    tree = load_node_tree("""
base: &base
  image: nginx
  restart: always
web:
  <<: *base
  restart: "no"
""")
    assert to_python(tree["web"]) == {"image": "nginx", "restart": "no"}


def test_non_string_keys_use_source_text():
    tree = load_node_tree("1: one\ntrue: yes\n")
    assert tree.keys() == ["1", "true"]


def test_invalid_yaml_raises_parse_error_with_position():
    with pytest.raises(ParseError) as excinfo:
        YamlLoader().load("services: [unclosed\n")
    assert excinfo.value.line is not None


def test_complex_key_raises_parse_error():
    with pytest.raises(ParseError):
        YamlLoader().load("? [a, b]\n: value\n")


def test_equality_ignores_paths():
    assert from_python({"a": [1, "x"]}) == from_python({"a": [1, "x"]}, ("elsewhere",))
    assert ScalarNode(True) != ScalarNode(1)
    assert isinstance(from_python([1]), SequenceNode)


def test_load_file(tmp_path):
    compose_file = tmp_path / "docker-compose.yml"
    compose_file.write_text("version: '3'\n")
    tree = YamlLoader().load_file(str(compose_file))
    assert tree["version"].value == "3"
