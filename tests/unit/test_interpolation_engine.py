import pytest
from dcmodel.errors import InvalidImageReference, UndefinedVariable
from dcmodel.MANAGERS.interpolation_engine import InterpolationEngine
from dcmodel.MODELS.image_spec import ImageSpec
from dcmodel.MODELS.node_tree import to_python
from dcmodel.MODELS.raw_string import RawString
from dcmodel.MODELS.service_definition import PortMapping, VolumeMount, VolumeType
from dcmodel.PARSERS.compose_parser import ComposeParser
from dcmodel.UTILS.string_interpolation import InterpolationMode

DOCUMENT = ComposeParser().parse_from_string("""
version: '3.8'
services:
  web:
    image: "${REGISTRY:-docker.io}/app:${TAG:?tag is required}"
    command: ["serve", "--port", "$PORT"]
    environment:
      URL: "http://${HOST}:$PORT"
      PRICE: "$$5"
    ports:
      - "${PORT}:80"
      - {target: 443, published: "${TLS_PORT}", mode: host}
    volumes:
      - "${DATA_DIR}:/data:ro"
    labels:
      owner: $OWNER
    logging:
      driver: json-file
      options: {tag: "${TAG}"}
""")

VARIABLES = {
    'TAG': '2.0', 'PORT': '8080', 'HOST': 'example.com', 'TLS_PORT': '8443',
    'DATA_DIR': './data', 'OWNER': 'ops',
}


def test_resolves_every_field():
    web = InterpolationEngine(VARIABLES).resolve_document(DOCUMENT).services['web']
    assert web.image == ImageSpec(registry='docker.io', repository='app', tag='2.0')
    assert web.command == [RawString('serve'), RawString('--port'), RawString('8080')]
    assert web.environment['URL'] == RawString('http://example.com:8080')
    assert web.environment['PRICE'] == RawString('$$5')
    assert web.ports[0] == PortMapping(host=8080, container=80)
    assert web.ports[1] == PortMapping(host=8443, container=443, mode='host')
    assert web.volumes == [VolumeMount(source='./data', target='/data', type=VolumeType.BIND, read_only=True)]
    assert web.labels == {'owner': RawString('ops')}
    assert to_python(web.extras['logging']) == {'driver': 'json-file', 'options': {'tag': '2.0'}}


def test_source_document_is_unchanged():
    InterpolationEngine(VARIABLES).resolve_document(DOCUMENT)
    assert DOCUMENT.services['web'].ports[0] == RawString('${PORT}:80')


def test_deterministic():
    engine = InterpolationEngine(VARIABLES)
    assert engine.resolve_document(DOCUMENT) == engine.resolve_document(DOCUMENT)


def test_required_variable():
    variables = dict(VARIABLES)
    del variables['TAG']
    with pytest.raises(UndefinedVariable) as excinfo:
        InterpolationEngine(variables).resolve_document(DOCUMENT)
    assert excinfo.value.detail == 'tag is required'
    assert excinfo.value.path == ('services', 'web', 'image')


def test_strict_mode():
    variables = dict(VARIABLES)
    del variables['OWNER']
    with pytest.raises(UndefinedVariable):
        InterpolationEngine(variables, InterpolationMode.STRICT).resolve_document(DOCUMENT)
    lenient = InterpolationEngine(variables).resolve_document(DOCUMENT)
    assert lenient.services['web'].labels == {'owner': RawString('')}


def test_resolved_value_is_validated():
    variables = dict(VARIABLES, TAG='not a tag')
    with pytest.raises(InvalidImageReference):
        InterpolationEngine(variables).resolve_document(DOCUMENT)


def test_substituted_dollar_is_escaped():
    engine = InterpolationEngine({'HOST': 'a$b'})
    assert engine.resolve(RawString("${HOST}")) == "a$b"
    document = ComposeParser().parse_from_string("""
version: '3.8'
services:
  web:
    image: nginx
    environment: {URL: "$HOST"}
""")
    resolved = engine.resolve_document(document).services["web"]
    assert document.services["web"].environment["URL"] == RawString("$HOST")
    assert resolved.environment["URL"] == RawString("a$$b")
    assert resolved.environment["URL"].unescape() == "a$b"
