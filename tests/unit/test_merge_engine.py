import pytest
from dcmodel.CONVERTERS.to_node_tree import DocumentSerializer
from dcmodel.errors import MergeTypeConflict
from dcmodel.MANAGERS.merge_engine import SERVICE_STRATEGIES, MergeEngine, merge_nodes
from dcmodel.MODELS.image_spec import ImageSpec
from dcmodel.MODELS.node_tree import from_python, to_python
from dcmodel.MODELS.raw_string import RawString
from dcmodel.MODELS.service_definition import DependencyCondition, PortMapping, Service
from dcmodel.PARSERS.compose_parser import ComposeParser


def doc(content):
    return ComposeParser().parse_node_tree(_tree(content), layer=True)


def _tree(content):
    return ComposeParser().loader.load(content)


BASE = doc("""
version: '3.8'
services:
  web:
    image: nginx:1.24
    command: ["nginx", "-g", "daemon off;"]
    environment: {A: "1", B: "2"}
    ports: ["80:80"]
    cap_add: [NET_ADMIN]
    depends_on: [db]
    deploy:
      resources: {limits: {cpus: "0.5"}}
  db:
    image: postgres
volumes:
  data: {driver: local}
""")

OVERRIDE = doc("""
version: '3.8'
services:
  web:
    image: nginx:1.25
    environment: {B: "3", C: "4"}
    ports: ["443:443"]
    cap_add: [SYS_TIME, NET_ADMIN]
    depends_on: [cache, db]
    deploy:
      replicas: 3
  cache:
    image: redis
volumes:
  data: {driver_opts: {type: tmpfs}}
""")

LAST = doc("""
version: '3.8'
services:
  web:
    environment: {A: "0"}
    ports: ["8443:443"]
    labels: {tier: front}
  cache:
    command: redis-server --appendonly yes
""")


def test_scalars_last_value_wins():
    merged = MergeEngine().merge([BASE, OVERRIDE])
    web = merged.services['web']
    assert web.image == ImageSpec(repository='nginx', tag='1.25')
    assert web.command == [RawString('nginx'), RawString('-g'), RawString('daemon off;')]


def test_environment_is_merged_key_wise():
    web = MergeEngine().merge([BASE, OVERRIDE]).services['web']
    assert web.environment == {'A': RawString('1'), 'B': RawString('3'), 'C': RawString('4')}
    assert list(web.environment) == ['A', 'B', 'C']


def test_ports_are_replaced():
    web = MergeEngine().merge([BASE, OVERRIDE]).services['web']
    assert web.ports == [PortMapping(host=443, container=443)]


def test_empty_override_list_clears_base():
    cleared = doc("""
version: '3.8'
services:
  web:
    ports: []
    volumes: []
""")
    web = MergeEngine().merge([BASE, cleared]).services['web']
    assert web.ports == []
    assert web.volumes == []
    assert to_python(DocumentSerializer().serialize_field('ports', web.ports)) == []


def test_absent_override_list_keeps_base():
    web = MergeEngine().merge([BASE, doc("version: '3.8'\nservices:\n  web:\n    user: nobody\n")]).services['web']
    assert web.ports == [PortMapping(host=80, container=80)]
    assert web.volumes is None


def test_set_like_lists_are_unioned():
    web = MergeEngine().merge([BASE, OVERRIDE]).services['web']
    assert web.cap_add == [RawString('NET_ADMIN'), RawString('SYS_TIME')]
    assert list(web.depends_on) == ['db', 'cache']


def test_structured_passthrough_is_deep_merged():
    merged = MergeEngine().merge([BASE, OVERRIDE])
    assert to_python(merged.services['web'].extras['deploy']) == {
        'resources': {'limits': {'cpus': '0.5'}},
        'replicas': 3,
    }
    assert to_python(merged.volumes['data']) == {'driver': 'local', 'driver_opts': {'type': 'tmpfs'}}


def test_new_services_are_appended():
    merged = MergeEngine().merge([BASE, OVERRIDE])
    assert list(merged.services) == ['web', 'db', 'cache']


def test_inputs_are_not_modified():
    before = to_python(DocumentSerializer().serialize(BASE))
    MergeEngine().merge([BASE, OVERRIDE, LAST])
    assert to_python(DocumentSerializer().serialize(BASE)) == before


def test_identity():
    assert MergeEngine().merge([BASE]) == BASE


def test_associativity():
    engine = MergeEngine()
    assert engine.merge([engine.merge([BASE, OVERRIDE]), LAST]) == engine.merge([BASE, OVERRIDE, LAST])


def test_empty_sequence_is_rejected():
    with pytest.raises(ValueError):
        MergeEngine().merge([])


def test_legacy_override_keeps_versioned_layout():
    legacy = doc("""
web:
  image: nginx:1.26
""")
    assert legacy.is_legacy
    merged = MergeEngine().merge([BASE, legacy])
    assert merged.version == '3.8'
    assert merged.services['web'].image == ImageSpec(repository='nginx', tag='1.26')
    tree = to_python(DocumentSerializer().serialize(merged))
    assert tree['volumes'] == {'data': {'driver': 'local'}}
    assert list(tree['services']) == ['web', 'db']


def test_versioned_override_upgrades_legacy_base():
    legacy = doc("""
web:
  image: nginx
""")
    merged = MergeEngine().merge([legacy, doc("version: '2'\nservices:\n  web:\n    hostname: w\n")])
    assert merged.version == '2'
    assert merged.services['web'].hostname == RawString('w')


def test_override_dependency_replaces_entry_in_place():
    base = doc("""
version: '2.1'
services:
  web: {image: a, depends_on: [db, cache]}
""")
    override = doc("""
version: '2.1'
services:
  web: {depends_on: {db: {condition: service_healthy}}}
""")
    web = MergeEngine().merge([base, override]).services['web']
    assert list(web.depends_on) == ['db', 'cache']
    assert web.depends_on['db'].condition is DependencyCondition.SERVICE_HEALTHY


def test_build_is_merged_field_wise():
    base = doc("""
version: '3.8'
services:
  app:
    build: {context: ., dockerfile: Dockerfile, args: {A: "1"}}
""")
    override = doc("""
version: '3.8'
services:
  app:
    build: {context: ., args: {B: "2"}}
""")
    build = MergeEngine().merge([base, override]).services['app'].build
    assert build.dockerfile == RawString('Dockerfile')
    assert build.args == {'A': RawString('1'), 'B': RawString('2')}


def test_structured_conflict_raises():
    base = doc("""
version: '3.8'
services:
  web: {image: a, healthcheck: {test: ["CMD", "true"]}}
""")
    override = doc("""
version: '3.8'
services:
  web: {healthcheck: {test: "curl localhost"}}
""")
    with pytest.raises(MergeTypeConflict) as excinfo:
        MergeEngine().merge([base, override])
    assert excinfo.value.path == ('services', 'web', 'healthcheck', 'test')


def test_other_passthrough_is_replaced_without_conflict():
    merged = merge_nodes(from_python({'a': [1]}), from_python({'a': 'x'}), ())
    assert to_python(merged) == {'a': 'x'}


def test_null_is_compatible_in_strict_mode():
    merged = merge_nodes(from_python({'a': {'b': 1}}), from_python({'a': None}), (), strict=True)
    assert to_python(merged) == {'a': {'b': 1}}


def test_every_service_field_has_a_strategy():
    assert set(SERVICE_STRATEGIES) == set(Service.model_fields)
