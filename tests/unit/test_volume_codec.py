import pytest
from dcmodel.CODECS.volumes import decode_volume, encode_volume, parse_volume_mount
from dcmodel.errors import MalformedField
from dcmodel.MODELS.node_tree import MappingNode, ScalarNode, from_python
from dcmodel.MODELS.raw_string import RawString
from dcmodel.MODELS.service_definition import VolumeMount, VolumeType


def test_named_volume():
    mount = parse_volume_mount("db_data:/var/lib/postgresql/data")
    assert mount.source == "db_data"
    assert mount.target == "/var/lib/postgresql/data"
    assert mount.type is VolumeType.VOLUME


def test_bind_mount_with_options():
    mount = parse_volume_mount("./conf:/etc/app:ro,z")
    assert mount.type is VolumeType.BIND
    assert mount.read_only is True
    assert mount.options == ["z"]
    assert encode_volume(mount, ("volumes", 0)) == ScalarNode("./conf:/etc/app:ro,z")


def test_anonymous_volume():
    mount = parse_volume_mount("/cache")
    assert mount.source is None
    assert mount.type is VolumeType.VOLUME


def test_windows_source_path():
    mount = parse_volume_mount("C:\\data:/data")
    assert mount.source == "C:\\data"
    assert mount.type is VolumeType.BIND


def test_explicit_rw_is_default():
    assert parse_volume_mount("./a:/a:rw") == parse_volume_mount("./a:/a")


@pytest.mark.parametrize("text", ["", "a:b:c:d", "data:relative", "./a:/a:ro,,z"])
def test_malformed(text):
    with pytest.raises(MalformedField):
        parse_volume_mount(text, ("volumes", 0))


def test_long_form_expressible_as_short():
    node = from_python({"type": "bind", "source": "./src", "target": "/app", "read_only": True}, ("volumes", 0))
    mount = decode_volume(node)
    assert mount == VolumeMount(target="/app", source="./src", type=VolumeType.BIND, read_only=True)
    assert encode_volume(mount, ("volumes", 0)) == ScalarNode("./src:/app:ro")


def test_long_form_with_nested_options_stays_long():
    node = from_python(
        {"type": "volume", "source": "data", "target": "/data", "volume": {"nocopy": True}},
        ("volumes", 0),
    )
    mount = decode_volume(node)
    assert mount.extras == {"volume": from_python({"nocopy": True})}
    encoded = encode_volume(mount, ("volumes", 0))
    assert isinstance(encoded, MappingNode)
    assert decode_volume(encoded) == mount


def test_tmpfs_stays_long():
    mount = decode_volume(from_python({"type": "tmpfs", "target": "/run"}, ("volumes", 0)))
    assert mount.type is VolumeType.TMPFS
    assert isinstance(encode_volume(mount, ("volumes", 0)), MappingNode)


def test_escaped_dollar_is_unescaped_and_reescaped():
    mount = decode_volume(ScalarNode("/srv/$$HOME:/data"))
    assert mount.source == "/srv/$HOME"
    assert encode_volume(mount, ("volumes", 0)) == ScalarNode("/srv/$$HOME:/data")


def test_interpolated_text_is_raw():
    assert decode_volume(ScalarNode("${DATA}:/data")) == RawString("${DATA}:/data")
