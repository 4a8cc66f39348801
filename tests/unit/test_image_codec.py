import pytest
from dcmodel.CODECS.image import decode_image, encode_image, parse_image
from dcmodel.errors import InvalidImageReference
from dcmodel.MODELS.image_spec import ImageSpec
from dcmodel.MODELS.node_tree import ScalarNode
from dcmodel.MODELS.raw_string import RawString

DIGEST = "a" * 64


def test_registry_repository_and_tag():
    image = parse_image("registry.example.com/app:1.2")
    assert image == ImageSpec(registry="registry.example.com", repository="app", tag="1.2")
    assert image.kind == "tagged"


def test_digest_variant():
    image = parse_image(f"app@sha256:{DIGEST}")
    assert image.digest == DIGEST
    assert image.tag is None
    assert image.kind == "digest"
    assert image.effective_tag is None


def test_bare_repository_implies_default_tag():
    image = parse_image("library/nginx")
    assert image.registry is None
    assert image.repository == "library/nginx"
    assert image.kind == "bare"
    assert image.effective_tag == "latest"


def test_registry_with_port_is_not_a_tag():
    image = parse_image("localhost:5000/team/app")
    assert image.registry == "localhost:5000"
    assert image.repository == "team/app"
    assert image.tag is None


@pytest.mark.parametrize("text", [
    f"app:1.2@sha256:{DIGEST}",
    f"app@md5:{DIGEST}",
    "app@sha256:abc",
    f"app@sha256:{'A' * 64}",
    "",
    "MyApp",
    "app:",
    "app:bad tag",
    "/app",
])
def test_invalid_references(text):
    with pytest.raises(InvalidImageReference):
        parse_image(text, ("services", "web", "image"))


def test_error_path():
    with pytest.raises(InvalidImageReference) as excinfo:
        parse_image(f"app:1@sha256:{DIGEST}", ("services", "web", "image"))
    assert excinfo.value.path == ("services", "web", "image")


def test_decode_keeps_interpolated_text():
    value = decode_image(ScalarNode("nginx:${TAG:-latest}", ("image",)))
    assert value == RawString("nginx:${TAG:-latest}")


@pytest.mark.parametrize("text", [
    "nginx",
    "nginx:1.25-alpine",
    "registry.example.com:443/team/app:v2",
    f"ghcr.io/org/app@sha256:{DIGEST}",
])
def test_encode_reemits_text(text):
    assert encode_image(parse_image(text), ("image",)).value == text
