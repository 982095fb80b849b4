import pytest

from ocmcontroller.identity import (
    _fnv1_64,
    consumer_identity_for_repository,
    construct_repository_name,
    credentials_from_secret,
    hash_identity,
)


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"", 0xCBF29CE484222325),
        (b"a", 0xAF63BD4C8601B7BE),
        (b"ab", 0x08326707B4EB37B8),
        (b"abc", 0xD8DCCA186BAFADCB),
    ],
)
def test_fnv1_vectors(data, expected):
    assert _fnv1_64(data) == expected


def _identity():
    return {
        "component": "ocm.software/ocm-demo-index",
        "version": "v0.0.1",
        "name": "remote-controller-demo",
    }


def test_hash_identity_shape():
    name = hash_identity(_identity())
    assert name.startswith("sha-")
    digits = name[len("sha-"):]
    assert digits.isdigit()
    assert 0 <= int(digits) < 2**64


def test_hash_identity_independent_of_order():
    identity = _identity()
    reversed_identity = dict(reversed(list(identity.items())))
    assert hash_identity(identity) == hash_identity(reversed_identity)


def test_hash_identity_is_stable():
    assert hash_identity(_identity()) == hash_identity(dict(_identity()))


def test_hash_identity_distinguishes_values():
    other = _identity()
    other["version"] = "v0.0.2"
    assert hash_identity(other) != hash_identity(_identity())


def test_hash_identity_extra_identity_changes_name():
    extra = _identity()
    extra["type"] = "config"
    chart = _identity()
    chart["type"] = "chart"
    assert hash_identity(extra) != hash_identity(chart)


def test_hash_identity_swapped_key_and_value_differ():
    assert hash_identity({"a": "b"}) != hash_identity({"b": "a"})


def test_construct_repository_name_matches_hash():
    assert construct_repository_name(_identity()) == hash_identity(_identity())


def test_construct_repository_name_rejects_non_strings():
    with pytest.raises(ValueError, match="failed to create hash for identity"):
        construct_repository_name({"name": 1})


@pytest.mark.parametrize(
    "url, host",
    [
        ("localhost", "localhost"),
        ("ghcr.io/open-component-model/test", "ghcr.io"),
        ("https://ghcr.io/org/repo", "ghcr.io"),
        ("oci://user@registry.example.com:5000/x", "registry.example.com:5000"),
    ],
)
def test_consumer_identity(url, host):
    assert consumer_identity_for_repository(url) == {
        "type": "OCIRegistry",
        "hostname": host,
    }


def test_consumer_identity_rejects_colon_in_first_segment():
    with pytest.raises(ValueError):
        consumer_identity_for_repository("1.2.3.4:5000")


def test_consumer_identity_rejects_control_characters():
    with pytest.raises(ValueError):
        consumer_identity_for_repository("local\nhost")


def test_credentials_from_secret_drops_empty_values():
    data = {
        "token": b"token",
        "username": b"username",
        "password": b"password",
        "empty": b"",
    }
    assert credentials_from_secret(data) == {
        "token": "token",
        "username": "username",
        "password": "password",
    }