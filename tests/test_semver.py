import pytest

from distrikit.semver import compare, is_valid, maybe_v

VALID = [
    "v1",
    "v1.2",
    "v1.2.3",
    "v0.0.0",
    "v1.2.3-pre.1+build.5",
    "v1.2.3+meta",
    "v1.0.0-alpha-1",
]

INVALID = [
    "",
    "1.2.3",
    "v",
    "v01.2.3",
    "v1.02.3",
    "v1.2.3.4",
    "v1.2-pre",
    "v1.2.3-",
    "v1.2.3-01",
    "v1.2.3+",
    "v1.2.3-a..b",
    "v1.2.3 ",
]


@pytest.mark.parametrize("version", VALID)
def test_valid_versions(version):
    assert is_valid(version) is True


@pytest.mark.parametrize("version", INVALID)
def test_invalid_versions(version):
    assert is_valid(version) is False


def test_maybe_v_adds_prefix_once():
    assert maybe_v("1.2.3") == "v1.2.3"
    assert maybe_v("v1.2.3") == "v1.2.3"
    assert maybe_v(maybe_v("0.92")) == "v0.92"


@pytest.mark.parametrize("version", VALID)
def test_compare_reflexive(version):
    assert compare(version, version) == 0


@pytest.mark.parametrize("v", VALID)
@pytest.mark.parametrize("w", VALID)
def test_compare_antisymmetric(v, w):
    assert compare(v, w) == -compare(w, v)


def test_shorthand_equals_full_form():
    assert compare("v1", "v1.0.0") == 0
    assert compare("v1.2", "v1.2.0") == 0


def test_numeric_components_compare_by_value():
    assert compare("v1.10.0", "v1.9.0") > 0
    assert compare("v2.0.0", "v10.0.0") < 0


def test_prerelease_sorts_before_release():
    assert compare("v1.0.0-rc.1", "v1.0.0") < 0
    assert compare("v1.0.0", "v1.0.0-rc.1") > 0


def test_build_metadata_ignored():
    assert compare("v1.0.0+a", "v1.0.0+b") == 0


def test_invalid_sorts_below_valid():
    assert compare("garbage", "v0.0.0") < 0
    assert compare("v0.0.0", "garbage") > 0
    assert compare("garbage", "1.2.3") == 0


ORDERED = [
    "v1.0.0-alpha",
    "v1.0.0-alpha.1",
    "v1.0.0-alpha.beta",
    "v1.0.0-beta",
    "v1.0.0-beta.2",
    "v1.0.0-beta.11",
    "v1.0.0-rc.1",
    "v1.0.0",
]


@pytest.mark.parametrize("lower, higher", list(zip(ORDERED, ORDERED[1:])))
def test_semver_spec_precedence_example(lower, higher):
    assert compare(lower, higher) < 0
    assert compare(higher, lower) > 0