"""版本号与版本范围测试"""

from __future__ import annotations

import pytest

from ads.core.versioning import (
    InvalidRangeError,
    Version,
    coerce_version,
    is_local_spec,
    is_strict_release,
    max_satisfying,
    parse_range,
    parse_version,
    secure_downgrade,
    sort_releases,
)
from ads.core.versioning import _upper_inclusive


class TestSecureDowngrade:
    def test_reduces_minor_keeps_patch(self) -> None:
        assert secure_downgrade("2.4.5") == "2.3.5"

    def test_minor_zero_unchanged(self) -> None:
        assert secure_downgrade("2.0.0") == "2.0.0"

    def test_incomplete_version_is_filled(self) -> None:
        assert secure_downgrade("1.2") == "1.1.0"

    def test_range_prefix_kept(self) -> None:
        assert secure_downgrade("^4.17.21") == "^4.16.21"
        assert secure_downgrade("~1.3.0") == "~1.2.0"

    def test_unparsable_returned_as_is(self) -> None:
        assert secure_downgrade("latest") == "latest"
        assert secure_downgrade("3") == "3"


class TestParseVersion:
    def test_strict(self) -> None:
        assert parse_version("1.2.3") == Version(1, 2, 3)
        assert parse_version("v1.2.3-beta.1").prerelease == "beta.1"
        assert parse_version("1.2.3").prerelease is None
        assert parse_version("1.2.3+build.5") == Version(1, 2, 3)

    def test_invalid(self) -> None:
        assert parse_version("1.2") is None
        assert parse_version("abc") is None

    def test_coerce(self) -> None:
        assert coerce_version("^4.17") == Version(4, 17, 0)
        assert coerce_version(">=1.2.3 <2") == Version(1, 2, 3)
        assert coerce_version("latest") is None

    def test_strict_release(self) -> None:
        assert is_strict_release("1.0.0")
        assert not is_strict_release("1.0.0-rc.1")
        assert not is_strict_release("^1.0.0")


class TestLocalSpec:
    @pytest.mark.parametrize("spec", [
        "file:../lib", "link:./pkg", "./vendor/x", "../shared", "/opt/pkg",
        "git+https://github.com/a/b.git", "github:a/b", "workspace:*",
    ])
    def test_local(self, spec: str) -> None:
        assert is_local_spec(spec)

    @pytest.mark.parametrize("spec", ["^1.0.0", "~2.1", "1.x", "*", "latest"])
    def test_registry(self, spec: str) -> None:
        assert not is_local_spec(spec)


class TestRanges:
    def test_caret_bounds_to_next_major(self) -> None:
        r = parse_range("^1.2.3")
        assert r.satisfies("1.2.3")
        assert r.satisfies("1.9.9")
        assert not r.satisfies("2.0.0")
        assert not r.satisfies("1.2.2")

    def test_caret_zero_major_same_rule(self) -> None:
        r = parse_range("^0.2.3")
        assert r.satisfies("0.9.0")
        assert not r.satisfies("1.0.0")

    def test_tilde_bounds_to_next_minor(self) -> None:
        r = parse_range("~1.2.3")
        assert r.satisfies("1.2.9")
        assert not r.satisfies("1.3.0")
        assert parse_range("~1").satisfies("1.9.0")

    def test_comparators_and_or(self) -> None:
        r = parse_range(">=1.2.0 <2.0.0 || ^3.0.0")
        assert r.satisfies("1.5.0")
        assert r.satisfies("3.1.0")
        assert not r.satisfies("2.5.0")

    def test_hyphen_and_x_range(self) -> None:
        assert parse_range("1.2.3 - 2.3").satisfies("2.3.9")
        assert not parse_range("1.2.3 - 2.3").satisfies("2.4.0")
        assert parse_range("1.x").satisfies("1.7.0")
        assert parse_range("*").satisfies("9.9.9")

    def test_prerelease_never_satisfies(self) -> None:
        assert not parse_range("^1.0.0").satisfies("1.1.0-beta.1")

    def test_invalid_range(self) -> None:
        with pytest.raises(InvalidRangeError):
            parse_range("not-a-version")

    def test_upper_bound_requires_major(self) -> None:
        with pytest.raises(InvalidRangeError, match="上界"):
            _upper_inclusive((None, None, None), "<=*")

    def test_build_metadata_ignored(self) -> None:
        assert parse_range("<=1.2.3").satisfies("1.2.3+sha.abc")


class TestMaxSatisfying:
    def test_picks_highest(self) -> None:
        versions = ["1.0.0", "1.4.0", "1.10.0", "2.0.0"]
        assert max_satisfying(versions, [parse_range("^1.0.0")]) == "1.10.0"

    def test_intersection(self) -> None:
        versions = ["1.0.0", "1.4.0", "1.10.0"]
        ranges = [parse_range("^1.0.0"), parse_range("<1.5.0")]
        assert max_satisfying(versions, ranges) == "1.4.0"

    def test_no_overlap(self) -> None:
        versions = ["1.0.0", "2.0.0"]
        assert max_satisfying(versions, [parse_range("^1.0.0"), parse_range("^2.0.0")]) is None

    def test_skips_prerelease_and_junk(self) -> None:
        assert max_satisfying(["1.0.0", "1.1.0-rc.1", "garbage"], []) == "1.0.0"

    def test_numeric_not_lexical_order(self) -> None:
        assert max_satisfying(["1.9.0", "1.10.0", "1.2.0"], [parse_range("^1.0.0")]) == "1.10.0"


class TestSortReleases:
    def test_semver_order(self) -> None:
        versions = ["3.3.0", "2.7.0", "3.3.10", "3.3.2", "junk"]
        assert sort_releases(versions, reverse=True) == ["3.3.10", "3.3.2", "3.3.0", "2.7.0"]

    def test_prerelease_sorts_before_release(self) -> None:
        assert sort_releases(["2.0.0", "2.0.0-rc.1", "1.0.0"]) == ["1.0.0", "2.0.0-rc.1", "2.0.0"]
