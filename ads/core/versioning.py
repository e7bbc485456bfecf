"""语义化版本与版本范围

版本号的解析与比较交给 semver 库；这里只补上 npm 风格的范围语法:
  - 精确版本 / 部分版本:  1.2.3, 1.2, 1, 1.x, *
  - 比较符:              >=1.2.3 <2.0.0, >1, <=1.2
  - 插入符 ^:            [v, 下一个主版本)，对 0.x 同样适用
  - 波浪号 ~:            [v, 下一个次版本)，仅有主版本时为 [v, 下一个主版本)
  - 连字符范围:          1.2.3 - 2.3.4
  - 或:                  ^1.0.0 || ^2.0.0

预发布版本不参与解析。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from semver import Version

__all__ = [
    "InvalidRangeError",
    "Version",
    "VersionRange",
    "coerce_version",
    "is_local_spec",
    "is_strict_release",
    "max_satisfying",
    "parse_range",
    "parse_version",
    "secure_downgrade",
    "sort_releases",
]

STRICT_RELEASE_RE = re.compile(r"^\d+\.\d+\.\d+$")

_PARTIAL_RE = re.compile(
    r"^v?(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)
_OP_RE = re.compile(r"^(\^|~>|~|>=|<=|>|<|=)?(.*)$")
_OP_SPACE_RE = re.compile(r"(\^|~>|~|>=|<=|>|<|=)\s+")
_HYPHEN_RE = re.compile(r"^\s*(\S+)\s+-\s+(\S+)\s*$")
_COERCE_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")

_LOCAL_PREFIXES = (
    "file:", "link:", "portal:", "workspace:",
    "git:", "git+", "github:", "http:", "https:",
    "./", "../", "/", "~/",
)

_ANY_SPECS = frozenset(("", "*", "x", "X", "latest"))


def parse_version(text: str) -> Version | None:
    """严格解析 x.y.z[-pre][+build]（允许前导 v），不合法返回 None"""
    body = text.strip()
    if body.startswith("v"):
        body = body[1:]
    try:
        return Version.parse(body)
    except ValueError:
        return None


def coerce_version(text: str) -> Version | None:
    """从任意版本描述中提取第一个版本号，缺失部分补 0

    "^4.17" -> 4.17.0, ">=1.2.3 <2" -> 1.2.3
    """
    m = _COERCE_RE.search(text)
    if not m:
        return None
    return Version(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0))


def is_strict_release(text: str) -> bool:
    return bool(STRICT_RELEASE_RE.match(text))


def is_local_spec(spec: str) -> bool:
    """判断清单中的版本描述是否指向本地路径/仓库，而非注册表版本"""
    return spec.strip().startswith(_LOCAL_PREFIXES)


def secure_downgrade(version: str) -> str:
    """安全降级: 次版本号减一，保留补丁号

    "2.4.5" -> "2.3.5", "2.0.0" -> "2.0.0", "1.2" -> "1.1.0"。
    前导的 ^ / ~ 等范围符号原样保留；无法解析次版本号时原样返回。
    """
    m = _OP_RE.match(version.strip())
    prefix, body = (m.group(1) or ""), m.group(2).strip()
    if body.startswith("v"):
        body = body[1:]
    parts = body.split(".", 2)
    if len(parts) < 2 or not parts[1].isdigit():
        return version

    current = parse_version(body) or coerce_version(body)
    if current is None:
        return version
    if current.minor > 0:
        current = current.replace(minor=current.minor - 1)
    return f"{prefix}{current}"


# =========================================================================
# 版本范围
# =========================================================================


@dataclass(frozen=True)
class Comparator:
    op: str          # "<", "<=", ">", ">=", "="
    bound: Version

    def test(self, version: Version) -> bool:
        if self.op == "=":
            return version == self.bound
        if self.op == ">=":
            return version >= self.bound
        if self.op == ">":
            return version > self.bound
        if self.op == "<=":
            return version <= self.bound
        return version < self.bound


@dataclass(frozen=True)
class VersionRange:
    """版本范围: 比较器集合的析取（OR），每个集合内部为合取（AND）

    空集合表示任意版本。
    """

    text: str
    alternatives: tuple[tuple[Comparator, ...], ...]

    def satisfies(self, version: Version | str) -> bool:
        if isinstance(version, str):
            parsed = parse_version(version)
            if parsed is None:
                return False
            version = parsed
        if version.prerelease:
            return False
        # 构建元数据不影响范围判断
        version = version.finalize_version()
        return any(
            all(c.test(version) for c in comparators)
            for comparators in self.alternatives
        )

    def __str__(self) -> str:
        return self.text


class InvalidRangeError(ValueError):
    """无法解析的版本范围"""


def parse_range(text: str) -> VersionRange:
    """解析 npm 风格的版本范围

    Raises:
        InvalidRangeError: 表达式不合法
    """
    raw = text.strip()
    alternatives: list[tuple[Comparator, ...]] = []
    for part in raw.split("||"):
        alternatives.append(tuple(_parse_comparator_set(part.strip(), raw)))
    return VersionRange(text=raw, alternatives=tuple(alternatives))


def _parse_comparator_set(part: str, raw: str) -> list[Comparator]:
    if part in _ANY_SPECS:
        return []

    hyphen = _HYPHEN_RE.match(part)
    if hyphen:
        low = _parse_partial(hyphen.group(1), raw)
        high = _parse_partial(hyphen.group(2), raw)
        result = []
        if low[0] is not None:
            result.append(Comparator(">=", _fill(low)))
        if high[0] is not None:
            result.extend(_upper_inclusive(high, raw))
        return result

    comparators: list[Comparator] = []
    for token in _OP_SPACE_RE.sub(r"\1", part).split():
        comparators.extend(_parse_token(token, raw))
    return comparators


_Partial = tuple["int | None", "int | None", "int | None"]


def _parse_partial(text: str, raw: str) -> _Partial:
    m = _PARTIAL_RE.match(text)
    if not m:
        raise InvalidRangeError(f"无法解析的版本范围: {raw!r}")

    def num(s: str | None) -> int | None:
        if s is None or s in ("x", "X", "*"):
            return None
        return int(s)

    major, minor, patch = num(m.group(1)), num(m.group(2)), num(m.group(3))
    # 1.x.3 这类写法按 1.x 处理
    if major is None:
        return (None, None, None)
    if minor is None:
        return (major, None, None)
    return (major, minor, patch)


def _fill(p: _Partial) -> Version:
    return Version(p[0] or 0, p[1] or 0, p[2] or 0)


def _upper_inclusive(p: _Partial, raw: str) -> list[Comparator]:
    major, minor, patch = p
    if major is None:
        raise InvalidRangeError(f"版本范围缺少上界主版本号: {raw!r}")
    if minor is None:
        return [Comparator("<", _fill(p).bump_major())]
    if patch is None:
        return [Comparator("<", _fill(p).bump_minor())]
    return [Comparator("<=", _fill(p))]


def _parse_token(token: str, raw: str) -> list[Comparator]:
    if token in _ANY_SPECS:
        return []
    m = _OP_RE.match(token)
    op = m.group(1) or "="
    partial = _parse_partial(m.group(2), raw)
    major, minor, patch = partial

    if major is None:
        # *, x, >=*: 任意版本；<* 之类无意义的写法同样视为任意
        return []

    low = _fill(partial)
    if op == "^":
        return [Comparator(">=", low), Comparator("<", low.bump_major())]
    if op in ("~", "~>"):
        if minor is None:
            return [Comparator(">=", low), Comparator("<", low.bump_major())]
        return [Comparator(">=", low), Comparator("<", low.bump_minor())]
    if op == ">=":
        return [Comparator(">=", low)]
    if op == ">":
        if minor is None:
            return [Comparator(">=", low.bump_major())]
        if patch is None:
            return [Comparator(">=", low.bump_minor())]
        return [Comparator(">", low)]
    if op == "<":
        return [Comparator("<", low)]
    if op == "<=":
        return _upper_inclusive(partial, raw)
    # "=" 或无前缀: 部分版本视为 x-range
    if minor is None or patch is None:
        return [Comparator(">=", low), *_upper_inclusive(partial, raw)]
    return [Comparator("=", low)]


def max_satisfying(
    versions: Iterable[str], ranges: Iterable[VersionRange],
) -> str | None:
    """返回同时满足所有范围的最高版本，不存在时返回 None"""
    ranges = list(ranges)
    best: Version | None = None
    best_text: str | None = None
    for text in versions:
        v = parse_version(text)
        if v is None or v.prerelease:
            continue
        if all(r.satisfies(v) for r in ranges) and (best is None or v > best):
            best, best_text = v, text
    return best_text


def sort_releases(versions: Iterable[str], *, reverse: bool = False) -> list[str]:
    """按语义化版本排序，无法解析的条目被丢弃"""
    parsed = []
    for text in versions:
        v = parse_version(text)
        if v is not None:
            parsed.append((v, text))
    parsed.sort(key=lambda pair: pair[0], reverse=reverse)
    return [text for _, text in parsed]
