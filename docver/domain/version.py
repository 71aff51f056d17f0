"""
Version domain object for docver.

A deployed site version is identified by its tag. Tags are free-form
strings: "1.2.3", "v2.0.0", "0.8_or_older", "dev", "main" are all valid.

Versions are ordered by a three-case comparison:

    semver vs semver          newest first (descending precedence)
    semver vs non-semver      the non-semver tag comes first
    non-semver vs non-semver  reverse lexicographic on the raw tag

so a listing shows named channels ("main", "dev") at the top followed by
releases from newest to oldest. Tags of equal precedence ("1.0.0" and
"v1.0.0") fall back to reverse lexicographic order, so the order is total.
"""

import functools
from dataclasses import dataclass
from typing import Iterable, List, Optional

from semver import Version as SemanticVersion

_DIGITS_AND_DOTS = frozenset("0123456789.")


def _parse_strict(text: str) -> Optional[SemanticVersion]:
    try:
        return SemanticVersion.parse(text)
    except ValueError:
        return None


def parse_semver_like(tag: str) -> Optional[SemanticVersion]:
    """
    Interpret a tag as a semantic version, if possible.

    Leading "v"/"V" characters are ignored. Tags that are not full semver
    strings fall back to their leading numeric dotted prefix, padded to
    MAJOR.MINOR.PATCH ("1" -> 1.0.0, "0.8_or_older" -> 0.8.0).

    Args:
        tag: Version tag as deployed

    Returns:
        SemanticVersion, or None when the tag is not semver-like
    """
    trimmed = tag.lstrip('vV')
    version = _parse_strict(trimmed)
    if version is not None:
        return version

    prefix_len = 0
    while prefix_len < len(trimmed) and trimmed[prefix_len] in _DIGITS_AND_DOTS:
        prefix_len += 1
    numeric_prefix = trimmed[:prefix_len]
    if not numeric_prefix:
        return None

    parts = numeric_prefix.split('.')
    if not all(p and p.isdigit() for p in parts):
        return None
    while len(parts) < 3:
        parts.append('0')
    return _parse_strict('.'.join(parts))


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def compare_tags(a: str, b: str) -> int:
    """
    Compare two tags for listing order.

    Returns:
        Negative if `a` is listed before `b`, positive if after, 0 only for
        identical tags
    """
    va = parse_semver_like(a)
    vb = parse_semver_like(b)

    if va is not None and vb is not None:
        # Newest first; build metadata does not count
        order = vb.compare(va)
        return order if order else _cmp(b, a)
    if va is not None:
        # Non-semver always precedes semver
        return 1
    if vb is not None:
        return -1
    # Reverse lexicographic
    return _cmp(b, a)


@dataclass(frozen=True)
class Version:
    """
    A deployed site version.

    Attributes:
        tag: Unique identifier, stored exactly as given
        title: Optional human-readable title
    """

    tag: str
    title: Optional[str] = None

    @property
    def display_title(self) -> str:
        """Title shown to users and persisted; falls back to the tag."""
        return self.title if self.title is not None else self.tag

    @property
    def semver(self) -> Optional[SemanticVersion]:
        return parse_semver_like(self.tag)

    def __str__(self) -> str:
        if self.title is not None:
            return f"{self.tag} ({self.title})"
        return self.tag


def compare_versions(a: Version, b: Version) -> int:
    """Compare two versions by their tags (see compare_tags)."""
    return compare_tags(a.tag, b.tag)


version_sort_key = functools.cmp_to_key(compare_versions)


def sort_versions(versions: Iterable[Version]) -> List[Version]:
    """Return versions in listing order."""
    return sorted(versions, key=version_sort_key)
