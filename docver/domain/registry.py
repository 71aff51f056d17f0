"""
Version registry for docver.

The registry is the in-memory model of every version deployed to the
managed branch: tag -> Version and alias -> tag. It is loaded from the
versions.json document stored in the branch, mutated by a deploy, and
serialized back into the next commit.

Document format (JSON array, newest first):

    [
      {"version": "dev", "title": "Development", "aliases": ["latest"]},
      {"version": "1.0.0", "title": "1.0.0", "aliases": ["stable"]}
    ]
"""

import json
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..errors import DuplicateTagError, SerializationError
from .version import Version, sort_versions

VERSIONS_FILE = "versions.json"


class VersionRegistry:
    """
    Tag -> Version and alias -> tag mappings.

    Aliases are not checked against the known tags: an alias may point to a
    tag that has no Version entry, and an alias may share its name with a tag.

    Example:
        registry = VersionRegistry()
        registry.upsert("1.0.0", aliases={"stable"})
        registry.lookup_by_alias("stable").tag  # "1.0.0"
    """

    def __init__(self):
        self.versions: Dict[str, Version] = {}
        self.aliases: Dict[str, str] = {}

    def upsert(
        self,
        tag: str,
        title: Optional[str] = None,
        aliases: Iterable[str] = (),
    ) -> Version:
        """
        Insert or replace the version `tag` and bind `aliases` to it.

        Aliases not mentioned keep their current binding.

        Returns:
            The Version now stored under `tag`
        """
        version = Version(tag=tag, title=title)
        self.versions[tag] = version
        for alias in aliases:
            self.aliases[alias] = tag
        return version

    def lookup_by_tag(self, tag: str) -> Optional[Version]:
        return self.versions.get(tag)

    def lookup_by_alias(self, alias: str) -> Optional[Version]:
        tag = self.aliases.get(alias)
        if tag is None:
            return None
        return self.versions.get(tag)

    def search(self, identifier: str) -> List[Version]:
        """Find versions whose tag is `identifier` or that `identifier` aliases."""
        aliased = self.aliases.get(identifier)
        return [
            v for v in sort_versions(self.versions.values())
            if v.tag == identifier or v.tag == aliased
        ]

    def aliases_for(self, tag: str) -> List[str]:
        """All aliases currently bound to `tag`, sorted."""
        return sorted(alias for alias, target in self.aliases.items() if target == tag)

    def ordered_view(self) -> 'OrderedView':
        """
        Versions in listing order, each paired with its aliases.

        The view can be iterated any number of times; each pass sorts and
        derives aliases from the registry's current state.
        """
        return OrderedView(self)

    def __iter__(self) -> Iterator[Tuple[Version, List[str]]]:
        return iter(self.ordered_view())

    def __len__(self) -> int:
        return len(self.versions)

    def __contains__(self, tag: object) -> bool:
        return tag in self.versions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRegistry):
            return NotImplemented
        return self.versions == other.versions and self.aliases == other.aliases

    def __repr__(self) -> str:
        return f"VersionRegistry(versions={len(self.versions)}, aliases={len(self.aliases)})"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_data(self) -> List[Dict[str, Any]]:
        """Document entries as plain Python objects, in listing order."""
        return [
            {
                'version': version.tag,
                'title': version.display_title,
                'aliases': aliases,
            }
            for version, aliases in self.ordered_view()
        ]

    def to_document(self) -> str:
        """Serialize to the versions.json text."""
        try:
            return json.dumps(self.to_data(), indent=2, ensure_ascii=False) + '\n'
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize {VERSIONS_FILE}", e) from e

    @classmethod
    def from_document(cls, document: Union[str, bytes]) -> 'VersionRegistry':
        """
        Parse a versions.json document.

        Entry order in the document is irrelevant. A missing `aliases` field
        means no aliases; unknown fields are ignored.

        Raises:
            DuplicateTagError: Two entries share the same `version`
            SerializationError: The document is not valid JSON or an entry
                is malformed (including a missing `title`)
        """
        try:
            items = json.loads(document)
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(f"Failed to parse {VERSIONS_FILE}", e) from e

        if not isinstance(items, list):
            raise SerializationError(f"Failed to parse {VERSIONS_FILE}: expected a JSON array")

        registry = cls()
        for index, item in enumerate(items):
            tag, title, aliases = _parse_entry(item, index)
            if tag in registry.versions:
                raise DuplicateTagError(tag)
            registry.versions[tag] = Version(tag=tag, title=title)
            for alias in aliases:
                registry.aliases[alias] = tag
        return registry

    # ------------------------------------------------------------------
    # Hosting rewrites
    # ------------------------------------------------------------------

    def alias_redirect_document(self, default_alias: Optional[str], prefix: str = "") -> str:
        """
        Render rewrite rules serving each alias from its version's directory.

        One `/<alias>/* /<tag>/:splat 200` line per alias (sorted by alias),
        then a catch-all `/* /<tag>/:splat 200` when `default_alias` is bound.
        The rules are proxying rewrites (status 200), not HTTP redirects.

        Args:
            default_alias: Alias the site root should serve, if bound
            prefix: Deploy prefix the versions are nested under

        Returns:
            Rules file text, one rule per line
        """
        base = '/' + prefix.strip('/') if prefix.strip('/') else ''
        lines = [
            f"{base}/{alias}/* {base}/{tag}/:splat 200"
            for alias, tag in sorted(self.aliases.items())
        ]
        if default_alias is not None and default_alias in self.aliases:
            lines.append(f"{base}/* {base}/{self.aliases[default_alias]}/:splat 200")
        return ''.join(line + '\n' for line in lines)


class OrderedView:
    """Restartable iterable of (Version, aliases) pairs in listing order."""

    def __init__(self, registry: VersionRegistry):
        self._registry = registry

    def __iter__(self) -> Iterator[Tuple[Version, List[str]]]:
        for version in sort_versions(self._registry.versions.values()):
            yield version, self._registry.aliases_for(version.tag)

    def __len__(self) -> int:
        return len(self._registry)


def _parse_entry(item: Any, index: int) -> Tuple[str, str, List[str]]:
    if not isinstance(item, dict):
        raise SerializationError(f"Failed to parse {VERSIONS_FILE}: entry {index} is not an object")

    tag = item.get('version')
    if not isinstance(tag, str):
        raise SerializationError(f"Failed to parse {VERSIONS_FILE}: entry {index} has no 'version' string")

    title = item.get('title')
    if not isinstance(title, str):
        raise SerializationError(f"Failed to parse {VERSIONS_FILE}: version '{tag}' has no 'title' string")

    aliases = item.get('aliases') or []
    if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
        raise SerializationError(f"Failed to parse {VERSIONS_FILE}: version '{tag}' has invalid 'aliases'")

    return tag, title, aliases
