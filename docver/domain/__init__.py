"""
Domain layer for docver.

Contains pure domain objects with no I/O or side effects:
- Version: A deployed site version and its listing order
- VersionRegistry: Versions and aliases, persisted as versions.json
- CommitTransaction: One commit rendered as a git fast-import stream

Only CommitTransaction construction reads files (AddFile sources).
"""

from .version import Version, parse_semver_like, compare_tags, sort_versions
from .registry import VersionRegistry, VERSIONS_FILE
from .commit import (
    CommitTransaction,
    FileEntry,
    Signature,
    DeleteAll,
    DeletePath,
    AddBytes,
    AddFile,
    build_transaction,
    render_transaction,
    resolve_identities,
)

__all__ = [
    'Version',
    'parse_semver_like',
    'compare_tags',
    'sort_versions',
    'VersionRegistry',
    'VERSIONS_FILE',
    'CommitTransaction',
    'FileEntry',
    'Signature',
    'DeleteAll',
    'DeletePath',
    'AddBytes',
    'AddFile',
    'build_transaction',
    'render_transaction',
    'resolve_identities',
]
