"""
Infrastructure layer for docver.

Contains abstractions for external systems:
- GitClient: Git command execution, including fast-import

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitResult, classify_fast_import_failure

__all__ = [
    'GitClient',
    'GitResult',
    'classify_fast_import_failure',
]
