"""
Deploy service for docver.

Orchestrates a deploy: reads the deployed versions from the managed
branch, registers the new version, builds one commit containing the
updated versions.json, the alias rewrite rules and the site files, and
applies it with git fast-import. The branch is never checked out.
"""

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .. import __version__
from ..config import load_config
from ..domain.commit import (
    DEFAULT_FILE_MODE,
    EXECUTABLE_FILE_MODE,
    AddBytes,
    AddFile,
    CommitTransaction,
    DeletePath,
    TreeMutation,
    build_transaction,
    render_transaction,
)
from ..domain.registry import VersionRegistry
from ..domain.version import Version
from ..errors import AliasConflictError, EmptySourceError, SourceReadError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A file of the built site: where it goes and where it is read from."""
    relative_path: str
    source: Path
    mode: int = DEFAULT_FILE_MODE


@dataclass
class DeployOptions:
    """Options for a deploy."""
    source_dir: Union[str, Path]
    version: str
    aliases: List[str] = field(default_factory=list)
    title: Optional[str] = None
    message: Optional[str] = None
    remote: str = "origin"
    branch: str = "gh-pages"
    deploy_prefix: str = ""
    default_alias: Optional[str] = "latest"
    push: bool = False
    allow_empty: bool = False
    update_aliases: bool = False
    ignore_remote_status: bool = False


@dataclass
class DeployResult:
    """What a deploy wrote."""
    version: Version
    aliases: List[str]
    ref: str
    parent: Optional[str]
    message: str
    files: int = 0
    pushed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version.tag,
            'title': self.version.display_title,
            'aliases': self.aliases,
            'ref': self.ref,
            'parent': self.parent,
            'message': self.message,
            'files': self.files,
            'pushed': self.pushed,
        }


def join_path(*parts: str) -> str:
    """Join branch paths with '/', ignoring empty parts and stray slashes."""
    return '/'.join(p.strip('/') for p in parts if p and p.strip('/'))


def _raise_walk_error(error: OSError) -> None:
    raise SourceReadError(str(error.filename), error) from error


def collect_source_files(directory: Union[str, Path]) -> List[SourceFile]:
    """
    List every file under the built site directory.

    `.git` directories are skipped. Files with any execute bit set keep
    an executable mode in the commit. A directory that cannot be listed
    fails the whole collection.

    Returns:
        SourceFile entries sorted by relative path

    Raises:
        SourceReadError: `directory` is missing, not a directory, or has an
            unreadable subdirectory
    """
    root = Path(directory)
    if not root.is_dir():
        raise SourceReadError(str(root), NotADirectoryError("not a directory"))

    files = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d != '.git')
        for filename in filenames:
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            mode = DEFAULT_FILE_MODE
            if path.stat().st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
                mode = EXECUTABLE_FILE_MODE
            files.append(SourceFile(path.relative_to(root).as_posix(), path, mode))

    files.sort(key=lambda f: f.relative_path)
    return files


def apply_transaction(
    txn: CommitTransaction,
    repo_path: Union[str, Path],
    git_client: Optional[GitClient] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Render a transaction and apply it with git fast-import.

    On success `txn.ref` points at the new commit; nothing else changes.

    Raises:
        SpawnError, NonFastForwardError, ExecutionFailedError
    """
    git = git_client or GitClient()
    document = render_transaction(txn, environ=environ)
    logger.debug(f"fast-import stream for {txn.ref}: {len(document)} bytes, {len(txn.files)} files")
    git.fast_import(repo_path, document, txn.ref)


class DeployService:
    """
    Service for deploying and listing site versions.

    Example:
        service = DeployService()
        result = service.deploy(DeployOptions(source_dir="site", version="1.0.0",
                                              aliases=["latest"]))
        print(result.to_dict())
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
        repo_path: Union[str, Path] = ".",
    ):
        """
        Initialize DeployService.

        Args:
            config: Configuration dict (loads default if None)
            git_client: GitClient instance (creates new if None)
            repo_path: Repository the managed branch lives in
        """
        self.config = config or load_config()
        self.git = git_client or GitClient()
        self.repo_path = Path(repo_path)

    @property
    def versions_file(self) -> str:
        return self.config.get("versions_file", "versions.json")

    @property
    def redirects_file(self) -> str:
        return self.config.get("redirects_file", "_redirects")

    def resolve_base(self, remote: str, branch: str, ignore_remote_status: bool = False) -> Optional[str]:
        """
        Find the commit the next deploy builds on.

        The local branch is used when it contains the remote branch (or the
        remote has none); otherwise the remote tip is used, so a local branch
        that has diverged is rejected by fast-import as non-fast-forward.

        Returns:
            Commit id, or None when the branch does not exist anywhere yet
        """
        local_tip = self.git.rev_parse(self.repo_path, f"refs/heads/{branch}")
        if ignore_remote_status:
            return local_tip

        self.git.fetch(self.repo_path, remote, branch)
        remote_tip = self.git.rev_parse(self.repo_path, f"refs/remotes/{remote}/{branch}")

        if remote_tip is None:
            return local_tip
        if local_tip is None:
            return remote_tip
        if self.git.is_ancestor(self.repo_path, remote_tip, local_tip):
            return local_tip
        logger.info(f"Local {branch} does not contain {remote}/{branch}; building on {remote}/{branch}")
        return remote_tip

    def load_registry(self, rev: Optional[str], deploy_prefix: str = "") -> VersionRegistry:
        """
        Load the versions deployed at `rev`.

        A missing branch or versions file means nothing is deployed yet.
        A malformed file is an error.
        """
        if rev is None:
            return VersionRegistry()

        path = join_path(deploy_prefix, self.versions_file)
        document = self.git.show_file(self.repo_path, rev, path)
        if document is None:
            logger.info(f"No {path} at {rev}; starting with no versions")
            return VersionRegistry()
        return VersionRegistry.from_document(document)

    def default_message(self, version: str, deploy_prefix: str = "") -> str:
        rev = self.git.current_commit(self.repo_path) or "working tree"
        where = f" in {deploy_prefix.strip('/')}" if deploy_prefix.strip('/') else ""
        return f"Deployed {rev} to {version}{where} with docver {__version__}"

    def build_mutations(
        self,
        registry: VersionRegistry,
        options: DeployOptions,
        files: Sequence[SourceFile],
        replace_existing: bool = True,
    ) -> List[TreeMutation]:
        """Tree changes for deploying `options.version` with an updated registry."""
        prefix = options.deploy_prefix
        version_dir = join_path(prefix, options.version)

        mutations: List[TreeMutation] = []
        if replace_existing:
            mutations.append(DeletePath(version_dir))
        mutations.append(AddBytes(
            join_path(prefix, self.versions_file),
            registry.to_document().encode('utf-8'),
        ))
        mutations.append(AddBytes(
            join_path(prefix, self.redirects_file),
            registry.alias_redirect_document(options.default_alias, prefix).encode('utf-8'),
        ))
        if self.config.get("nojekyll", True):
            mutations.append(AddBytes(".nojekyll", b""))
        for f in files:
            mutations.append(AddFile(join_path(version_dir, f.relative_path), f.source, f.mode))
        return mutations

    def check_aliases(self, registry: VersionRegistry, options: DeployOptions) -> None:
        """Refuse to move an alias off another version unless asked to."""
        if options.update_aliases:
            return
        for alias in options.aliases:
            current = registry.aliases.get(alias)
            if current is not None and current != options.version:
                raise AliasConflictError(alias, current, options.version)

    def deploy(self, options: DeployOptions) -> DeployResult:
        """
        Deploy a built site as `options.version`.

        Raises:
            EmptySourceError: The source directory has no files
            AliasConflictError: An alias points to another version
            DocverError: Reading versions.json, a source file, or git failed
        """
        files = collect_source_files(options.source_dir)
        if not files and not options.allow_empty:
            raise EmptySourceError(str(options.source_dir))
        logger.info(f"Deploying {len(files)} files from {options.source_dir} as {options.version}")

        parent = self.resolve_base(options.remote, options.branch, options.ignore_remote_status)
        registry = self.load_registry(parent, options.deploy_prefix)
        self.check_aliases(registry, options)

        version = registry.upsert(options.version, options.title, options.aliases)
        message = options.message or self.default_message(options.version, options.deploy_prefix)

        ref = f"refs/heads/{options.branch}"
        txn = build_transaction(
            ref,
            message,
            self.build_mutations(registry, options, files, replace_existing=parent is not None),
            parent=parent,
        )
        apply_transaction(txn, self.repo_path, self.git)
        logger.info(f"Committed {options.version} to {ref}")

        pushed = False
        if options.push:
            logger.info(f"Pushing {options.branch} to {options.remote}")
            self.git.push(self.repo_path, options.remote, options.branch)
            pushed = True

        return DeployResult(
            version=version,
            aliases=registry.aliases_for(options.version),
            ref=ref,
            parent=parent,
            message=message,
            files=len(files),
            pushed=pushed,
        )

    def list_versions(
        self,
        remote: str,
        branch: str,
        deploy_prefix: str = "",
        identifiers: Sequence[str] = (),
        ignore_remote_status: bool = False,
    ) -> Tuple[VersionRegistry, List[Tuple[Version, List[str]]]]:
        """
        Read the deployed versions.

        Args:
            identifiers: Only list versions matching these tags or aliases

        Returns:
            (registry, rows) where rows are (Version, aliases) in listing order
        """
        rev = self.resolve_base(remote, branch, ignore_remote_status)
        registry = self.load_registry(rev, deploy_prefix)

        rows = list(registry.ordered_view())
        if identifiers:
            wanted = {v.tag for ident in identifiers for v in registry.search(ident)}
            rows = [(v, aliases) for v, aliases in rows if v.tag in wanted]
        return registry, rows
