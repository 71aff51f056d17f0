"""
Commit transactions for git fast-import.

A CommitTransaction describes the complete effect of one new commit on the
managed branch: which paths are removed, which files are written, the
message, the parent and the identities. It is built once from a list of
tree mutations and rendered into a fast-import stream; nothing here
touches a repository, so the stream grammar can be checked byte for byte.

Example:
    txn = build_transaction(
        "refs/heads/gh-pages",
        "Deploy 1.0.0",
        [DeletePath("1.0.0"), AddBytes("1.0.0/index.html", b"<html>")],
        parent="refs/heads/gh-pages^0",
    )
    stream = render_transaction(txn)
"""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from ..errors import SourceReadError

DEFAULT_FILE_MODE = 0o100644
EXECUTABLE_FILE_MODE = 0o100755

DEFAULT_AUTHOR_NAME = "docver[bot]"
DEFAULT_AUTHOR_EMAIL = "docver[bot]@users.noreply.github.io"


# =============================================================================
# TREE MUTATIONS
# =============================================================================

@dataclass(frozen=True)
class DeleteAll:
    """Clear the whole tree before applying additions."""


@dataclass(frozen=True)
class DeletePath:
    """Remove a file or a whole directory."""
    path: str


@dataclass(frozen=True)
class AddBytes:
    """Write `data` at `path`."""
    path: str
    data: bytes
    mode: int = DEFAULT_FILE_MODE


@dataclass(frozen=True)
class AddFile:
    """Write the contents of `source` at `path`; read when the transaction is built."""
    path: str
    source: Union[str, Path]
    mode: int = DEFAULT_FILE_MODE


TreeMutation = Union[DeleteAll, DeletePath, AddBytes, AddFile]


# =============================================================================
# IDENTITIES
# =============================================================================

@dataclass(frozen=True)
class Signature:
    """
    Author or committer identity.

    Any field left as None is resolved through IDENTITY_FIELDS.
    `when` is in fast-import raw format: "<epoch seconds> <+hhmm>".
    """
    name: Optional[str] = None
    email: Optional[str] = None
    when: Optional[str] = None


@dataclass(frozen=True)
class IdentityField:
    """How one identity field is resolved when no override is set."""
    role: str
    part: str
    env_var: str
    inherits: Optional[Tuple[str, str]] = None


IDENTITY_FIELDS: Tuple[IdentityField, ...] = (
    IdentityField("author", "name", "GIT_AUTHOR_NAME"),
    IdentityField("author", "email", "GIT_AUTHOR_EMAIL"),
    IdentityField("author", "when", "GIT_AUTHOR_DATE"),
    IdentityField("committer", "name", "GIT_COMMITTER_NAME", inherits=("author", "name")),
    IdentityField("committer", "email", "GIT_COMMITTER_EMAIL", inherits=("author", "email")),
    IdentityField("committer", "when", "GIT_COMMITTER_DATE", inherits=("author", "when")),
)


def sanitize_identity_part(value: str) -> str:
    """Strip characters that would break out of a fast-import identity line."""
    return value.replace('<', '').replace('>', '').replace('\n', '')


def now_when(now: Optional[float] = None) -> str:
    """Current time in fast-import raw date format (UTC)."""
    secs = int(time.time() if now is None else now)
    return f"{secs} +0000"


def resolve_identities(
    author: Optional[Signature] = None,
    committer: Optional[Signature] = None,
    environ: Optional[Mapping[str, str]] = None,
    now: Optional[float] = None,
) -> Tuple[Signature, Signature]:
    """
    Resolve author and committer identities field by field.

    Each field takes the first value available from: the explicit override,
    the role's GIT_* environment variable, the inherited author field
    (committer only), then the built-in default.

    Returns:
        Fully populated (author, committer)
    """
    if environ is None:
        environ = os.environ
    overrides = {
        "author": author or Signature(),
        "committer": committer or Signature(),
    }
    defaults = {
        "name": DEFAULT_AUTHOR_NAME,
        "email": DEFAULT_AUTHOR_EMAIL,
        "when": now_when(now),
    }

    resolved: Dict[Tuple[str, str], str] = {}
    for field in IDENTITY_FIELDS:
        value = getattr(overrides[field.role], field.part)
        if value is None and field.env_var in environ:
            value = sanitize_identity_part(environ[field.env_var])
        if value is None and field.inherits is not None:
            value = resolved[field.inherits]
        if value is None:
            value = defaults[field.part]
        resolved[(field.role, field.part)] = value

    def signature(role: str) -> Signature:
        return Signature(
            name=resolved[(role, "name")],
            email=resolved[(role, "email")],
            when=resolved[(role, "when")],
        )

    return signature("author"), signature("committer")


# =============================================================================
# TRANSACTION
# =============================================================================

@dataclass(frozen=True)
class FileEntry:
    """A file written inline by the commit."""
    path: str
    mode: int
    data: bytes


@dataclass(frozen=True)
class CommitTransaction:
    """
    Immutable description of one commit.

    Deletions and files are kept sorted by path, so two transactions built
    from the same mutations in a different order compare equal.
    """
    ref: str
    message: str
    parent: Optional[str] = None
    delete_all: bool = False
    deletions: Tuple[str, ...] = ()
    files: Tuple[FileEntry, ...] = ()
    author: Optional[Signature] = None
    committer: Optional[Signature] = None

    def file(self, path: str) -> Optional[FileEntry]:
        for entry in self.files:
            if entry.path == path:
                return entry
        return None

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(entry.path for entry in self.files)


def build_transaction(
    ref: str,
    message: str,
    mutations: Iterable[TreeMutation] = (),
    parent: Optional[str] = None,
    author: Optional[Signature] = None,
    committer: Optional[Signature] = None,
) -> CommitTransaction:
    """
    Build a commit transaction from a list of tree mutations.

    A later addition for the same path replaces the earlier one. File
    sources are read here.

    Args:
        ref: Ref the commit is written to (e.g., "refs/heads/gh-pages")
        message: Commit message
        mutations: DeleteAll / DeletePath / AddBytes / AddFile items
        parent: Parent commit-ish; None creates a root commit
        author: Identity override for the author
        committer: Identity override for the committer

    Raises:
        SourceReadError: An AddFile source cannot be read
    """
    delete_all = False
    deletions = set()
    files: Dict[str, FileEntry] = {}

    for mutation in mutations:
        if isinstance(mutation, DeleteAll):
            delete_all = True
        elif isinstance(mutation, DeletePath):
            deletions.add(mutation.path)
        elif isinstance(mutation, AddBytes):
            files[mutation.path] = FileEntry(mutation.path, mutation.mode, bytes(mutation.data))
        elif isinstance(mutation, AddFile):
            try:
                data = Path(mutation.source).read_bytes()
            except OSError as e:
                raise SourceReadError(str(mutation.source), e) from e
            files[mutation.path] = FileEntry(mutation.path, mutation.mode, data)
        else:
            raise TypeError(f"Unknown tree mutation: {mutation!r}")

    return CommitTransaction(
        ref=ref,
        message=message,
        parent=parent,
        delete_all=delete_all,
        deletions=tuple(sorted(deletions)),
        files=tuple(files[path] for path in sorted(files)),
        author=author,
        committer=committer,
    )


# =============================================================================
# RENDERING
# =============================================================================

def _name_field(name: str) -> str:
    return f"{name} " if name else ""


def _identity_line(role: str, signature: Signature) -> str:
    return f"{role} {_name_field(signature.name)}<{signature.email}> {signature.when}\n"


def render_transaction(
    txn: CommitTransaction,
    environ: Optional[Mapping[str, str]] = None,
    now: Optional[float] = None,
) -> bytes:
    """
    Render a transaction as a git fast-import stream.

    Args:
        txn: Transaction to render
        environ: Environment for identity resolution (default: os.environ)
        now: Epoch seconds used for default timestamps (default: current time)

    Returns:
        The complete stream, terminated by "done"
    """
    author, committer = resolve_identities(txn.author, txn.committer, environ, now)
    message = txn.message.encode('utf-8')

    out = bytearray()
    out += f"commit {txn.ref}\n".encode('utf-8')
    out += _identity_line("author", author).encode('utf-8')
    out += _identity_line("committer", committer).encode('utf-8')
    out += f"data {len(message)}\n".encode('utf-8')
    out += message + b"\n"

    if txn.parent is not None:
        out += f"from {txn.parent}\n".encode('utf-8')
    if txn.delete_all:
        out += b"deleteall\n"
    for path in txn.deletions:
        out += f"D {path}\n".encode('utf-8')

    for entry in txn.files:
        out += f"M {entry.mode:06o} inline {entry.path}\n".encode('utf-8')
        out += f"data {len(entry.data)}\n".encode('utf-8')
        out += entry.data + b"\n"

    out += b"done\n"
    return bytes(out)
