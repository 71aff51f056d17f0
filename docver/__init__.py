"""
docver - Deploy versioned static sites to a git branch.

docver commits a built site into a dedicated branch (gh-pages by default)
as a new version, keeping every earlier version beside it, without ever
checking that branch out. Each deploy is a single commit applied with
git fast-import.

Quick Start:
    import docver

    # Deploy ./site as 1.2.0 and point "latest" at it
    service = docver.DeployService()
    service.deploy(docver.DeployOptions(
        source_dir="site", version="1.2.0", aliases=["latest"],
    ))

    # Work with the versions model directly
    registry = docver.VersionRegistry()
    registry.upsert("1.2.0", aliases={"latest"})
    print(registry.to_document())
    print(registry.alias_redirect_document("latest"))

Layout of the managed branch:
    versions.json        Deployed versions, newest first
    _redirects           Alias rewrite rules (/latest/* -> /1.2.0/:splat)
    .nojekyll            Disables Jekyll processing on GitHub Pages
    1.2.0/...            One directory per version
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    Version,
    VersionRegistry,
    CommitTransaction,
    Signature,
    DeleteAll,
    DeletePath,
    AddBytes,
    AddFile,
    build_transaction,
    render_transaction,
)

# Errors
from .errors import (
    DocverError,
    SerializationError,
    DuplicateTagError,
    SourceReadError,
    SpawnError,
    NonFastForwardError,
    ExecutionFailedError,
    AliasConflictError,
    EmptySourceError,
)

# Services (for advanced use)
from .services import DeployService, DeployOptions, DeployResult, apply_transaction

# Configuration
from .config import load_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Version",
    "VersionRegistry",
    "CommitTransaction",
    "Signature",
    "DeleteAll",
    "DeletePath",
    "AddBytes",
    "AddFile",
    "build_transaction",
    "render_transaction",
    # Errors
    "DocverError",
    "SerializationError",
    "DuplicateTagError",
    "SourceReadError",
    "SpawnError",
    "NonFastForwardError",
    "ExecutionFailedError",
    "AliasConflictError",
    "EmptySourceError",
    # Services
    "DeployService",
    "DeployOptions",
    "DeployResult",
    "apply_transaction",
    # Configuration
    "load_config",
]
