"""
Service layer for docver.

Services orchestrate domain objects and infrastructure:
- DeployService: Deploy a built site and list deployed versions
"""

from .deploy_service import (
    DeployService,
    DeployOptions,
    DeployResult,
    SourceFile,
    apply_transaction,
    collect_source_files,
)

__all__ = [
    'DeployService',
    'DeployOptions',
    'DeployResult',
    'SourceFile',
    'apply_transaction',
    'collect_source_files',
]
