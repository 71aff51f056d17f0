"""
List command for docver.
"""

import json

import click

from ..cli_utils import CliContext, handle_errors
from ..render import render_version_list
from ..services.deploy_service import DeployService


@click.command('list')
@click.argument('identifiers', nargs=-1)
@click.option('-j', '--json', 'json_output', is_flag=True,
              help='Output the versions.json document instead of a listing')
@click.pass_obj
@handle_errors
def list_cmd(obj: CliContext, identifiers, json_output):
    """List all versions of the site.

    IDENTIFIERS: Only show these versions (tags or aliases)

    Examples:

    \b
        docver list
        docver list latest 1.0.0
        docver --branch site list --json
    """
    git_args = obj.git_args
    service = DeployService(config=obj.config, repo_path=obj.repo_path)
    registry, rows = service.list_versions(
        git_args.remote,
        git_args.branch,
        git_args.deploy_prefix,
        identifiers,
        git_args.ignore_remote_status,
    )

    if json_output:
        if not identifiers:
            click.echo(registry.to_document(), nl=False)
            return
        wanted = {version.tag for version, _ in rows}
        entries = [entry for entry in registry.to_data() if entry['version'] in wanted]
        click.echo(json.dumps(entries, indent=2, ensure_ascii=False))
        return

    render_version_list(rows)
