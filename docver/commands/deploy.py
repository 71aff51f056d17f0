"""
Deploy command for docver.

Commits a built site into the managed branch as a new version.
"""

import json
from pathlib import Path

import click

from ..cli_utils import CliContext, handle_errors
from ..services.deploy_service import DeployOptions, DeployService


@click.command('deploy')
@click.argument('source_dir', type=click.Path(file_okay=False, path_type=Path))
@click.argument('version')
@click.argument('aliases', nargs=-1)
@click.option('-t', '--title', help='Title shown for this version (default: the version)')
@click.option('-u', '--update-aliases', is_flag=True,
              help='Move aliases that currently point to another version')
@click.option('--default-alias', default=None,
              help='Alias served at the site root (default: from config, "latest")')
@click.option('--json', 'json_output', is_flag=True, help='Output the result as JSON')
@click.pass_obj
@handle_errors
def deploy_cmd(obj: CliContext, source_dir, version, aliases, title, update_aliases,
               default_alias, json_output):
    """Deploy SOURCE_DIR as VERSION, optionally under ALIASES.

    The files are committed to the managed branch under VERSION/ without
    checking the branch out. versions.json and the alias rewrite rules are
    updated in the same commit.

    Examples:

    \b
        docver deploy site/ 1.2.0 latest stable --title "1.2 (LTS)"
        docver --push deploy build/html dev
        docver --deploy-prefix docs deploy site/ 2.0.0 latest -u
    """
    git_args = obj.git_args
    options = DeployOptions(
        source_dir=source_dir,
        version=version,
        aliases=list(aliases),
        title=title,
        message=git_args.message,
        remote=git_args.remote,
        branch=git_args.branch,
        deploy_prefix=git_args.deploy_prefix,
        default_alias=default_alias or obj.config.get("default_alias"),
        push=git_args.push,
        allow_empty=git_args.allow_empty,
        update_aliases=update_aliases,
        ignore_remote_status=git_args.ignore_remote_status,
    )

    service = DeployService(config=obj.config, repo_path=obj.repo_path)
    result = service.deploy(options)

    if json_output:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    click.echo(result.message)
    if result.pushed:
        click.echo(f"Pushed {git_args.branch} to {git_args.remote}")
