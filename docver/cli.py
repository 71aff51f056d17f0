#!/usr/bin/env python3

import click

from docver import __version__
from docver.config import load_config, configure_logging
from docver.cli_utils import CliContext, GitArgs, handle_errors
from docver.commands.deploy import deploy_cmd
from docver.commands.list import list_cmd


@click.group()
@click.version_option(version=__version__, prog_name="docver")
@click.option('-r', '--remote', default=None, help='Remote to fetch from and push to (default: origin)')
@click.option('-b', '--branch', default=None, help='Branch the site is deployed to (default: gh-pages)')
@click.option('-m', '--message', default=None, help='Commit message for the deploy')
@click.option('-p', '--push', is_flag=True, help='Push the branch after committing')
@click.option('--allow-empty', is_flag=True, help='Allow deploying an empty directory')
@click.option('--deploy-prefix', default=None, help='Subdirectory of the branch to deploy versions into')
@click.option('--ignore-remote-status', is_flag=True, help='Do not fetch; use the local branch as is')
@click.option('-v', '--verbose', is_flag=True, help='Show debug logging on stderr')
@click.pass_context
@handle_errors
def cli(ctx, remote, branch, message, push, allow_empty, deploy_prefix, ignore_remote_status, verbose):
    """docver - Deploy versioned static sites to a git branch.

    Each deploy adds one commit to the branch (gh-pages by default) with the
    site under VERSION/, an updated versions.json and alias rewrite rules,
    without checking the branch out.
    """
    config = load_config()
    configure_logging(config, verbose)

    ctx.obj = CliContext(
        config=config,
        git_args=GitArgs(
            remote=remote or config.get("remote", "origin"),
            branch=branch or config.get("branch", "gh-pages"),
            message=message,
            push=push,
            allow_empty=allow_empty,
            deploy_prefix=deploy_prefix if deploy_prefix is not None else config.get("deploy_prefix", ""),
            ignore_remote_status=ignore_remote_status,
        ),
    )


cli.add_command(deploy_cmd)
cli.add_command(list_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
