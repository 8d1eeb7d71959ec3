#!/usr/bin/env python3

import click
import logging
import sys

from npm_migrate import __version__
from npm_migrate.config import load_config, MigrationConfig
from npm_migrate.exit_codes import (
    NOT_IMPLEMENTED,
    USAGE_ERROR,
    INTERRUPTED,
    aggregate_exit_code,
    exit_with_code,
)
from npm_migrate.reporter import Reporter
from npm_migrate.render import render_summary
from npm_migrate.services.migration_service import MigrationService

USAGE = 'usage: migrate-npm-registry [pkg_name ...] source_registry target_registry'
NO_PACKAGES = 'Fetching list of all packages not implemented. Please specify package name(s).'


def _configure_logging(config: dict, debug: bool) -> None:
    root = logging.getLogger()
    if debug:
        root.setLevel(logging.DEBUG)
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        for handler in root.handlers:
            handler.setFormatter(formatter)
        return

    level = str(config.get('logging', {}).get('level', 'INFO')).upper()
    root.setLevel(getattr(logging, level, logging.INFO))


@click.command(
    'migrate-npm-registry',
    context_settings={'ignore_unknown_options': True, 'help_option_names': []},
)
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.option('--json', 'output_json', is_flag=True, help='Output one JSON result per package')
@click.option('--pretty', is_flag=True, help='Print a summary table when finished')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(version=__version__)
def cli(args, output_json: bool, pretty: bool, debug: bool):
    """Copy package versions missing on TARGET_REGISTRY from SOURCE_REGISTRY.

    \b
    Examples:
        migrate-npm-registry left-pad https://registry.npmjs.org http://npm.internal:4873
        migrate-npm-registry @scope/a b https://registry.npmjs.org http://npm.internal:4873
    """
    args = list(args)
    if len(args) < 2 or '--help' in args or '-h' in args:
        exit_with_code(USAGE_ERROR, USAGE)

    target_registry = args.pop()
    source_registry = args.pop()

    if not args:
        exit_with_code(NOT_IMPLEMENTED, NO_PACKAGES)

    config = load_config()
    _configure_logging(config, debug)

    settings = MigrationConfig.from_config(config, source_registry, target_registry)
    packages = list(dict.fromkeys(args))

    reporter = Reporter(prefix_packages=len(packages) > 1, output_json=output_json)
    service = MigrationService(settings, reporter=reporter)

    results = []
    try:
        for result in service.migrate(packages):
            reporter.job_finished(result)
            results.append(result)
    except KeyboardInterrupt:
        exit_with_code(INTERRUPTED, 'Interrupted')

    if pretty and not output_json:
        render_summary(results)

    sys.exit(aggregate_exit_code(results))


def main():
    cli()

if __name__ == "__main__":
    main()
