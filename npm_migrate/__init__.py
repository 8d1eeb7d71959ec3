"""
npm_migrate - copy npm package versions between registries.

For each requested package, the versions published on a source registry
but missing on a target registry are downloaded, re-packed and published
to the target with ``npm publish``.

Quick Start:
    from npm_migrate.config import load_config, MigrationConfig
    from npm_migrate.services import MigrationService

    settings = MigrationConfig.from_config(
        load_config(),
        "https://registry.npmjs.org",
        "http://npm.internal:4873",
    )
    service = MigrationService(settings)

    for result in service.migrate(["left-pad"]):
        print(result.package, result.success)

Command line:
    migrate-npm-registry [pkg_name ...] source_registry target_registry
"""

__version__ = "1.0.0"
