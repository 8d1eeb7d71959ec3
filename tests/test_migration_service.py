"""
End-to-end tests for the per-package migration pipeline.

Registries are faked in memory; archives are really written to a
temporary work directory; the publish command is mocked.
"""

import dataclasses
import json
import tarfile
from unittest.mock import MagicMock

import pytest

from npm_migrate.domain.operation import OperationStatus
from npm_migrate.errors import (
    MalformedMetadataError,
    MetadataParseError,
    NetworkUnreachableError,
    SourceFetchError,
)
from npm_migrate.infra.publish_client import PublishClient, PublishRun
from npm_migrate.reporter import Reporter
from npm_migrate.services.migration_service import MigrationService

SOURCE = "https://source.example.com/"
TARGET = "https://target.example.com"


def ok_publisher(failing=()):
    """Mock PublishClient; archives whose name contains any of ``failing`` write to stderr."""
    client = MagicMock(spec=PublishClient)

    def publish(path, registry, cancel_event=None):
        filename = path.rsplit('/', 1)[-1]
        if any(marker in filename for marker in failing):
            return PublishRun(["npm", "publish"], 0, "", f"npm ERR! cannot publish {filename}")
        return PublishRun(["npm", "publish"], 0, f"+ {filename}\n", "")

    client.publish.side_effect = publish
    return client


@pytest.fixture
def lines():
    return []


@pytest.fixture
def make_service(settings, fake_registry, lines):
    def make(publish_client=None, **overrides):
        run_settings = dataclasses.replace(settings, **overrides)
        return MigrationService(
            run_settings,
            registry_client=fake_registry,
            publish_client=publish_client or ok_publisher(),
            reporter=Reporter(echo=lines.append),
        )
    return make


def published_archives(publish_client):
    return sorted(call.args[0].rsplit('/', 1)[-1] for call in publish_client.publish.call_args_list)


class TestRunJob:

    def test_migrates_versions_missing_on_target(self, make_service, fake_registry, lines, settings):
        fake_registry.add_package(SOURCE, "pkg", ["0.0.1", "0.0.2", "0.0.3"])
        fake_registry.add_package(TARGET, "pkg", ["0.0.1"], with_tarballs=False)
        publisher = ok_publisher()

        result = make_service(publisher).run_job("pkg")

        assert result.success
        assert published_archives(publisher) == ["pkg-0.0.2.tgz", "pkg-0.0.3.tgz"]
        assert lines[0] == "0.0.1 already exists on target. Skipping."
        assert "package/package.json" in lines
        assert result.skipped == 1
        assert result.successful == 2
        for call in publisher.publish.call_args_list:
            assert call.args[1] == TARGET
        assert (settings.work_dir / "pkg" / "pkg-0.0.2.tgz").exists()

    def test_pinned_version_reproduces_single_version_filter(self, make_service, fake_registry, lines):
        fake_registry.add_package(SOURCE, "pkg", ["0.0.1", "0.0.2", "0.0.3"])
        fake_registry.add_package(TARGET, "pkg", ["0.0.1"], with_tarballs=False)
        publisher = ok_publisher()

        result = make_service(publisher, pinned_version="0.0.3").run_job("pkg")

        assert result.success
        assert published_archives(publisher) == ["pkg-0.0.3.tgz"]
        assert lines[:2] == [
            "0.0.1 already exists on target. Skipping.",
            "0.0.2 does not match pinned version 0.0.3. Skipping.",
        ]

    def test_target_404_without_json_migrates_everything(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "pkg", ["1.0.0", "1.1.0"])
        fake_registry.documents[(TARGET, "pkg")] = (404, "Not Found")
        publisher = ok_publisher()

        result = make_service(publisher).run_job("pkg")

        assert result.success
        assert published_archives(publisher) == ["pkg-1.0.0.tgz", "pkg-1.1.0.tgz"]

    def test_force_republishes_versions_on_target(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "pkg", ["1.0.0"])
        fake_registry.add_package(TARGET, "pkg", ["1.0.0"], with_tarballs=False)
        publisher = ok_publisher()

        result = make_service(publisher, force=True).run_job("pkg")

        assert result.success
        assert published_archives(publisher) == ["pkg-1.0.0.tgz"]

    def test_nothing_to_migrate(self, make_service, fake_registry, lines):
        fake_registry.add_package(SOURCE, "pkg", ["1.0.0"])
        fake_registry.add_package(TARGET, "pkg", ["1.0.0"], with_tarballs=False)
        publisher = ok_publisher()

        result = make_service(publisher).run_job("pkg")

        assert result.success
        publisher.publish.assert_not_called()
        assert lines == ["1.0.0 already exists on target. Skipping."]

    def test_every_source_version_gets_one_outcome(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "pkg", ["1.0.0", "1.1.0", "2.0.0", "2.1.0"])
        fake_registry.add_package(TARGET, "pkg", ["1.1.0"], with_tarballs=False)

        result = make_service(ok_publisher(failing=("2.0.0",))).run_job("pkg")

        versions = [o.version for o in result.outcomes]
        assert sorted(versions) == ["1.0.0", "1.1.0", "2.0.0", "2.1.0"]
        assert len(versions) == len(set(versions))

    def test_republished_archive_matches_source(self, make_service, fake_registry, settings):
        document = fake_registry.add_package(SOURCE, "pkg", ["1.0.0"])

        make_service().run_job("pkg")

        with tarfile.open(settings.work_dir / "pkg" / "pkg-1.0.0.tgz") as tar:
            names = tar.getnames()
            manifest = json.load(tar.extractfile("package/package.json"))
        assert names == ["package/package.json", "package/index.js"]
        assert manifest == {"name": "pkg", "version": "1.0.0"}
        assert document["versions"]["1.0.0"]["dist"]["tarball"].endswith("pkg-1.0.0.tgz")


class TestJobFailures:

    def test_source_unreachable(self, make_service, fake_registry):
        fake_registry.unreachable.add(SOURCE)

        result = make_service().run_job("pkg")

        assert not result.success
        assert isinstance(result.error, NetworkUnreachableError)

    def test_source_not_found(self, make_service):
        result = make_service().run_job("missing")

        assert isinstance(result.error, SourceFetchError)

    def test_source_body_not_json(self, make_service, fake_registry):
        fake_registry.documents[(SOURCE, "pkg")] = (200, "<!doctype html>")

        result = make_service().run_job("pkg")

        assert isinstance(result.error, MetadataParseError)

    def test_version_without_tarball(self, make_service, fake_registry):
        fake_registry.documents[(SOURCE, "pkg")] = (200, json.dumps({"versions": {"1.0.0": {}}}))

        result = make_service().run_job("pkg")

        assert isinstance(result.error, MalformedMetadataError)

    def test_publish_stderr_fails_that_version(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "pkg", ["1.0.0"])

        result = make_service(ok_publisher(failing=("1.0.0",))).run_job("pkg")

        assert not result.success
        assert result.error is None
        [outcome] = result.outcomes
        assert outcome.status == OperationStatus.FAILED
        assert outcome.stage == "publish"
        assert "npm ERR! cannot publish" in outcome.error

    def test_transfer_failure_skips_publishing(self, make_service, fake_registry):
        document = fake_registry.add_package(SOURCE, "pkg", ["1.0.0", "2.0.0"])
        del fake_registry.tarballs[document["versions"]["2.0.0"]["dist"]["tarball"]]
        publisher = ok_publisher()

        result = make_service(publisher).run_job("pkg")

        assert not result.success
        publisher.publish.assert_not_called()
        statuses = {o.version: (o.status, o.stage) for o in result.outcomes}
        assert statuses["2.0.0"] == (OperationStatus.FAILED, "transfer")
        assert statuses["1.0.0"] == (OperationStatus.CANCELLED, "transfer")

    def test_unexpected_errors_become_results(self, make_service, fake_registry):
        fake_registry.fetch_document = MagicMock(side_effect=RuntimeError("boom"))

        result = make_service().run_job("pkg")

        assert not result.success
        assert "RuntimeError: boom" in str(result.error)


class TestMigrate:

    def test_unreachable_package_does_not_stop_siblings(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "good", ["1.0.0"])
        fake_registry.documents[(SOURCE, "bad")] = (200, "not json")

        service = make_service()
        results = {r.package: r for r in service.migrate(["good", "bad"])}

        assert results["good"].success
        assert isinstance(results["bad"].error, MetadataParseError)
        assert len(service.last_results) == 2

    def test_scopes_sharing_a_basename_keep_separate_archives(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "@a/utils", ["1.0.0"])
        fake_registry.add_package(SOURCE, "@b/utils", ["1.0.0"])
        publisher = ok_publisher()

        results = list(make_service(publisher).migrate(["@a/utils", "@b/utils"]))

        assert all(r.success for r in results)
        paths = [call.args[0] for call in publisher.publish.call_args_list]
        assert len(set(paths)) == 2
        for path in paths:
            with tarfile.open(path) as tar:
                manifest = json.load(tar.extractfile("package/package.json"))
            scope = "@a/utils" if "@a%2futils" in path else "@b/utils"
            assert manifest["name"] == scope

    def test_duplicate_names_run_once(self, make_service, fake_registry):
        fake_registry.add_package(SOURCE, "pkg", ["1.0.0"])
        publisher = ok_publisher()

        results = list(make_service(publisher).migrate(["pkg", "pkg"]))

        assert len(results) == 1
        assert publisher.publish.call_count == 1
