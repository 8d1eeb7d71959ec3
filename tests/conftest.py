"""
Shared fixtures for migrate-npm-registry tests.
"""

import io
import json
import tarfile
from contextlib import contextmanager

import pytest

from npm_migrate.config import MigrationConfig
from npm_migrate.errors import NetworkUnreachableError

SOURCE = "https://source.example.com/"
TARGET = "https://target.example.com"


def build_tarball(entries, compress=True):
    """
    Build a package tarball in memory.

    entries: list of (name, content) where content is bytes for a file
    and None for a directory.
    """
    buffer = io.BytesIO()
    mode = 'w:gz' if compress else 'w'
    with tarfile.open(fileobj=buffer, mode=mode) as tar:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            info.mtime = 1500000000
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def package_document(name, versions, base="https://source.example.com"):
    """Registry metadata document for ``versions``."""
    return {
        "name": name,
        "versions": {
            v: {"dist": {"tarball": f"{base}/{name}/-/{name}-{v}.tgz"}}
            for v in versions
        },
    }


class FakeRegistry:
    """
    In-memory stand-in for RegistryClient.

    documents: {(registry, package): (status, body)}; missing keys answer 404
    tarballs: {url: bytes}; missing urls raise like a refused connection
    unreachable: registries that fail as if DNS lookup failed
    """

    def __init__(self, documents=None, tarballs=None, unreachable=()):
        self.documents = documents or {}
        self.tarballs = tarballs or {}
        self.unreachable = set(unreachable)
        self.requested = []

    def add_package(self, registry, name, versions, base="https://source.example.com", with_tarballs=True):
        document = package_document(name, versions, base)
        self.documents[(registry, name)] = (200, json.dumps(document))
        if with_tarballs:
            for version, data in document["versions"].items():
                self.tarballs[data["dist"]["tarball"]] = build_tarball([
                    ("package/package.json", json.dumps({"name": name, "version": version}).encode()),
                    ("package/index.js", b"module.exports = 1;\n"),
                ])
        return document

    def fetch_document(self, registry, package_name):
        self.requested.append((registry, package_name))
        if registry in self.unreachable:
            raise NetworkUnreachableError(f"Cannot reach {registry}: getaddrinfo ENOTFOUND")
        return self.documents.get((registry, package_name), (404, "Not Found"))

    @contextmanager
    def open_tarball(self, url):
        import requests
        if url not in self.tarballs:
            raise requests.ConnectionError(f"Connection refused: {url}")
        yield io.BytesIO(self.tarballs[url])


@pytest.fixture
def make_tarball():
    return build_tarball


@pytest.fixture
def settings(tmp_path):
    return MigrationConfig(
        source_registry=SOURCE,
        target_registry=TARGET,
        work_dir=tmp_path / "work",
        publish_command=("npm", "publish"),
        parallel_jobs=2,
        parallel_transfers=2,
        parallel_publishes=2,
    )


@pytest.fixture
def fake_registry():
    return FakeRegistry()
