"""
Migration service for migrate-npm-registry.

Runs one pipeline per package:

    fetch metadata -> select versions -> locate tarballs
        -> transfer archives -> publish archives

Stages within a job run in order. Jobs run concurrently and never end the
process themselves; each hands back a JobResult and the caller decides
the exit code once all of them have settled.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Generator, Iterable, List, Optional

from ..config import MigrationConfig
from ..domain.job import MigrationJob
from ..domain.operation import JobResult, OperationStatus, VersionOutcome
from ..errors import MigrationError, UnhandledError
from ..infra.publish_client import PublishClient
from ..infra.registry_client import RegistryClient, package_path
from ..reporter import Reporter
from .archive_service import ArchiveTransfer
from .metadata_service import MetadataFetcher
from .publish_service import Publisher
from .version_selector import SelectionPolicy, locate_tarballs, select_versions

logger = logging.getLogger(__name__)

SIBLING_FAILED = "not attempted: another version of this package failed"


class MigrationService:
    """
    Migrates packages from a source registry to a target registry.

    Example:
        settings = MigrationConfig.from_config(load_config(), source, target)
        service = MigrationService(settings)

        for result in service.migrate(["left-pad", "is-odd"]):
            print(result.package, result.success)
    """

    def __init__(
        self,
        settings: MigrationConfig,
        registry_client: Optional[RegistryClient] = None,
        publish_client: Optional[PublishClient] = None,
        reporter: Optional[Reporter] = None,
    ):
        """
        Initialize MigrationService.

        Args:
            settings: Immutable run configuration
            registry_client: HTTP client (creates new if None)
            publish_client: Publish command wrapper (creates new if None)
            reporter: Progress printer (creates new if None)
        """
        self.settings = settings
        self.registry = registry_client or RegistryClient(
            timeout=settings.timeout, user_agent=settings.user_agent
        )
        self.publish_client = publish_client or PublishClient(settings.publish_command)
        self.reporter = reporter or Reporter()
        self.fetcher = MetadataFetcher(self.registry)
        self.policy = SelectionPolicy(
            force=settings.force, pinned_version=settings.pinned_version
        )
        self.last_results: List[JobResult] = []

    def migrate(self, packages: Iterable[str]) -> Generator[JobResult, None, List[JobResult]]:
        """
        Migrate several packages concurrently.

        Yields each JobResult as its job finishes; returns all of them.
        """
        names = list(dict.fromkeys(packages))
        results: List[JobResult] = []
        self.last_results = results

        with ThreadPoolExecutor(max_workers=self.settings.parallel_jobs) as executor:
            futures = {executor.submit(self.run_job, name): name for name in names}
            for future in as_completed(futures):
                result = future.result()
                results.append(result)
                yield result

        return results

    def run_job(self, package: str) -> JobResult:
        """
        Migrate one package.

        Never raises for migration failures; they end up in the JobResult.
        """
        result = JobResult(package=package)
        job = MigrationJob(
            package=package,
            source_registry=self.settings.source_registry,
            target_registry=self.settings.target_registry,
        )

        try:
            self._prepare(job, result)
            if job.tarballs:
                self._transfer(job, result)
            if job.archives:
                self._publish(job, result)
        except MigrationError as e:
            logger.debug(f"{package}: {e}")
            result.error = e
        except Exception as e:
            logger.exception(f"{package}: unexpected failure")
            result.error = UnhandledError(e)

        return result

    def _prepare(self, job: MigrationJob, result: JobResult) -> None:
        """Fetch metadata, decide versions, resolve tarball URLs."""
        source = self.fetcher.fetch_source(job.source_registry, job.package)
        target = self.fetcher.fetch_target(job.target_registry, job.package)

        selection = select_versions(source, target, self.policy)
        for decision in selection.skipped:
            self.reporter.skipped(job.package, decision.message)
            result.add_outcome(VersionOutcome(
                version=decision.version,
                status=OperationStatus.SKIPPED,
                stage="select",
                message=decision.reason,
            ))

        job.selected = selection.retained
        job.tarballs = locate_tarballs(selection.retained)
        if not job.tarballs:
            logger.info(f"{job.package}: nothing to migrate")

    def _transfer(self, job: MigrationJob, result: JobResult) -> None:
        # Scoped packages can share a tarball basename
        transfer = ArchiveTransfer(
            self.registry,
            self.settings.work_dir / package_path(job.package),
            parallel=self.settings.parallel_transfers,
            on_entry=lambda name: self.reporter.entry(job.package, name),
        )
        outcomes = transfer.transfer_all(job.tarballs)
        failed = any(task.error is not None for task in outcomes)

        for task in outcomes:
            url = job.tarball_url(task.key)
            if task.error is not None:
                result.add_outcome(VersionOutcome(
                    version=task.key,
                    status=OperationStatus.FAILED,
                    stage="transfer",
                    tarball_url=url,
                    error=str(task.error),
                ))
            elif task.cancelled or failed:
                # One failed transfer fails the job, so finished siblings are not published
                result.add_outcome(VersionOutcome(
                    version=task.key,
                    status=OperationStatus.CANCELLED,
                    stage="transfer",
                    tarball_url=url,
                    archive_path=str(task.value) if task.value else None,
                    message=SIBLING_FAILED,
                ))
            else:
                job.archives.append((task.key, task.value))

    def _publish(self, job: MigrationJob, result: JobResult) -> None:
        publisher = Publisher(
            self.publish_client,
            job.target_registry,
            parallel=self.settings.parallel_publishes,
        )
        archives = dict(job.archives)

        for task in publisher.publish_all(job.archives):
            outcome = VersionOutcome(
                version=task.key,
                status=OperationStatus.SUCCESS,
                stage="publish",
                tarball_url=job.tarball_url(task.key),
                archive_path=str(archives[task.key]),
            )
            if task.error is not None:
                outcome.status = OperationStatus.FAILED
                outcome.error = str(task.error)
            elif task.cancelled:
                outcome.status = OperationStatus.CANCELLED
                outcome.message = SIBLING_FAILED
            else:
                outcome.output = task.value or None
            result.add_outcome(outcome)
