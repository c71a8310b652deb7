"""Runs discovery and custom namespace jobs across roles and regions."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Protocol, Union

from cwexporter.logging import Logger
from cwexporter.model import (
    CloudwatchData,
    CloudwatchMetricResult,
    CustomNamespaceJob,
    DiscoveryJob,
    JobsConfig,
    Role,
    ScrapeContext,
    Tag,
    TaggedResource,
    TaggedResourceResult,
)


class ErrorType(str, Enum):
    """The stage of a job run that failed."""

    ACCOUNT = "Account for job was not found"
    RESOURCE_METADATA = "Failed to run resource metadata for job"
    CLOUDWATCH_COLLECTION = "Failed to gather cloudwatch metrics for job"


@dataclass(frozen=True)
class Account:
    id: str = ""
    alias: str = ""


@dataclass(frozen=True)
class JobContext:
    """What is learned about a job while it runs, used for output and errors."""

    account: Account = field(default_factory=Account)
    namespace: str = ""
    region: str = ""
    role_arn: str = ""

    def to_scrape_context(self, custom_tags) -> ScrapeContext:
        return ScrapeContext(
            region=self.region,
            account_id=self.account.id,
            account_alias=self.account.alias,
            custom_tags=list(custom_tags),
        )


@dataclass
class JobError:
    """A failure of one job run; the scrape as a whole carries on."""

    context: JobContext
    error_type: ErrorType
    err: Optional[BaseException] = None

    def to_logger_keyvals(self) -> list:
        return [
            "account_id", self.context.account.id,
            "namespace", self.context.namespace,
            "region", self.context.region,
            "role_arn", self.context.role_arn,
        ]


@dataclass
class DiscoveryRunnerJob:
    """A discovery job together with the resources found for it."""

    job: DiscoveryJob
    resources: list[TaggedResource] = field(default_factory=list)

    def namespace(self) -> str:
        return self.job.type

    def custom_tags(self) -> list[Tag]:
        return self.job.custom_tags


@dataclass
class CustomNamespaceRunnerJob:
    """A custom namespace job to collect metrics for."""

    job: CustomNamespaceJob

    def namespace(self) -> str:
        return self.job.namespace

    def custom_tags(self) -> list[Tag]:
        return self.job.custom_tags


RunnerJob = Union[DiscoveryRunnerJob, CustomNamespaceRunnerJob]


class AccountClient(Protocol):
    def get_account(self) -> str: ...

    def get_account_alias(self) -> str: ...


class ResourceMetadataRunner(Protocol):
    def run(self, region: str, job: DiscoveryJob) -> list[TaggedResource]: ...


class CloudwatchRunner(Protocol):
    def run(self) -> list[CloudwatchData]: ...


class RunnerFactory(Protocol):
    def get_account_client(self, region: str, role: Role) -> AccountClient: ...

    def new_resource_metadata_runner(
        self, logger: Logger, region: str, role: Role
    ) -> ResourceMetadataRunner: ...

    def new_cloudwatch_runner(
        self, logger: Logger, region: str, role: Role, job: RunnerJob
    ) -> CloudwatchRunner: ...


class _Once:
    """Calls a function once and replays its result or exception afterwards."""

    def __init__(self, fn: Callable[[], Account]) -> None:
        self._fn = fn
        self._lock = threading.Lock()
        self._done = False
        self._result: Optional[Account] = None
        self._error: Optional[BaseException] = None

    def __call__(self) -> Account:
        with self._lock:
            if not self._done:
                try:
                    self._result = self._fn()
                except Exception as exc:  # noqa: BLE001 - replayed to every caller
                    self._error = exc
                self._done = True
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result


@dataclass
class _Outcome:
    resources: Optional[TaggedResourceResult] = None
    metrics: Optional[CloudwatchMetricResult] = None
    errors: list[JobError] = field(default_factory=list)


def _visit_jobs(jobs_cfg: JobsConfig) -> Iterator[tuple[Any, Role, str]]:
    """Yield every (job, role, region) of the discovery and custom namespace jobs."""
    for job in jobs_cfg.discovery_jobs:
        for role in job.roles:
            for region in job.regions:
                yield job, role, region
    for job in jobs_cfg.custom_namespace_jobs:
        for role in job.roles:
            for region in job.regions:
                yield job, role, region


class Scraper:
    """Runs every configured job for each of its roles and regions concurrently."""

    def __init__(self, logger, jobs_cfg, runner_factory) -> None:
        self._logger: Logger = logger
        self._jobs_cfg: JobsConfig = jobs_cfg
        self._factory: RunnerFactory = runner_factory

    def _account_loader(self, region: str, role: Role) -> Callable[[], Account]:
        def load() -> Account:
            client = self._factory.get_account_client(region, role)
            try:
                account_id = client.get_account()
            except Exception as exc:
                raise RuntimeError(f"failed to get Account: {exc}") from exc
            try:
                alias = client.get_account_alias()
            except Exception as exc:  # noqa: BLE001 - the alias is optional
                self._logger.warn(
                    "Failed to get optional account alias from account",
                    "err", exc, "account_id", account_id,
                )
                alias = ""
            return Account(id=account_id, alias=alias)

        return load

    def scrape(self):
        """Run all jobs; return (resource results, metric results, job errors)."""
        accounts: dict[tuple[Role, str], _Once] = {}
        tasks = list(_visit_jobs(self._jobs_cfg))
        for _, role, region in tasks:
            accounts.setdefault((role, region), _Once(self._account_loader(region, role)))

        self._logger.debug("Starting job runs")
        outcomes: list[_Outcome] = []
        if tasks:
            with ThreadPoolExecutor(max_workers=len(tasks)) as pool:
                outcomes = list(
                    pool.map(
                        lambda t: self._run_job(t[0], t[1], t[2], accounts[(t[1], t[2])]),
                        tasks,
                    )
                )

        resource_results = [o.resources for o in outcomes if o.resources is not None]
        metric_results = [o.metrics for o in outcomes if o.metrics is not None]
        job_errors = [err for o in outcomes for err in o.errors]
        self._logger.debug(
            "Finished job runs",
            "resource_results", len(resource_results),
            "metric_results", len(metric_results),
        )
        return resource_results, metric_results, job_errors

    def _run_job(self, job: Any, role: Role, region: str, account: _Once) -> _Outcome:
        outcome = _Outcome()
        if isinstance(job, DiscoveryJob):
            namespace = job.type
        elif isinstance(job, CustomNamespaceJob):
            namespace = job.namespace
        else:
            self._logger.error(
                TypeError(f"config type of {type(job).__name__} is not supported"),
                "Unexpected job type",
            )
            return outcome

        context = JobContext(namespace=namespace, region=region, role_arn=role.role_arn)
        job_logger = self._logger.with_(
            "namespace", context.namespace, "region", context.region, "arn", context.role_arn
        )

        try:
            acct = account()
        except Exception as exc:  # noqa: BLE001
            outcome.errors.append(JobError(context, ErrorType.ACCOUNT, exc))
            return outcome
        context = JobContext(
            account=acct, namespace=namespace, region=region, role_arn=role.role_arn
        )
        job_logger = job_logger.with_("account_id", acct.id)

        job_to_run: RunnerJob
        if isinstance(job, DiscoveryJob):
            job_logger.debug("Starting resource discovery")
            runner = self._factory.new_resource_metadata_runner(job_logger, region, role)
            try:
                resources = runner.run(region, job)
            except Exception as exc:  # noqa: BLE001
                outcome.errors.append(JobError(context, ErrorType.RESOURCE_METADATA, exc))
                return outcome
            resources = list(resources or [])
            if resources:
                outcome.resources = TaggedResourceResult(
                    context=context.to_scrape_context(job.custom_tags), data=resources
                )
            else:
                job_logger.debug("No tagged resources")
            job_logger.debug(
                "Resource discovery finished", "number_of_discovered_resources", len(resources)
            )
            job_to_run = DiscoveryRunnerJob(job=job, resources=resources)
        else:
            job_to_run = CustomNamespaceRunnerJob(job=job)

        job_logger.debug("Starting cloudwatch metrics runner")
        cw_runner = self._factory.new_cloudwatch_runner(job_logger, region, role, job_to_run)
        try:
            metrics = cw_runner.run()
        except Exception as exc:  # noqa: BLE001
            outcome.errors.append(JobError(context, ErrorType.CLOUDWATCH_COLLECTION, exc))
            return outcome

        if not metrics:
            job_logger.debug("No metrics data found")
            return outcome

        job_logger.debug("Job run finished", "number_of_metrics", len(metrics))
        outcome.metrics = CloudwatchMetricResult(
            context=context.to_scrape_context(job_to_run.custom_tags()), data=list(metrics)
        )
        return outcome