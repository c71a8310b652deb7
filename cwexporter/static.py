"""Collects statistics for statically configured metrics."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from cwexporter.logging import Logger
from cwexporter.model import (
    CloudwatchData,
    Dimension,
    GetMetricStatisticsResult,
    MetricConfig,
    MetricMigrationParams,
    StaticJob,
)


def create_static_dimensions(dimensions) -> list[Dimension]:
    """Return fresh copies of the configured dimensions."""
    return [Dimension(name=d.name, value=d.value) for d in dimensions]


def run_static_job(logger, job, cloudwatch_client) -> list[CloudwatchData]:
    """Fetch statistics for each metric of a static job.

    Metrics for which the client returns no data points (``None``) are left out.
    """
    job_cfg: StaticJob = job

    def collect(metric: MetricConfig) -> Optional[CloudwatchData]:
        data = CloudwatchData(
            metric_name=metric.name,
            resource_name=job_cfg.name,
            namespace=job_cfg.namespace,
            dimensions=create_static_dimensions(job_cfg.dimensions),
            metric_migration_params=MetricMigrationParams(
                nil_to_zero=metric.nil_to_zero,
                add_cloudwatch_timestamp=metric.add_cloudwatch_timestamp,
            ),
        )
        datapoints = cloudwatch_client.get_metric_statistics(
            logger, data.dimensions, job_cfg.namespace, metric
        )
        if datapoints is None:
            return None
        data.get_metric_statistics_result = GetMetricStatisticsResult(
            datapoints=list(datapoints), statistics=list(metric.statistics)
        )
        return data

    metrics = list(job_cfg.metrics)
    if not metrics:
        return []
    with ThreadPoolExecutor(max_workers=len(metrics)) as pool:
        results = list(pool.map(collect, metrics))
    return [r for r in results if r is not None]


__all__ = ["run_static_job", "create_static_dimensions", "Logger"]