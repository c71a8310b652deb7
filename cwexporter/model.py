"""Data model shared by scraping jobs, resource discovery and metric collection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

DEFAULT_PERIOD_SECONDS = 300
DEFAULT_LENGTH_SECONDS = 300


@dataclass(frozen=True)
class Role:
    role_arn: str = ""
    external_id: str = ""


@dataclass(frozen=True)
class Tag:
    key: str = ""
    value: str = ""


@dataclass(frozen=True)
class SearchTag:
    key: str
    value: re.Pattern


@dataclass(frozen=True)
class Dimension:
    name: str = ""
    value: str = ""


@dataclass
class DimensionsRegexp:
    regexp: re.Pattern
    dimensions_names: list[str] = field(default_factory=list)


@dataclass
class MetricConfig:
    name: str = ""
    statistics: list[str] = field(default_factory=list)
    period: int = 0
    length: int = 0
    delay: int = 0
    nil_to_zero: bool = False
    add_cloudwatch_timestamp: bool = False


@dataclass
class DiscoveryJob:
    regions: list[str] = field(default_factory=list)
    type: str = ""
    roles: list[Role] = field(default_factory=list)
    search_tags: list[SearchTag] = field(default_factory=list)
    custom_tags: list[Tag] = field(default_factory=list)
    dimension_name_requirements: list[str] = field(default_factory=list)
    metrics: list[MetricConfig] = field(default_factory=list)
    rounding_period: Optional[int] = None
    recently_active_only: bool = False
    exported_tags_on_metrics: list[str] = field(default_factory=list)
    include_context_on_info_metrics: bool = False
    dimensions_regexps: list[DimensionsRegexp] = field(default_factory=list)


@dataclass
class StaticJob:
    name: str = ""
    regions: list[str] = field(default_factory=list)
    roles: list[Role] = field(default_factory=list)
    namespace: str = ""
    custom_tags: list[Tag] = field(default_factory=list)
    dimensions: list[Dimension] = field(default_factory=list)
    metrics: list[MetricConfig] = field(default_factory=list)


@dataclass
class CustomNamespaceJob:
    regions: list[str] = field(default_factory=list)
    name: str = ""
    namespace: str = ""
    rounding_period: Optional[int] = None
    recently_active_only: bool = False
    roles: list[Role] = field(default_factory=list)
    metrics: list[MetricConfig] = field(default_factory=list)
    custom_tags: list[Tag] = field(default_factory=list)
    dimension_name_requirements: list[str] = field(default_factory=list)


@dataclass
class JobsConfig:
    sts_region: str = ""
    discovery_jobs: list[DiscoveryJob] = field(default_factory=list)
    static_jobs: list[StaticJob] = field(default_factory=list)
    custom_namespace_jobs: list[CustomNamespaceJob] = field(default_factory=list)


@dataclass
class Metric:
    dimensions: list[Dimension] = field(default_factory=list)
    metric_name: str = ""
    namespace: str = ""


@dataclass
class Datapoint:
    average: Optional[float] = None
    extended_statistics: dict[str, Optional[float]] = field(default_factory=dict)
    maximum: Optional[float] = None
    minimum: Optional[float] = None
    sample_count: Optional[float] = None
    sum: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass
class ScrapeContext:
    region: str = ""
    account_id: str = ""
    account_alias: str = ""
    custom_tags: list[Tag] = field(default_factory=list)


@dataclass
class GetMetricStatisticsResult:
    datapoints: list[Datapoint] = field(default_factory=list)
    statistics: list[str] = field(default_factory=list)


@dataclass
class GetMetricDataProcessingParams:
    query_id: str = ""
    statistic: str = ""
    period: int = 0
    length: int = 0
    delay: int = 0


@dataclass
class MetricMigrationParams:
    nil_to_zero: bool = False
    add_cloudwatch_timestamp: bool = False


@dataclass
class GetMetricDataResult:
    statistic: str = ""
    datapoint: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass
class CloudwatchData:
    """A CloudWatch metric with its data points and resource information."""

    metric_name: str = ""
    resource_name: str = ""
    namespace: str = ""
    tags: list[Tag] = field(default_factory=list)
    dimensions: list[Dimension] = field(default_factory=list)
    get_metric_data_processing_params: Optional[GetMetricDataProcessingParams] = None
    metric_migration_params: MetricMigrationParams = field(default_factory=MetricMigrationParams)
    get_metric_data_result: Optional[GetMetricDataResult] = None
    get_metric_statistics_result: Optional[GetMetricStatisticsResult] = None


@dataclass
class TaggedResource:
    """A cloud resource identified by its ARN, with its tags."""

    arn: str = ""
    namespace: str = ""
    region: str = ""
    tags: list[Tag] = field(default_factory=list)

    def filter_through_tags(self, filter_tags) -> bool:
        """Return True when every search tag matches a tag of the resource."""
        if not filter_tags:
            return True
        matches = 0
        for resource_tag in self.tags:
            for filter_tag in filter_tags:
                if resource_tag.key == filter_tag.key:
                    if not filter_tag.value.search(resource_tag.value):
                        return False
                    matches += 1
        return matches == len(filter_tags)

    def metric_tags(self, exported_tags) -> list[Tag]:
        """Build one tag per exported name, empty when the resource lacks it."""
        values: dict[str, str] = {}
        for tag in self.tags:
            values.setdefault(tag.key, tag.value)
        return [Tag(key=name, value=values.get(name, "")) for name in exported_tags]


@dataclass
class CloudwatchMetricResult:
    context: Optional[ScrapeContext] = None
    data: list[CloudwatchData] = field(default_factory=list)


@dataclass
class TaggedResourceResult:
    context: Optional[ScrapeContext] = None
    data: list[TaggedResource] = field(default_factory=list)


@dataclass
class Resource:
    """A resource a metric belongs to: an ARN, "global", or a custom namespace name."""

    name: str = ""
    tags: list[Tag] = field(default_factory=list)


@dataclass
class Resources:
    static_resource: Optional[Resource] = None
    associated_resources: list[Optional[Resource]] = field(default_factory=list)


class MetricResourceEnricher(Protocol):
    def enrich(self, metrics: list[Metric]) -> tuple[list[Metric], Resources]: ...