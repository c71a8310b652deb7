# cwexporter

This package is the core of a CloudWatch metrics exporter. It provides three things:

- dataclasses for job configuration and for scrape results;
- a best-effort associator that links listed CloudWatch metrics to tagged resources by means of ARN regexes;
- a scraper that runs discovery and custom-namespace jobs concurrently across roles and regions.

The package does not talk to any cloud API itself. You supply the account client, the resource runners and the metric runners, and the package coordinates them.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `cwexporter.logging`

- `new_logger(format, debug_enabled, *args)` returns a `Logger` that writes one line per record to stderr.
  - With `format="json"` each line is JSON. With any other value each line is logfmt.
  - Every line carries `level`, `ts` (UTC), `caller`, the logger's context pairs and the message.
  - Debug records are written only when `debug_enabled` is true.
- `new_nop_logger()` returns a logger that discards everything.
- `Logger` has these methods:
  - `debug(message, *kv)`, `info(...)` and `warn(...)`.
  - `error(err, message, *kv)`.
  - `with_(*kv)` returns a new logger with extra context pairs.
  - `is_debug_enabled()`.

### `cwexporter.model`

This module holds the dataclasses.

Configuration:
- `JobsConfig`
- `DiscoveryJob`
- `StaticJob`
- `CustomNamespaceJob`
- `Role`
- `MetricConfig`
- `DimensionsRegexp`
- `Tag`
- `SearchTag`, whose value is a compiled `re.Pattern`

CloudWatch data and results:
- `Dimension`
- `Metric`
- `Datapoint`
- `CloudwatchData`
- `GetMetricDataResult`
- `GetMetricStatisticsResult`
- `GetMetricDataProcessingParams`
- `MetricMigrationParams`
- `ScrapeContext`
- `CloudwatchMetricResult`
- `TaggedResourceResult`
- `Resource`
- `Resources`

It also defines the constants `DEFAULT_PERIOD_SECONDS` and `DEFAULT_LENGTH_SECONDS`, both 300, and the `MetricResourceEnricher` protocol.

`TaggedResource` has two methods:
- `filter_through_tags(filter_tags)` is true when every search tag has a resource tag with the same key whose value the pattern matches. An empty filter list is also true.
- `metric_tags(exported_tags)` returns one `Tag` for each exported name. Its value is the resource's value for that key, or `""` when the resource has no such tag.

### `cwexporter.associator`

`Associator(logger, dimensions_regexps, resources)` builds one mapping for each regexp from the dimension values that the regexp captures from resource ARNs. Each resource is mapped by at most one regexp.

`associate_metric_to_resource(metric)` returns `(resource, skip)`:
- A metric with no dimensions gives `(None, False)`.
- Mappings with more dimension names are tried first.
- A mapping applies when the metric has all of that mapping's dimension names. The first applicable mapping whose values match gives `(resource, False)`.
- If some mapping applied but none matched, the result is `(None, True)` and the metric should be skipped.
- If no mapping applied, the result is `(None, False)`.

Two namespaces have their values adjusted before matching:
- `AWS/AmazonMQ`: a numeric `-N` suffix is removed from `Broker` values.
- `AWS/SageMaker`: `EndpointName` values are lower-cased.

### `cwexporter.scraper`

`Scraper(logger, jobs_cfg, runner_factory).scrape()` runs every discovery job and every custom-namespace job once for each of its roles and regions, all concurrently. It returns `(resource_results, metric_results, job_errors)`.

The runner factory must provide:
- `get_account_client(region, role)`. The client it returns must provide `get_account()` and `get_account_alias()`.
- `new_resource_metadata_runner(logger, region, role)`. The runner it returns must provide `run(region, job)`.
- `new_cloudwatch_runner(logger, region, role, job)`. The runner it returns must provide `run()`. `job` is a `DiscoveryRunnerJob` or a `CustomNamespaceRunnerJob`.

How a scrape behaves:
- The account is fetched only once for each role and region. A failure of `get_account_alias()` is logged and leaves the alias empty.
- Any exception from a runner is caught and recorded as a `JobError`. The scrape carries on.
- A `JobError` holds `context` (a `JobContext`), `error_type` and `err`. `error_type` is one of:
  - `ErrorType.ACCOUNT`
  - `ErrorType.RESOURCE_METADATA`
  - `ErrorType.CLOUDWATCH_COLLECTION`
- A discovery job with no resources adds no entry to `resource_results`.
- A job that returns no metrics adds no entry to `metric_results`.

### `cwexporter.static`

`run_static_job(logger, job, cloudwatch_client)` builds one `CloudwatchData` for each metric of a `StaticJob`. It calls `cloudwatch_client.get_metric_statistics(logger, dimensions, namespace, metric)` for each metric concurrently. Metrics for which the client returns `None` are left out.

`create_static_dimensions(dimensions)` returns copies of the configured dimensions.

## Example

```python
import re

from cwexporter.associator import Associator
from cwexporter.logging import new_nop_logger
from cwexporter.model import Dimension, DimensionsRegexp, Metric, TaggedResource

instance = TaggedResource(
    arn="arn:aws:ec2:us-east-1:123456789012:instance/i-abc123",
    namespace="AWS/EC2",
)
regexps = [DimensionsRegexp(re.compile("instance/(?P<InstanceId>[^/]+)"), ["InstanceId"])]
assoc = Associator(new_nop_logger(), regexps, [instance])

resource, skip = assoc.associate_metric_to_resource(
    Metric(
        metric_name="CPUUtilization",
        namespace="AWS/EC2",
        dimensions=[Dimension("InstanceId", "i-abc123")],
    )
)
assert resource is instance and not skip
```

## What the package does not do

- It has no command-line program and no HTTP server.
- It does not read configuration files.
- It ships no built-in table of per-service ARN regexes. You pass `DimensionsRegexp` values yourself.
- It has no cloud API clients, no resource discovery and no metric fetching of its own. These come from the runner factory and clients you provide.
- It does not turn results into Prometheus metrics.
- `Scraper` does not run static jobs. Use `run_static_job` for those.