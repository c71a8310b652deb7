"""Best-effort mapping of listed CloudWatch metrics to tagged resources by ARN regexes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from cwexporter.logging import Logger
from cwexporter.model import DimensionsRegexp, Metric, TaggedResource

_AMAZON_MQ_BROKER_SUFFIX = re.compile(r"-[0-9]+$")


def _signature(labels: dict[str, str]) -> frozenset:
    return frozenset(labels.items())


@dataclass
class _DimensionsRegexpMapping:
    dimensions: list[str]
    dimensions_mapping: dict[frozenset, TaggedResource] = field(default_factory=dict)

    def __str__(self) -> str:
        entries = "".join(
            f"{sorted(sig)}={res.arn}," for sig, res in self.dimensions_mapping.items()
        )
        return f"{{dimensions=[{''.join(self.dimensions)}], dimensions_mappings={{{entries}}}}}"


class Associator:
    """Associates metrics with resources using dimension-extracting ARN regexes."""

    def __init__(self, logger: Logger, dimensions_regexps, resources) -> None:
        self._logger = logger
        mappings: list[_DimensionsRegexpMapping] = []
        mapped: set[int] = set()

        for dr in dimensions_regexps:
            mapping = _DimensionsRegexpMapping(dimensions=list(dr.dimensions_names))
            for idx, resource in enumerate(resources):
                if idx in mapped:
                    continue
                match = dr.regexp.search(resource.arn)
                if match is None:
                    continue
                labels = {
                    name: value or ""
                    for name, value in zip(dr.dimensions_names, match.groups())
                }
                mapping.dimensions_mapping[_signature(labels)] = resource
                mapped.add(idx)

            if mapping.dimensions_mapping:
                mappings.append(mapping)
            elif logger.is_debug_enabled():
                logger.debug("unable to define a regex mapping", "regex", dr.regexp.pattern)

        # Most specific mappings (most dimension names) are tried first.
        self._mappings = sorted(mappings, key=lambda m: -len(m.dimensions))

        if logger.is_debug_enabled():
            for idx, mapping in enumerate(self._mappings):
                logger.debug("associator mapping", "mapping_idx", idx, "mapping", str(mapping))

    def associate_metric_to_resource(self, cw_metric: Metric) -> tuple[Optional[TaggedResource], bool]:
        """Return the matching resource (or None) and whether the metric should be skipped."""
        logger = self._logger.with_("metric_name", cw_metric.metric_name)

        if not cw_metric.dimensions:
            logger.debug("metric has no dimensions, don't skip")
            return None, False

        dimensions = [d.name for d in cw_metric.dimensions]
        if logger.is_debug_enabled():
            logger.debug("associate loop start", "dimensions", ",".join(dimensions))

        mapping_found = False
        for idx, mapping in enumerate(self._mappings):
            if not all(name in dimensions for name in mapping.dimensions):
                continue
            if logger.is_debug_enabled():
                logger.debug("found mapping", "mapping_idx", idx, "mapping", str(mapping))
            mapping_found = True
            signature = _signature(_build_labels_map(cw_metric, mapping))
            resource = mapping.dimensions_mapping.get(signature)
            if resource is not None:
                logger.debug("resource matched", "signature", sorted(signature))
                return resource, False
            logger.debug("resource not matched", "signature", sorted(signature))

        logger.debug("associate loop end", "skip", mapping_found)
        return None, mapping_found


def _build_labels_map(cw_metric: Metric, mapping: _DimensionsRegexpMapping) -> dict[str, str]:
    labels: dict[str, str] = {}
    for r_dimension in mapping.dimensions:
        for m_dimension in cw_metric.dimensions:
            name, value = m_dimension.name, m_dimension.value
            # Active/standby ActiveMQ brokers carry a numeric suffix absent from the ARN.
            if cw_metric.namespace == "AWS/AmazonMQ" and name == "Broker":
                value = _AMAZON_MQ_BROKER_SUFFIX.sub("", value)
            # SageMaker endpoint ARNs are lower case only.
            if cw_metric.namespace == "AWS/SageMaker" and name == "EndpointName":
                value = value.lower()
            if r_dimension == name:
                labels[name] = value
    return labels