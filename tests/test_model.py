import re

import pytest

from cwexporter.model import SearchTag, Tag, TaggedResource


def _resource(tags):
    return TaggedResource(arn="aws::arn", namespace="AWS/Service", region="us-east-1", tags=tags)


@pytest.mark.parametrize(
    "resource_tags,filter_tags,expected",
    [
        ([Tag("k1", "v1")], [SearchTag("k1", re.compile("v1"))], True),
        ([Tag("k1", "v1")], [SearchTag("k2", re.compile("v2"))], False),
        ([Tag("k1", "v1"), Tag("k2", "v2")], [SearchTag("k1", re.compile("v1"))], True),
        (
            [Tag("k1", "v1")],
            [SearchTag("k1", re.compile("v1")), SearchTag("k2", re.compile("v2"))],
            False,
        ),
        ([Tag("k1", "v1")], [SearchTag("k2", re.compile("v1"))], False),
        ([Tag("k1", "v1")], [SearchTag("k1", re.compile("v2"))], False),
        ([], [SearchTag("k1", re.compile("v2"))], False),
        ([Tag("k1", "v1")], [], True),
        ([Tag("k1", "v1")], [SearchTag("k1", re.compile("v.*"))], True),
    ],
    ids=[
        "exactly matching tags",
        "unmatching tags",
        "resource has more tags",
        "filter has more tags",
        "unmatching tag key",
        "unmatching tag value",
        "resource without tags",
        "empty filter tags",
        "filter with value regex",
    ],
)
def test_filter_through_tags(resource_tags, filter_tags, expected):
    assert _resource(resource_tags).filter_through_tags(filter_tags) is expected


@pytest.mark.parametrize(
    "resource_tags,exported_tags,expected",
    [
        ([Tag("k1", "v1")], [], []),
        ([Tag("k1", "v1")], ["k1"], [Tag("k1", "v1")]),
        ([Tag("k1", "v1")], ["k1", "k2"], [Tag("k1", "v1"), Tag("k2", "")]),
        ([], ["k1"], [Tag("k1", "")]),
    ],
    ids=[
        "empty exported tag",
        "single exported tag",
        "multiple exported tags",
        "resource without tags",
    ],
)
def test_metric_tags(resource_tags, exported_tags, expected):
    assert _resource(resource_tags).metric_tags(exported_tags) == expected


def test_metric_tags_preserves_exported_order():
    res = _resource([Tag("a", "1"), Tag("b", "2")])
    assert [t.key for t in res.metric_tags(["b", "a"])] == ["b", "a"]