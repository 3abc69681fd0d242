import math

import pytest

from resource_sync.dedup import dedupe
from resource_sync.exceptions import MalformedResponseError
from resource_sync.models import ResourceType
from resource_sync.normalize import parse_resources


def _record(**overrides) -> dict:
    record = {
        "id": "r-1",
        "name": "Central City Library",
        "type": "LIBRARY",
        "address": "1515 Young St, Dallas, TX 75201",
        "location": {"x": -96.7970, "y": 32.7767},
    }
    record.update(overrides)
    return record


def test_parse_resources_maps_wire_fields() -> None:
    resources = parse_resources([_record()], provider="stored")

    assert len(resources) == 1
    resource = resources[0]
    assert resource.id == "r-1"
    assert resource.type is ResourceType.LIBRARY
    assert resource.x == -96.7970
    assert resource.y == 32.7767
    assert resource.to_payload()["location"] == {"x": -96.7970, "y": 32.7767}


def test_parse_resources_drops_invalid_records_not_the_batch() -> None:
    payload = [
        _record(id="ok"),
        _record(id="nan", location={"x": math.nan, "y": 32.7}),
        _record(id="lat", location={"x": -96.8, "y": 91.0}),
        _record(id="lng", location={"x": -181.0, "y": 32.7}),
        _record(id="str", location={"x": "-96.8", "y": "32.7"}),
        _record(id="noloc", location=None),
        _record(id="noname", name="  "),
        "not-a-record",
    ]

    resources = parse_resources(payload, provider="live")

    assert [resource.id for resource in resources] == ["ok"]


def test_parse_resources_returns_empty_when_every_record_is_bad() -> None:
    assert parse_resources([_record(location={"x": 500, "y": 500})], provider="live") == []


def test_parse_resources_keeps_unknown_type_as_none() -> None:
    resources = parse_resources([_record(type="PARK"), _record(id=None, type="food_bank")], provider="live")

    assert resources[0].type is None
    assert resources[1].type is ResourceType.FOOD_BANK
    assert resources[1].id is None


def test_parse_resources_rejects_non_list_payload() -> None:
    with pytest.raises(MalformedResponseError):
        parse_resources({"elements": []}, provider="live")


def test_parse_resources_keeps_names_verbatim_for_exact_name_dedup() -> None:
    resources = parse_resources(
        [_record(id="a", name="Central Library "), _record(id="b", name="Central Library")],
        provider="live",
    )

    assert [resource.name for resource in resources] == ["Central Library ", "Central Library"]
    assert dedupe(resources) == resources
