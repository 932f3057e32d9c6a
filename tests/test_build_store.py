from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from app.core.config import Settings
from app.core.errors import StoreError
from app.models.build_record import BuildRecord
from app.services.build_store import DynamoBuildStore, NoOpBuildStore, make_build_store


def _client_error(operation):
    return ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}}, operation)


@pytest.fixture
def record():
    return BuildRecord(
        build_id="b1", project_id="p", status="queued", title="T", slug="index",
        created_at="2024-11-06T10:00:00+00:00", author_email="unknown", file_size=12, ttl=99,
    )


def test_save_writes_camel_case_item(record):
    table = MagicMock()
    store = DynamoBuildStore("builds", table=table)

    result = store.save(record)

    assert result.ok
    item = table.put_item.call_args.kwargs["Item"]
    assert item["buildId"] == "b1"
    assert item["projectId"] == "p"
    assert item["status"] == "queued"
    assert item["fileSize"] == 12
    assert item["ttl"] == 99


def test_save_failure_is_degraded(record):
    table = MagicMock()
    table.put_item.side_effect = _client_error("PutItem")
    result = DynamoBuildStore("builds", table=table).save(record)
    assert result.degraded
    assert "no table" in result.reason


def test_get_converts_decimals():
    table = MagicMock()
    table.get_item.return_value = {"Item": {
        "buildId": "b1", "projectId": "p", "status": "queued",
        "fileSize": Decimal("12"), "ttl": Decimal("99"),
    }}
    record = DynamoBuildStore("builds", table=table).get("b1")

    table.get_item.assert_called_once_with(Key={"buildId": "b1"})
    assert record.file_size == 12
    assert isinstance(record.file_size, int)
    assert record.ttl == 99


def test_get_missing_item():
    table = MagicMock()
    table.get_item.return_value = {}
    assert DynamoBuildStore("builds", table=table).get("nope") is None


def test_get_failure_raises_store_error():
    table = MagicMock()
    table.get_item.side_effect = _client_error("GetItem")
    with pytest.raises(StoreError):
        DynamoBuildStore("builds", table=table).get("b1")


def test_noop_store(record):
    store = NoOpBuildStore()
    assert store.save(record).degraded
    assert store.get("b1") is None


def test_make_build_store_selects_backend():
    assert isinstance(make_build_store(Settings()), NoOpBuildStore)

    with patch("app.services.build_store.boto3") as mock_boto3:
        store = make_build_store(Settings(dynamodb_table="builds", aws_region="eu-west-1"))
        assert isinstance(store, DynamoBuildStore)
        mock_boto3.resource.assert_called_once_with("dynamodb", region_name="eu-west-1")
        mock_boto3.resource.return_value.Table.assert_called_once_with("builds")


def test_record_round_trips_through_item(record):
    assert BuildRecord.from_item(record.to_item()) == record
