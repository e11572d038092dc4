"""Unit tests for MongoDB loading."""

import math
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import PyMongoError

from json_tabular.mongodb_io import ingest_records_to_mongodb, query_mongodb, to_document


def test_to_document_maps_non_finite_to_none() -> None:
    """Test NaN and infinity are stored as None."""
    assert to_document({"a": math.nan, "b": math.inf, "c": 1.5, "d": "x"}) == {
        "a": None,
        "b": None,
        "c": 1.5,
        "d": "x",
    }


def test_ingest_batches_records() -> None:
    """Test records are inserted in batches and counted."""
    records = [{"id": i} for i in range(5)]
    with patch("json_tabular.mongodb_io.MongoClient") as mock_client_cls:
        client = mock_client_cls.return_value
        collection = client.__getitem__.return_value.__getitem__.return_value
        collection.insert_many.side_effect = lambda batch: MagicMock(inserted_ids=list(range(len(batch))))

        count = ingest_records_to_mongodb(records, batch_size=2, drop_collection=True)

    assert count == 5
    assert collection.insert_many.call_count == 3
    collection.drop.assert_called_once()
    client.close.assert_called_once()


def test_ingest_empty_records() -> None:
    """Test an empty record set inserts nothing."""
    with patch("json_tabular.mongodb_io.MongoClient") as mock_client_cls:
        assert ingest_records_to_mongodb([]) == 0
        mock_client_cls.assert_not_called()


def test_ingest_invalid_batch_size() -> None:
    """Test non-positive batch sizes are rejected."""
    with pytest.raises(ValueError, match="batch_size"):
        ingest_records_to_mongodb([{"a": 1}], batch_size=0)


def test_ingest_wraps_driver_errors() -> None:
    """Test driver errors are re-raised with context and the client closed."""
    with patch("json_tabular.mongodb_io.MongoClient") as mock_client_cls:
        client = mock_client_cls.return_value
        collection = client.__getitem__.return_value.__getitem__.return_value
        collection.insert_many.side_effect = PyMongoError("boom")

        with pytest.raises(PyMongoError, match="Failed to ingest records"):
            ingest_records_to_mongodb([{"a": 1}])
    client.close.assert_called_once()


def test_query_mongodb_applies_limit() -> None:
    """Test queries pass the filter and limit through."""
    with patch("json_tabular.mongodb_io.MongoClient") as mock_client_cls:
        collection = mock_client_cls.return_value.__getitem__.return_value.__getitem__.return_value
        cursor = collection.find.return_value
        cursor.limit.return_value = [{"id": 1}]

        results = query_mongodb(filter_dict={"id": 1}, limit=1)

    assert results == [{"id": 1}]
    collection.find.assert_called_once_with({"id": 1}, {"_id": False})
    cursor.limit.assert_called_once_with(1)
