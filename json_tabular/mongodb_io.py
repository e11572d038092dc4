"""MongoDB integration for flattened JSON records.

This module loads flattened records into a MongoDB collection as one
document per record and reads them back.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

try:
    from pymongo import MongoClient
    from pymongo.collection import Collection
    from pymongo.database import Database
    from pymongo.errors import PyMongoError
except ImportError:
    raise ImportError(
        "pymongo is required for MongoDB integration. "
        "Install it with: pip install pymongo"
    )

logger = logging.getLogger(__name__)


def to_document(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy a flat record into a BSON-friendly document.

    Non-finite floats become None, matching how they are rendered in SQL.
    """
    return {
        key: None if isinstance(value, float) and not math.isfinite(value) else value
        for key, value in record.items()
    }


def ingest_records_to_mongodb(
    records: Sequence[Mapping[str, Any]],
    mongo_uri: str = "mongodb://localhost:27017",
    database_name: str = "json_tabular",
    collection_name: str = "records",
    batch_size: int = 1000,
    drop_collection: bool = False,
) -> int:
    """Insert flattened records into a MongoDB collection.

    Parameters
    ----------
    records : Sequence[Mapping[str, Any]]
        Flat records to insert, one document each.
    mongo_uri : str, optional
        MongoDB connection URI (default: "mongodb://localhost:27017").
    database_name : str, optional
        Database name (default: "json_tabular").
    collection_name : str, optional
        Collection name (default: "records").
    batch_size : int, optional
        Number of documents to insert per batch (default: 1000).
    drop_collection : bool, optional
        Whether to drop existing collection before insert (default: False).

    Returns
    -------
    int
        Number of documents inserted.

    Raises
    ------
    PyMongoError
        If MongoDB operation fails.
    ValueError
        If invalid parameters are provided.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    if not records:
        return 0

    documents = [to_document(record) for record in records]

    client: MongoClient = MongoClient(mongo_uri)
    try:
        db: Database = client[database_name]
        collection: Collection = db[collection_name]

        if drop_collection:
            collection.drop()

        inserted_count = 0
        for i in range(0, len(documents), batch_size):
            batch = documents[i : i + batch_size]
            result = collection.insert_many(batch)
            inserted_count += len(result.inserted_ids)

        logger.info("Inserted %d documents into %s.%s", inserted_count, database_name, collection_name)
        return inserted_count

    except PyMongoError as e:
        raise PyMongoError(f"Failed to ingest records into MongoDB: {e}") from e
    finally:
        client.close()


def query_mongodb(
    mongo_uri: str = "mongodb://localhost:27017",
    database_name: str = "json_tabular",
    collection_name: str = "records",
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Query MongoDB collection and return results.

    Parameters
    ----------
    mongo_uri : str, optional
        MongoDB connection URI (default: "mongodb://localhost:27017").
    database_name : str, optional
        Database name (default: "json_tabular").
    collection_name : str, optional
        Collection name (default: "records").
    filter_dict : Optional[Dict[str, Any]], optional
        MongoDB filter query (default: None for all documents).
    limit : Optional[int], optional
        Maximum number of documents to return (default: None for no limit).

    Returns
    -------
    List[Dict[str, Any]]
        Matching documents without the ``_id`` field.

    Raises
    ------
    PyMongoError
        If MongoDB operation fails.
    """
    client: MongoClient = MongoClient(mongo_uri)
    try:
        collection: Collection = client[database_name][collection_name]

        cursor = collection.find(filter_dict or {}, {"_id": False})
        if limit:
            cursor = cursor.limit(limit)

        return list(cursor)

    except PyMongoError as e:
        raise PyMongoError(f"Failed to query MongoDB: {e}") from e
    finally:
        client.close()
