# Example usage:
# from database import CAMPAIGNS, connect, create_document, list_documents, delete_document
# from schemas import build_campaign
#
# db = connect("mongodb://localhost:27017/crowdfunding")
#
# # Create a campaign (defaults filled by the schema)
# campaign = create_document(db, CAMPAIGNS, build_campaign({"title": "T", "description": "D", "goal": 1000}))
#
# # Newest first
# campaigns = list_documents(db, CAMPAIGNS, "createdAt")
#
# # Delete by id
# delete_document(db, CAMPAIGNS, str(campaign["_id"]))

import logging
from typing import Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

CAMPAIGNS = "campaigns"
USERS = "users"

DEFAULT_DATABASE_NAME = "crowdfunding"


class DatabaseUnavailable(Exception):
    """Raised when the database cannot be reached at startup."""


def connect(uri: str, database_name: Optional[str] = None, timeout_ms: int = 5000) -> Database:
    """Open the process-wide database handle

    Args:
        uri: MongoDB connection string
        database_name: database to use; falls back to the one named in the
            URI, then to DEFAULT_DATABASE_NAME
        timeout_ms: server selection timeout for the startup ping

    Returns:
        Database: handle shared by every request

    Raises:
        DatabaseUnavailable: the URI is invalid or the server did not answer
    """
    try:
        client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms, tz_aware=True)
        if database_name:
            db = client[database_name]
        else:
            db = client.get_default_database(default=DEFAULT_DATABASE_NAME)
        client.admin.command("ping")
    except (PyMongoError, ValueError) as e:
        raise DatabaseUnavailable(f"Could not connect to MongoDB: {e}") from e

    logger.info("Connected to MongoDB database %r", db.name)
    return db


def ping(db: Database) -> bool:
    """Check the server answers on this handle"""
    db.command("ping")
    return True


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Make a stored document JSON friendly (ObjectId -> str)"""
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["_id"] = str(out["_id"])
    return out


# Helper functions for the collection operations the API needs
def list_documents(db: Database, collection_name: str, sort_field: str):
    """All documents in a collection, newest first by sort_field"""
    cursor = db[collection_name].find({}).sort([(sort_field, DESCENDING), ("_id", DESCENDING)])
    return list(cursor)


def get_document(db: Database, collection_name: str, doc_id: str):
    """Fetch one document by id

    Raises:
        bson.errors.InvalidId: doc_id is not an ObjectId string
    """
    return db[collection_name].find_one({"_id": ObjectId(doc_id)})


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]):
    """Insert a single document

    Args:
        collection_name: Name of the MongoDB collection
        data: Pydantic model instance or dict, already carrying its defaults

    Returns:
        dict: The stored document including its new `_id`
    """
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()

    result = db[collection_name].insert_one(data_dict)
    data_dict["_id"] = result.inserted_id
    return data_dict


def update_document(db: Database, collection_name: str, doc_id: str, fields: dict):
    """Set the given fields on one document

    Args:
        collection_name: Name of the MongoDB collection
        doc_id: ObjectId string of the document
        fields: field values to overwrite; other fields are left alone

    Returns:
        dict or None: the document after the update, None if nothing matched
    """
    filter_dict = {"_id": ObjectId(doc_id)}
    if not fields:
        return db[collection_name].find_one(filter_dict)

    return db[collection_name].find_one_and_update(
        filter_dict,
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(db: Database, collection_name: str, doc_id: str) -> bool:
    """Delete a document; True if one was removed"""
    result = db[collection_name].delete_one({"_id": ObjectId(doc_id)})
    return result.deleted_count > 0
