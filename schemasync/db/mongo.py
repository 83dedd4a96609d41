"""Connection to the target MongoDB database."""
from pymongo import MongoClient
from pymongo.database import Database
from schemasync.core.config import settings


def get_client(uri: str | None = None) -> MongoClient:
    timeout_ms = settings.mongo_server_selection_timeout_ms
    return MongoClient(
        uri or settings.mongo_uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        tz_aware=True,
    )


def get_target_database(client: MongoClient, name: str | None = None) -> Database:
    return client[name or settings.mongo_db]
