"""
MongoDB access

A single pymongo client is shared by the whole process. Superadmin data
(companies, packages, subscriptions) lives in one database; every tenant
gets its own database named after its company id.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo import MongoClient

from config import DATABASE_URL, SUPERADMIN_DATABASE

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None


def set_client(new_client: Optional[MongoClient]) -> None:
    global client
    client = new_client


if DATABASE_URL:
    try:
        set_client(MongoClient(DATABASE_URL))
        logger.info("MongoDB client configured, superadmin database %s", SUPERADMIN_DATABASE)
    except Exception as e:
        logger.error("Database connection error: %s", e)
        set_client(None)


def utcnow() -> datetime:
    # MongoDB stores naive UTC datetimes
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require_client() -> MongoClient:
    if client is None:
        raise RuntimeError("MongoDB client not connected yet. Set DATABASE_URL first.")
    return client


def get_superadmin_collections() -> Dict[str, Any]:
    admin_db = _require_client()[SUPERADMIN_DATABASE]
    return {
        "companies": admin_db["companies"],
        "packages": admin_db["packages"],
        "subscriptions": admin_db["subscriptions"],
        "plans": admin_db["plans"],
    }


def get_tenant_collections(tenant_id: str) -> Dict[str, Any]:
    tenant_db = _require_client()[tenant_id]
    return {
        "companies": tenant_db["companies"],
        "contacts": tenant_db["contacts"],
        "leads": tenant_db["leads"],
        "activities": tenant_db["activities"],
        "socialFeeds": tenant_db["socialFeeds"],
    }
