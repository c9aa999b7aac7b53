"""
Tenant CRM records: companies, contacts, leads and activities.

Records live in the tenant's own database and are additionally stamped with
companyId. Deletes are soft (isDeleted) so exports and audits keep history.
"""
import csv
import io
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

from bson import ObjectId
from pydantic import BaseModel

from database import get_tenant_collections, utcnow
from dateranges import format_day
from schemas import Activity, Contact, Lead, SocialLinks, TenantCompany

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
PROTECTED_FIELDS = ("_id", "id", "companyId", "isDeleted", "deletedAt", "createdAt")


@dataclass(frozen=True)
class Resource:
    name: str
    label: str
    schema: Type[BaseModel]
    search_fields: Tuple[str, ...]
    status_field: str
    export_columns: Tuple[Tuple[str, str], ...]


RESOURCES: Dict[str, Resource] = {
    "companies": Resource(
        name="companies",
        label="Company",
        schema=TenantCompany,
        search_fields=("name", "email", "location", "ownerName"),
        status_field="status",
        export_columns=(
            ("Name", "name"), ("Email", "email"), ("Phone", "phone"), ("Location", "location"),
            ("Rating", "rating"), ("Owner", "ownerName"), ("Status", "status"),
            ("Industry", "industry"), ("Source", "source"), ("Created At", "createdAt"),
        ),
    ),
    "contacts": Resource(
        name="contacts",
        label="Contact",
        schema=Contact,
        search_fields=("firstName", "lastName", "email", "companyName", "ownerName"),
        status_field="status",
        export_columns=(
            ("First Name", "firstName"), ("Last Name", "lastName"), ("Email", "email"),
            ("Phone", "phone"), ("Company", "companyName"), ("Job Title", "jobTitle"),
            ("Owner", "ownerName"), ("Status", "status"), ("Industry", "industry"),
            ("Source", "source"), ("Created At", "createdAt"),
        ),
    ),
    "leads": Resource(
        name="leads",
        label="Lead",
        schema=Lead,
        search_fields=("name", "company", "email", "owner", "source"),
        status_field="stage",
        export_columns=(
            ("Name", "name"), ("Company", "company"), ("Email", "email"), ("Phone", "phone"),
            ("Value", "value"), ("Stage", "stage"), ("Source", "source"), ("Owner", "owner"),
            ("Priority", "priority"), ("Created At", "createdAt"),
        ),
    ),
    "activities": Resource(
        name="activities",
        label="Activity",
        schema=Activity,
        search_fields=("title", "owner", "description"),
        status_field="activityType",
        export_columns=(
            ("Title", "title"), ("Type", "activityType"), ("Due Date", "dueDate"),
            ("Reminder", "reminder"), ("Owner", "owner"), ("Status", "status"),
            ("Created At", "createdAt"),
        ),
    ),
}


def _to_dict(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = {**doc}
    _id = d.pop("_id", None)
    if isinstance(_id, ObjectId):
        d["id"] = str(_id)
    return d


def _collection(tenant_id: str, resource: Resource):
    return get_tenant_collections(tenant_id)[resource.name]


def _scope(tenant_id: str, record_id: Optional[str] = None) -> Dict[str, Any]:
    query: Dict[str, Any] = {"companyId": tenant_id, "isDeleted": {"$ne": True}}
    if record_id is not None:
        query["_id"] = ObjectId(record_id)
    return query


def _to_document(resource: Resource, payload: BaseModel) -> Dict[str, Any]:
    doc = payload.model_dump()
    if isinstance(payload, SocialLinks):
        doc["social"] = {key: doc.pop(key) for key in SocialLinks.model_fields}
    if resource.name == "contacts":
        doc["name"] = " ".join(p for p in (doc.get("firstName"), doc.get("lastName")) if p)
    return doc


def create_record(tenant_id: str, resource: Resource, payload: BaseModel) -> Dict[str, Any]:
    collection = _collection(tenant_id, resource)
    now = utcnow()
    doc = _to_document(resource, payload)
    doc.update({"companyId": tenant_id, "isDeleted": False, "createdAt": now, "updatedAt": now})
    result = collection.insert_one(doc)
    return {"done": True, "data": _to_dict(collection.find_one({"_id": result.inserted_id}))}


def list_records(
    tenant_id: str,
    resource: Resource,
    page: Any = 1,
    limit: Any = DEFAULT_LIMIT,
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> Dict[str, Any]:
    collection = _collection(tenant_id, resource)
    query = _scope(tenant_id)
    if search:
        pattern = re.escape(search)
        query["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in resource.search_fields]
    if status and status != "All":
        query[resource.status_field] = status

    try:
        safe_limit = min(max(int(limit), 1), MAX_LIMIT)
    except (TypeError, ValueError):
        safe_limit = DEFAULT_LIMIT
    try:
        safe_page = max(int(page), 1)
    except (TypeError, ValueError):
        safe_page = 1
    sort_field = sort_by if sort_by and not sort_by.startswith("$") else "createdAt"

    total = collection.count_documents(query)
    cursor = (
        collection.find(query)
        .sort(sort_field, 1 if sort_order == "asc" else -1)
        .skip((safe_page - 1) * safe_limit)
        .limit(safe_limit)
    )
    return {
        "done": True,
        "data": [_to_dict(doc) for doc in cursor],
        "pagination": {"page": safe_page, "limit": safe_limit, "total": total},
    }


def get_record(tenant_id: str, resource: Resource, record_id: str) -> Dict[str, Any]:
    if not ObjectId.is_valid(record_id):
        return {"done": False, "error": f"Invalid {resource.label.lower()} id"}
    doc = _collection(tenant_id, resource).find_one(_scope(tenant_id, record_id))
    if doc is None:
        return {"done": False, "error": f"{resource.label} not found"}
    return {"done": True, "data": _to_dict(doc)}


def update_record(tenant_id: str, resource: Resource, record_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    if not ObjectId.is_valid(record_id):
        return {"done": False, "error": f"Invalid {resource.label.lower()} id"}
    collection = _collection(tenant_id, resource)
    update_doc = {k: v for k, v in (updates or {}).items() if k not in PROTECTED_FIELDS}
    update_doc["updatedAt"] = utcnow()
    result = collection.update_one(_scope(tenant_id, record_id), {"$set": update_doc})
    if result.matched_count == 0:
        return {"done": False, "error": f"{resource.label} not found"}
    return {"done": True, "data": _to_dict(collection.find_one({"_id": ObjectId(record_id)}))}


def delete_record(tenant_id: str, resource: Resource, record_id: str) -> Dict[str, Any]:
    if not ObjectId.is_valid(record_id):
        return {"done": False, "error": f"Invalid {resource.label.lower()} id"}
    now = utcnow()
    result = _collection(tenant_id, resource).update_one(
        _scope(tenant_id, record_id),
        {"$set": {"isDeleted": True, "deletedAt": now, "updatedAt": now}},
    )
    if result.matched_count == 0:
        return {"done": False, "error": f"{resource.label} not found"}
    return {"done": True, "data": {"_id": record_id, "deleted": True}}


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "strftime"):
        return format_day(value)
    return str(value)


def export_records(tenant_id: str, resource: Resource) -> Dict[str, Any]:
    """All live records of the tenant as CSV text."""
    try:
        docs: List[dict] = list(_collection(tenant_id, resource).find(_scope(tenant_id)))
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL)
        writer.writerow([header for header, _ in resource.export_columns])
        for doc in docs:
            writer.writerow([_cell(doc.get(field)) for _, field in resource.export_columns])
        return {"done": True, "data": buf.getvalue(), "contentType": "text/csv"}
    except Exception as e:
        logger.error("Error exporting %s for %s: %s", resource.name, tenant_id, e)
        return {"done": False, "error": f"Failed to export {resource.name}"}
