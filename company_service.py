"""
Companies registered on the platform, as seen by the superadmin.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from passlib import pwd
from pydantic import ValidationError

from clerk import clerk_client
from config import LOGIN_URL
from database import get_superadmin_collections, utcnow
from dateranges import add_months, as_datetime, build_date_filter, format_day
from emailer import send_credentials_email
from schemas import SuperadminCompany

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name", "email", "domain", "phone", "website", "address", "status",
    "currency", "plan_name", "plan_type", "plan_id", "logo",
)


def generate_temp_password() -> str:
    return pwd.genword(length=12, charset="ascii_62")


def _object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def find_package(packages, plan_id: Any) -> Optional[dict]:
    """Companies reference a package by its _id; older ones by plan_id."""
    oid = _object_id(plan_id)
    if oid is not None:
        package = packages.find_one({"_id": oid})
        if package is not None:
            return package
    if plan_id:
        return packages.find_one({"plan_id": str(plan_id)})
    return None


def expiry_date(register_date, plan_type: Optional[str]):
    if register_date is None:
        return None
    if plan_type == "Yearly":
        return add_months(register_date, 12)
    if plan_type == "Monthly":
        return add_months(register_date, 1)
    return None


def _gb_date(value) -> str:
    return value.strftime("%d/%m/%Y") if value else "N/A"


def fetch_packages() -> Dict[str, Any]:
    try:
        packages = get_superadmin_collections()["packages"]
        data = [
            {
                "id": str(pkg["_id"]),
                "plan_name": pkg.get("planName") or "",
                "plan_type": pkg.get("planType") or "",
                "currency": pkg.get("planCurrency") or "",
            }
            for pkg in packages.find({"status": "Active"})
        ]
        show = [{"label": item["plan_name"], "value": item["id"]} for item in data]
        return {"done": True, "data": data, "show": show}
    except Exception as e:
        logger.error("Failed to fetch packages: %s", e)
        return {"done": False, "error": str(e)}


def add_company(data: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
    """
    Register a company and its admin account.

    Runs as four sequential steps: insert the company, create the admin user
    at the identity provider, link the user id back, email the credentials.
    A failure after the insert leaves the company document in place.
    """
    try:
        company = SuperadminCompany.model_validate(data or {})
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.warning("Rejected company payload: %s", fields)
        return {"done": False, "error": "Invalid company: " + ", ".join(fields)}

    try:
        companies = get_superadmin_collections()["companies"]
        now = utcnow()
        doc = company.model_dump()
        doc.pop("_id", None)
        doc.update({"createdAt": now, "updatedAt": now, "createdby": user_id})
        result = companies.insert_one(doc)
        company_id = str(result.inserted_id)

        temp_password = generate_temp_password()
        created_user = clerk_client.create_user(
            company.email,
            temp_password,
            {"role": "admin", "companyId": company_id, "subdomain": company.domain},
        )
        clerk_user_id = created_user.get("id")

        companies.update_one(
            {"_id": result.inserted_id},
            {"$set": {"clerkUserId": clerk_user_id, "updatedAt": utcnow()}},
        )

        send_credentials_email(company.email, company.name, temp_password, LOGIN_URL)

        logger.info("Company %s registered with admin %s", company_id, clerk_user_id)
        return {
            "done": True,
            "message": "Company and user created. Credentials emailed.",
            "companyId": company_id,
            "clerkUserId": clerk_user_id,
        }
    except Exception as e:
        logger.error("Error creating company/user: %s", e)
        return {"done": False, "error": str(e)}


def fetch_company_list(filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    filters = filters or {}
    try:
        companies = get_superadmin_collections()["companies"]
        date_filter = build_date_filter(
            "createdAt", filters.get("type"), filters.get("startDate"), filters.get("endDate")
        )
        data = [
            {
                "id": str(company["_id"]),
                "CompanyName": company.get("name") or "N/A",
                "Email": company.get("email") or "N/A",
                "AccountURL": company.get("domain") or "N/A",
                "Plan": f"{company.get('plan_name') or 'N/A'} ({company.get('plan_type') or 'N/A'})",
                "CreatedDate": format_day(company.get("createdAt")),
                "Image": company.get("logo"),
                "Status": company.get("status"),
                "created_at": company.get("createdAt"),
            }
            for company in companies.find(date_filter).sort("createdAt", -1)
        ]
        return {"done": True, "data": data}
    except Exception as e:
        return {"done": False, "error": str(e)}


def fetch_company_stats() -> Dict[str, Any]:
    try:
        companies = get_superadmin_collections()["companies"]
        locations = [a for a in companies.distinct("address") if a]
        return {
            "done": True,
            "data": {
                "total_companies": str(companies.count_documents({})),
                "active_companies": str(companies.count_documents({"status": "Active"})),
                "inactive_companies": str(companies.count_documents({"status": "Inactive"})),
                "location": str(len(locations)),
            },
        }
    except Exception as e:
        logger.error("Error fetching company stats: %s", e)
        return {"done": False, "message": "Error fetching company stats"}


def delete_companies(ids: Union[str, List[str], None]) -> Dict[str, Any]:
    if isinstance(ids, str):
        ids = [ids]
    try:
        companies = get_superadmin_collections()["companies"]
        object_ids = [oid for oid in (_object_id(i) for i in ids or []) if oid is not None]
        result = companies.delete_many({"_id": {"$in": object_ids}})
        return {"done": True, "message": f"{result.deleted_count} companies deleted successfully.", "data": None}
    except Exception as e:
        logger.error("Error deleting companies: %s", e)
        return {"done": False, "message": str(e), "data": None}


def fetch_company(company_id: str) -> Dict[str, Any]:
    try:
        collections = get_superadmin_collections()
        oid = _object_id(company_id)
        details = collections["companies"].find_one({"_id": oid}) if oid else None
        if details is None:
            return {"done": False, "message": "Company not found"}

        package = find_package(collections["packages"], details.get("plan_id"))
        if package is None:
            return {"done": False, "message": "Package not found"}

        register_date = as_datetime(details.get("createdAt"))
        expire_date = expiry_date(register_date, details.get("plan_type"))

        return {
            "done": True,
            "data": {
                "name": details.get("name"),
                "email": details.get("email"),
                "status": details.get("status"),
                "domain": details.get("domain"),
                "phone": details.get("phone"),
                "website": details.get("website"),
                "address": details.get("address"),
                "currency": details.get("currency"),
                "plan_name": details.get("plan_name"),
                "plan_type": details.get("plan_type"),
                "price": package.get("price"),
                "registerdate": _gb_date(register_date),
                "expiredate": _gb_date(expire_date),
                "logo": details.get("logo"),
            },
        }
    except Exception as e:
        logger.error("Error fetching company %s: %s", company_id, e)
        return {"done": False, "message": str(e) or "Something went wrong"}


def fetch_company_for_edit(company_id: str) -> Dict[str, Any]:
    try:
        companies = get_superadmin_collections()["companies"]
        oid = _object_id(company_id)
        details = companies.find_one({"_id": oid}) if oid else None
        if details is None:
            return {"done": False, "message": "Company not found"}
        data = {"id": company_id}
        data.update({field: details.get(field) for field in EDITABLE_FIELDS if field != "currency"})
        return {"done": True, "data": data}
    except Exception as e:
        logger.error("Error fetching company %s: %s", company_id, e)
        return {"done": False, "message": str(e) or "Something went wrong"}


def update_company(form: Dict[str, Any]) -> Dict[str, Any]:
    form = form or {}
    try:
        companies = get_superadmin_collections()["companies"]
        oid = _object_id(form.get("id"))
        existing = companies.find_one({"_id": oid}) if oid else None
        if existing is None:
            return {"done": False, "error": "Company not found", "data": None}

        update = {field: form.get(field) for field in EDITABLE_FIELDS}
        update["updatedAt"] = utcnow()
        companies.update_one({"_id": oid}, {"$set": update})
        logger.info("Company %s updated, status %s", form.get("id"), update.get("status"))
        return {"done": True, "message": "Company updated successfully"}
    except Exception as e:
        logger.error("Error updating company: %s", e)
        return {"done": False, "error": str(e), "data": None}
