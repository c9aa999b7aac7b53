"""
Subscription packages (plans) managed by the superadmin.

Every function returns a {done, data?, message?, error?} envelope and never
raises.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import ValidationError

from database import get_superadmin_collections, utcnow
from dateranges import build_date_filter, format_day
from schemas import Plan

logger = logging.getLogger(__name__)

HIDDEN_PLAN_FIELDS = ("_id", "created_at", "created_by", "subscribers")


def _validation_message(e: ValidationError) -> str:
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
    return "Invalid plan: " + ", ".join(fields)


def get_plan_stats() -> Dict[str, Any]:
    try:
        packages = get_superadmin_collections()["packages"]
        return {
            "done": True,
            "message": "success",
            "data": {
                "totalPlans": str(packages.count_documents({})),
                "activePlans": str(packages.count_documents({"status": "Active"})),
                "inactivePlans": str(packages.count_documents({"status": "Inactive"})),
                "planTypes": str(len([t for t in packages.distinct("planType") if t])),
            },
        }
    except Exception as e:
        logger.error("Error fetching plan details: %s", e)
        return {"done": False, "message": "Error fetching plan details"}


def get_plans(filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    filters = filters or {}
    try:
        packages = get_superadmin_collections()["packages"]
        date_filter = build_date_filter(
            "created_at", filters.get("type"), filters.get("startDate"), filters.get("endDate")
        )
        rows = []
        for plan in packages.find(date_filter).sort("created_at", -1):
            rows.append({
                "Plan_Name": plan.get("planName"),
                "Plan_Type": plan.get("planType"),
                "Total_Subscribers": plan.get("subscribers", 0),
                "Price": plan.get("price"),
                "Status": plan.get("status"),
                "planid": plan.get("plan_id"),
                "created_at": plan.get("created_at"),
                "Created_Date": format_day(plan.get("created_at")),
            })
        return {"done": True, "message": "success", "data": rows, "count": len(rows)}
    except Exception as e:
        logger.error("Error fetching plans: %s", e)
        return {"done": False, "message": str(e), "data": []}


def get_plan(planid: str) -> Dict[str, Any]:
    try:
        packages = get_superadmin_collections()["packages"]
        plan = packages.find_one({"plan_id": planid})
        if plan is None:
            return {"done": False, "message": "Plan not found", "data": None}
        for key in HIDDEN_PLAN_FIELDS:
            plan.pop(key, None)
        return {"done": True, "message": "success", "data": plan}
    except Exception as e:
        logger.error("Error fetching plan %s: %s", planid, e)
        return {"done": False, "message": str(e), "data": None}


def add_plan(user_id: Optional[str], plan: Dict[str, Any]) -> Dict[str, Any]:
    try:
        validated = Plan.model_validate(plan or {})
    except ValidationError as e:
        logger.warning("Rejected plan from %s: %s", user_id, e)
        return {"done": False, "message": _validation_message(e)}

    try:
        packages = get_superadmin_collections()["packages"]
        new_plan = validated.model_dump()
        new_plan.pop("_id", None)
        new_plan.update({
            "subscribers": 0,
            "plan_id": str(ObjectId()),
            "created_by": user_id,
            "created_at": utcnow(),
        })
        packages.insert_one(new_plan)
        logger.info("Plan added with id %s", new_plan["plan_id"])
        return {"done": True, "message": "Plan added successfully", "data": {"planid": new_plan["plan_id"]}}
    except Exception as e:
        logger.error("Error adding plan: %s", e)
        return {"done": False, "message": "Error adding plan"}


def update_plan(form: Dict[str, Any]) -> Dict[str, Any]:
    form = form or {}
    plan_id = form.get("plan_id")
    if not plan_id:
        return {"done": False, "message": "plan_id is required", "data": None}
    try:
        validated = Plan.model_validate(form)
    except ValidationError as e:
        return {"done": False, "message": _validation_message(e), "data": None}

    try:
        packages = get_superadmin_collections()["packages"]
        existing = packages.find_one({"plan_id": plan_id})
        if existing is None:
            return {"done": False, "message": "Plan not found", "data": None}

        update = validated.model_dump()
        update.pop("_id", None)
        update.update({
            "plan_id": plan_id,
            "created_by": existing.get("created_by"),
            "created_at": existing.get("created_at"),
            "subscribers": existing.get("subscribers", 0),
            "planModules": list(validated.planModules),
        })
        result = packages.update_one({"plan_id": plan_id}, {"$set": update})
        if result.matched_count == 0:
            return {"done": False, "message": "Plan not found", "data": None}
        return {"done": True, "message": "Plan updated successfully", "data": update}
    except Exception as e:
        logger.error("Error updating plan %s: %s", plan_id, e)
        return {"done": False, "message": str(e), "data": None}


def delete_plans(planids: Union[str, List[str], None]) -> Dict[str, Any]:
    if isinstance(planids, str):
        planids = [planids]
    try:
        packages = get_superadmin_collections()["packages"]
        result = packages.delete_many({"plan_id": {"$in": list(planids or [])}})
        return {"done": True, "message": f"{result.deleted_count} plans deleted successfully.", "data": None}
    except Exception as e:
        logger.error("Error deleting plans: %s", e)
        return {"done": False, "message": str(e), "data": None}
