import logging
from typing import Any, Dict, Optional

from bson import ObjectId

from database import get_superadmin_collections, utcnow
from dateranges import add_months, as_datetime

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ["Paid", "Active"]


def _find_by_id(collection, value: Any) -> Optional[dict]:
    if value is None:
        return None
    if isinstance(value, str) and ObjectId.is_valid(value):
        value = ObjectId(value)
    return collection.find_one({"_id": value})


def fetch_subscription_stats() -> Dict[str, Any]:
    try:
        subscriptions = get_superadmin_collections()["subscriptions"]
        totals = list(subscriptions.aggregate([
            {"$group": {"_id": None, "total": {"$sum": "$amount"}}}
        ]))
        return {
            "done": True,
            "data": {
                "totalTransaction": totals[0]["total"] if totals else 0,
                "totalSubscribers": subscriptions.count_documents({}),
                "activeSubscribers": subscriptions.count_documents({"status": {"$in": ACTIVE_STATUSES}}),
                "expiredSubscribers": subscriptions.count_documents({"status": "Expired"}),
            },
        }
    except Exception as e:
        return {"done": False, "error": str(e)}


def fetch_subscriptions() -> Dict[str, Any]:
    """
    Subscription rows joined with their company and plan.

    Rows whose company or plan no longer exists are left out. Status is
    "Expired" once the billing period has passed, otherwise Paid/Active
    subscriptions report "Paid".
    """
    try:
        collections = get_superadmin_collections()
        now = utcnow()
        data = []
        for sub in collections["subscriptions"].find({}):
            company = _find_by_id(collections["companies"], sub.get("companyId"))
            plan = _find_by_id(collections["plans"], sub.get("planId")) or _find_by_id(
                collections["packages"], sub.get("planId")
            )
            if company is None or plan is None:
                continue

            billing_cycle = plan.get("billingCycle")
            if billing_cycle is None:
                billing_cycle = 12 if plan.get("planType") == "Yearly" else 1
            plan_type = "Yearly" if billing_cycle == 12 else "Monthly"
            plan_name = plan.get("name") or plan.get("planName")

            created = as_datetime(sub.get("createdAt")) or now
            expires = add_months(created, 12 if plan_type == "Yearly" else 1)

            status = sub.get("status")
            if now > expires:
                status = "Expired"
            elif status in ACTIVE_STATUSES:
                status = "Paid"

            data.append({
                "id": str(sub["_id"]),
                "CompanyName": company.get("name"),
                "Image": company.get("logo") or company.get("image") or "company-default.svg",
                "Plan": f"{plan_name} ({plan_type})",
                "BillCycle": billing_cycle,
                "Amount": sub.get("amount"),
                "CreatedDate": created.isoformat(),
                "ExpiringDate": expires.isoformat(),
                "Status": status,
            })
        return {"done": True, "data": data}
    except Exception as e:
        logger.error("Error fetching subscriptions: %s", e)
        return {"done": False, "error": str(e)}
