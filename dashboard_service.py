"""
Superadmin dashboard figures.

Companies reference packages by a denormalized plan_id string, so prices
are joined in Python through a package index rather than with $lookup.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from database import get_superadmin_collections, utcnow
from dateranges import as_datetime, format_day, start_of_day

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
EXPENSE_RATIO = 0.3
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _package_index(packages) -> Dict[str, dict]:
    index = {}
    for pkg in packages.find({}):
        index[str(pkg["_id"])] = pkg
        if pkg.get("plan_id"):
            index[str(pkg["plan_id"])] = pkg
    return index


def _price(index: Dict[str, dict], company: dict) -> Optional[float]:
    pkg = index.get(str(company.get("plan_id")))
    if pkg is None:
        return None
    return pkg.get("price") or 0


def _logo(company: dict, fallback: str) -> str:
    logo = company.get("logo")
    return logo if logo and str(logo).strip() else fallback


def _plan_label(company: dict) -> str:
    return f"{company.get('plan_name') or 'Basic'} ({company.get('plan_type') or 'Monthly'})"


def get_dashboard_stats() -> Dict[str, Any]:
    try:
        collections = get_superadmin_collections()
        companies = collections["companies"]
        index = _package_index(collections["packages"])

        total_earnings = 0
        for company in companies.find({}, {"plan_id": 1}):
            price = _price(index, company)
            if price is not None:
                total_earnings += price

        active = companies.count_documents({"status": "Active"})
        return {
            "done": True,
            "data": {
                "totalCompanies": companies.count_documents({}),
                "activeCompanies": active,
                "inactiveCompanies": companies.count_documents({"status": "Inactive"}),
                "totalSubscribers": active,
                "totalEarnings": total_earnings,
            },
        }
    except Exception as e:
        logger.error("Error fetching dashboard stats: %s", e)
        return {"done": False, "error": str(e)}


def get_weekly_company_data() -> Dict[str, Any]:
    """Companies registered on each of the last seven days, oldest first."""
    try:
        companies = get_superadmin_collections()["companies"]
        today = start_of_day(utcnow())
        counts = []
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            counts.append(companies.count_documents({
                "createdAt": {"$gte": day, "$lt": day + timedelta(days=1)}
            }))
        return {"done": True, "data": counts}
    except Exception as e:
        logger.error("Error fetching weekly company data: %s", e)
        return {"done": False, "error": str(e)}


def get_monthly_revenue_data() -> Dict[str, Any]:
    """Income and expenses per month of the current year, in thousands."""
    try:
        collections = get_superadmin_collections()
        index = _package_index(collections["packages"])
        year = utcnow().year

        income = [0.0] * 12
        for company in collections["companies"].find({}, {"plan_id": 1, "createdAt": 1}):
            created = as_datetime(company.get("createdAt"))
            price = _price(index, company)
            if created is None or price is None or created.year != year:
                continue
            income[created.month - 1] += price

        return {
            "done": True,
            "data": {
                "months": MONTHS,
                "income": [round(v / 1000) for v in income],
                "expenses": [round(v * EXPENSE_RATIO / 1000) for v in income],
            },
        }
    except Exception as e:
        logger.error("Error fetching monthly revenue data: %s", e)
        return {"done": False, "error": str(e)}


def get_plan_distribution() -> Dict[str, Any]:
    try:
        companies = get_superadmin_collections()["companies"]
        total = companies.count_documents({})
        pipeline = [
            {"$group": {"_id": "$plan_name", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ]
        data = [
            {
                "name": item["_id"] or "Unknown",
                "count": item["count"],
                "percentage": round(item["count"] * 100 / total) if total else 0,
            }
            for item in companies.aggregate(pipeline)
        ]
        return {"done": True, "data": data}
    except Exception as e:
        logger.error("Error fetching plan distribution: %s", e)
        return {"done": False, "error": str(e)}


def get_recent_transactions() -> Dict[str, Any]:
    try:
        collections = get_superadmin_collections()
        index = _package_index(collections["packages"])
        data = []
        for company in collections["companies"].find({}).sort("createdAt", -1):
            price = _price(index, company)
            if price is None:
                continue
            data.append({
                "id": str(company["_id"]),
                "company": company.get("name") or "Unknown Company",
                "logo": _logo(company, "assets/img/company/company-02.svg"),
                "transactionId": f"#{str(company['_id'])[:6]}",
                "date": format_day(company.get("createdAt")),
                "amount": f"+${price}",
                "plan": _plan_label(company),
            })
            if len(data) == RECENT_LIMIT:
                break
        return {"done": True, "data": data}
    except Exception as e:
        logger.error("Error fetching recent transactions: %s", e)
        return {"done": False, "error": str(e)}


def get_recently_registered() -> Dict[str, Any]:
    try:
        companies = get_superadmin_collections()["companies"]
        data = []
        for company in companies.find({}).sort("createdAt", -1).limit(RECENT_LIMIT):
            domain = (company.get("domain") or "").strip()
            if not domain:
                domain = "-".join((company.get("name") or "company").lower().split())
            plan = (
                f"{company['plan_name']} ({company['plan_type']})"
                if company.get("plan_name") and company.get("plan_type")
                else "Basic Plan"
            )
            data.append({
                "id": str(company["_id"]),
                "name": company.get("name") or "Unknown Company",
                "logo": _logo(company, "assets/img/icons/company-icon-11.svg"),
                "domain": f"{domain}.example.com",
                "plan": plan,
                "users": company.get("users", 0),
                "registeredDate": format_day(company.get("createdAt")),
            })
        return {"done": True, "data": data}
    except Exception as e:
        logger.error("Error fetching recently registered companies: %s", e)
        return {"done": False, "error": str(e)}


def get_expired_plans() -> Dict[str, Any]:
    """Companies whose plan ran out: 365 days for Yearly, 30 days otherwise."""
    try:
        companies = get_superadmin_collections()["companies"]
        now = utcnow()
        data = []
        for company in companies.find({}).sort("createdAt", 1):
            created = as_datetime(company.get("createdAt"))
            if created is None:
                continue
            days = 365 if company.get("plan_type") == "Yearly" else 30
            expires = created + timedelta(days=days)
            if expires >= now:
                continue
            data.append({
                "id": str(company["_id"]),
                "name": company.get("name") or "Unknown Company",
                "logo": _logo(company, "assets/img/icons/company-icon-16.svg"),
                "plan": _plan_label(company),
                "expiredDate": format_day(expires),
            })
            if len(data) == RECENT_LIMIT:
                break
        return {"done": True, "data": data}
    except Exception as e:
        logger.error("Error fetching expired plans: %s", e)
        return {"done": False, "error": str(e)}


SECTIONS = {
    "stats": get_dashboard_stats,
    "weeklyCompanies": get_weekly_company_data,
    "monthlyRevenue": get_monthly_revenue_data,
    "planDistribution": get_plan_distribution,
    "recentTransactions": get_recent_transactions,
    "recentlyRegistered": get_recently_registered,
    "expiredPlans": get_expired_plans,
}


def get_all_data() -> Dict[str, Any]:
    data = {}
    for name, section in SECTIONS.items():
        result = section()
        if not result.get("done"):
            return {"done": False, "error": result.get("error") or f"Failed to load {name}"}
        data[name] = result["data"]
    return {"done": True, "data": data}
