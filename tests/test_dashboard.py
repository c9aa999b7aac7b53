from datetime import timedelta

import dashboard_service
from conftest import run
from database import utcnow
from realtime import route_event


def _seed(admin_db):
    now = utcnow()
    basic = admin_db["packages"].insert_one({"planName": "Basic", "price": 100, "plan_id": "basic"}).inserted_id
    admin_db["packages"].insert_one({"planName": "Pro", "price": 300, "plan_id": "pro"})
    admin_db["companies"].insert_many([
        {"name": "Fresh", "status": "Active", "plan_id": str(basic), "plan_name": "Basic",
         "plan_type": "Monthly", "createdAt": now, "users": 12},
        {"name": "Legacy", "status": "Active", "plan_id": "pro", "plan_name": "Pro",
         "plan_type": "Monthly", "createdAt": now - timedelta(days=45)},
        {"name": "Longterm", "status": "Inactive", "plan_id": "pro", "plan_name": "Pro",
         "plan_type": "Yearly", "createdAt": now - timedelta(days=45)},
        {"name": "Orphan", "status": "Inactive", "plan_id": "gone", "plan_name": "Gone",
         "createdAt": now - timedelta(days=2)},
    ])


def test_dashboard_stats_sum_linked_package_prices(admin_db):
    _seed(admin_db)
    data = dashboard_service.get_dashboard_stats()["data"]
    assert data == {
        "totalCompanies": 4,
        "activeCompanies": 2,
        "inactiveCompanies": 2,
        "totalSubscribers": 2,
        "totalEarnings": 700,
    }


def test_weekly_company_data(admin_db):
    _seed(admin_db)
    counts = dashboard_service.get_weekly_company_data()["data"]
    assert len(counts) == 7
    assert counts[-1] == 1
    assert counts[-3] == 1
    assert sum(counts) == 2


def test_plan_distribution(admin_db):
    _seed(admin_db)
    data = dashboard_service.get_plan_distribution()["data"]
    assert data[0] == {"name": "Pro", "count": 2, "percentage": 50}
    assert {item["name"] for item in data} == {"Pro", "Basic", "Gone"}


def test_recent_transactions_skip_companies_without_package(admin_db):
    _seed(admin_db)
    data = dashboard_service.get_recent_transactions()["data"]
    assert [row["company"] for row in data][0] == "Fresh"
    assert "Orphan" not in [row["company"] for row in data]
    assert data[0]["amount"] == "+$100"
    assert data[0]["transactionId"].startswith("#")


def test_recently_registered_reports_user_counts(admin_db):
    _seed(admin_db)
    data = dashboard_service.get_recently_registered()["data"]
    assert data[0]["name"] == "Fresh"
    assert data[0]["users"] == 12
    assert data[0]["domain"] == "fresh.example.com"
    assert data[1]["users"] == 0


def test_expired_plans_use_plan_length(admin_db):
    _seed(admin_db)
    names = [row["name"] for row in dashboard_service.get_expired_plans()["data"]]
    assert names == ["Legacy"]


def test_empty_database(admin_db):
    res = dashboard_service.get_all_data()
    assert res["done"] is True
    assert res["data"]["stats"]["totalEarnings"] == 0
    assert res["data"]["planDistribution"] == []
    assert res["data"]["weeklyCompanies"] == [0] * 7
    assert res["data"]["monthlyRevenue"]["income"] == [0] * 12


def test_dashboard_event_reply(server, superadmin_conn, admin_db):
    _seed(admin_db)
    run(route_event(server, "sid-1", "superadmin/dashboard/get-stats", ()))
    assert server.events() == ["superadmin/dashboard/get-stats-response"]
    assert server.last("superadmin/dashboard/get-stats-response")["data"]["totalCompanies"] == 4
