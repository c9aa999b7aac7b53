from datetime import timedelta

import subscription_service
from conftest import run
from database import utcnow
from realtime import route_event


def _seed(admin_db):
    now = utcnow()
    company = admin_db["companies"].insert_one({"name": "Acme", "logo": "acme.png"}).inserted_id
    monthly = admin_db["plans"].insert_one({"name": "Starter", "billingCycle": 1}).inserted_id
    yearly = admin_db["plans"].insert_one({"name": "Scale", "billingCycle": 12}).inserted_id
    admin_db["subscriptions"].insert_many([
        {"companyId": company, "planId": monthly, "amount": 50, "status": "Active",
         "createdAt": now - timedelta(days=5)},
        {"companyId": str(company), "planId": str(monthly), "amount": 50, "status": "Paid",
         "createdAt": now - timedelta(days=60)},
        {"companyId": company, "planId": yearly, "amount": 500, "status": "Pending",
         "createdAt": now - timedelta(days=60)},
        {"companyId": company, "planId": "missing", "amount": 10, "status": "Expired"},
    ])


def test_subscription_stats(admin_db):
    _seed(admin_db)
    data = subscription_service.fetch_subscription_stats()["data"]
    assert data == {
        "totalTransaction": 610,
        "totalSubscribers": 4,
        "activeSubscribers": 2,
        "expiredSubscribers": 1,
    }


def test_subscription_rows(admin_db):
    _seed(admin_db)
    rows = subscription_service.fetch_subscriptions()["data"]
    assert len(rows) == 3
    assert [row["Status"] for row in rows] == ["Paid", "Expired", "Pending"]
    assert rows[0]["Plan"] == "Starter (Monthly)"
    assert rows[2]["Plan"] == "Scale (Yearly)"
    assert rows[2]["BillCycle"] == 12
    assert rows[0]["Image"] == "acme.png"


def test_plan_falls_back_to_packages(admin_db):
    company = admin_db["companies"].insert_one({"name": "Acme"}).inserted_id
    package = admin_db["packages"].insert_one({"planName": "Advanced", "planType": "Yearly"}).inserted_id
    admin_db["subscriptions"].insert_one({"companyId": company, "planId": package, "amount": 200,
                                          "status": "Paid", "createdAt": utcnow()})
    row = subscription_service.fetch_subscriptions()["data"][0]
    assert row["Plan"] == "Advanced (Yearly)"
    assert row["Image"] == "company-default.svg"


def test_empty_stats(admin_db):
    data = subscription_service.fetch_subscription_stats()["data"]
    assert data["totalTransaction"] == 0


def test_subscription_event_reply(server, superadmin_conn, admin_db):
    _seed(admin_db)
    run(route_event(server, "sid-1", "superadmin/subscriptions/fetch-list", ()))
    assert server.events(to="sid-1") == ["superadmin/subscriptions/fetch-list-response"]
    assert len(server.last("superadmin/subscriptions/fetch-list-response")["data"]) == 3
