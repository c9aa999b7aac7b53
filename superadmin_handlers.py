"""
Superadmin socket modules: packages, companies, dashboard, subscriptions.

Each factory builds the handler set for one connection. Mutations that
succeed push refreshed lists and stats to everyone in the superadmin room.
"""
import logging

import company_service
import dashboard_service
import package_service
import subscription_service
from config import SUPERADMIN_ROOM
from events import Connection, HandlerSet, broadcast, respond, router

logger = logging.getLogger(__name__)

ROLE = "superadmin"


@router.module(ROLE, "packages")
def package_handlers(conn: Connection) -> HandlerSet:
    handlers = HandlerSet(conn)

    async def refresh():
        await broadcast(conn, SUPERADMIN_ROOM, "superadmin/packages/planlist-response", package_service.get_plans, {})
        await broadcast(conn, SUPERADMIN_ROOM, "superadmin/packages/plan-details-response", package_service.get_plan_stats)

    @handlers.on("superadmin/packages/plan-details")
    async def plan_details(*_):
        await respond(conn, "superadmin/packages/plan-details", package_service.get_plan_stats)

    @handlers.on("superadmin/packages/planlist")
    async def planlist(filters=None, *_):
        await respond(conn, "superadmin/packages/planlist", package_service.get_plans, filters or {})

    @handlers.on("superadmin/packages/get-plan")
    async def get_plan(planid=None, *_):
        await respond(conn, "superadmin/packages/get-plan", package_service.get_plan, planid)

    @handlers.on("superadmin/packages/add-plan")
    async def add_plan(plan=None, *_):
        logger.info("Superadmin %s is adding a plan", conn.user_id)
        res = await respond(conn, "superadmin/packages/add-plan", package_service.add_plan, conn.user_id, plan)
        if res.get("done"):
            await refresh()

    @handlers.on("superadmin/packages/update-plan")
    async def update_plan(plan=None, *_):
        logger.info("Superadmin %s is updating a plan", conn.user_id)
        res = await respond(conn, "superadmin/packages/update-plan", package_service.update_plan, plan)
        if res.get("done"):
            await refresh()

    @handlers.on("superadmin/packages/delete-plan")
    async def delete_plan(planids=None, *_):
        logger.info("Superadmin %s is deleting plans %s", conn.user_id, planids)
        res = await respond(conn, "superadmin/packages/delete-plan", package_service.delete_plans, planids)
        if res.get("done"):
            await refresh()

    return handlers


@router.module(ROLE, "companies")
def company_handlers(conn: Connection) -> HandlerSet:
    handlers = HandlerSet(conn)

    async def refresh():
        await broadcast(conn, SUPERADMIN_ROOM, "superadmin/companies/fetch-companylist-response",
                        company_service.fetch_company_list, {})
        await broadcast(conn, SUPERADMIN_ROOM, "superadmin/companies/fetch-companystats-response",
                        company_service.fetch_company_stats)

    @handlers.on("superadmin/companies/fetch-packages")
    async def fetch_packages(*_):
        await respond(conn, "superadmin/companies/fetch-packages", company_service.fetch_packages)

    @handlers.on("superadmin/companies/add-company")
    async def add_company(data=None, *_):
        res = await respond(conn, "superadmin/companies/add-company", company_service.add_company, data, conn.user_id)
        if res.get("done"):
            await refresh()

    @handlers.on("superadmin/companies/fetch-companylist")
    async def fetch_companylist(filters=None, *_):
        await respond(conn, "superadmin/companies/fetch-companylist", company_service.fetch_company_list, filters or {})

    @handlers.on("superadmin/companies/fetch-companystats")
    async def fetch_companystats(*_):
        await respond(conn, "superadmin/companies/fetch-companystats", company_service.fetch_company_stats)

    @handlers.on("superadmin/companies/delete-company")
    async def delete_company(ids=None, *_):
        logger.info("Superadmin %s is deleting companies %s", conn.user_id, ids)
        res = await respond(conn, "superadmin/companies/delete-company", company_service.delete_companies, ids)
        if res.get("done"):
            await refresh()

    @handlers.on("superadmin/companies/view-company")
    async def view_company(company_id=None, edit=False, *_):
        # the edit view answers on its own response channel
        if edit:
            await respond(conn, "superadmin/companies/editview-company", company_service.fetch_company_for_edit, company_id)
        else:
            await respond(conn, "superadmin/companies/view-company", company_service.fetch_company, company_id)

    @handlers.on("superadmin/companies/edit-company")
    async def edit_company(form=None, *_):
        res = await respond(conn, "superadmin/companies/edit-company", company_service.update_company, form)
        if res.get("done"):
            await refresh()

    return handlers


@router.module(ROLE, "dashboard")
def dashboard_handlers(conn: Connection) -> HandlerSet:
    handlers = HandlerSet(conn)

    routes = {
        "superadmin/dashboard/get-stats": dashboard_service.get_dashboard_stats,
        "superadmin/dashboard/get-weekly-companies": dashboard_service.get_weekly_company_data,
        "superadmin/dashboard/get-monthly-revenue": dashboard_service.get_monthly_revenue_data,
        "superadmin/dashboard/get-plan-distribution": dashboard_service.get_plan_distribution,
        "superadmin/dashboard/get-recent-transactions": dashboard_service.get_recent_transactions,
        "superadmin/dashboard/get-recently-registered": dashboard_service.get_recently_registered,
        "superadmin/dashboard/get-expired-plans": dashboard_service.get_expired_plans,
        "superadmin/dashboard/get-all-data": dashboard_service.get_all_data,
    }

    def bind(event, service):
        @handlers.on(event)
        async def handler(*_):
            await respond(conn, event, service)

    for event, service in routes.items():
        bind(event, service)

    return handlers


@router.module(ROLE, "subscriptions")
def subscription_handlers(conn: Connection) -> HandlerSet:
    handlers = HandlerSet(conn)

    @handlers.on("superadmin/subscriptions/fetch-list")
    async def fetch_list(*_):
        await respond(conn, "superadmin/subscriptions/fetch-list", subscription_service.fetch_subscriptions)

    @handlers.on("superadmin/subscriptions/fetch-stats")
    async def fetch_stats(*_):
        await respond(conn, "superadmin/subscriptions/fetch-stats", subscription_service.fetch_subscription_stats)

    return handlers
