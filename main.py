import logging

import socketio
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware

import crm
import database
import socialfeed
from auth import Identity, get_current_user, require_company, require_role
from clerk import IdentityError, clerk_client
from config import CORS_ORIGINS, LOG_LEVEL, PORT, SUPERADMIN_DATABASE
from realtime import sio
from schemas import CommentIn, Post, PostUpdate, ReplyIn, UpdateRoleRequest

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="HRMS API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Socket.IO in front, everything else falls through to FastAPI
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


def _unwrap(result: dict, status_code: int = 400) -> dict:
    if not result.get("done"):
        raise HTTPException(status_code=status_code, detail=result.get("error") or result.get("message"))
    return result


# ---------------------- Routes ----------------------
@app.get("/")
def read_root():
    return {"message": "HRMS Socket Server is running..."}


@app.get("/health")
def health():
    """Liveness plus a shallow check that the superadmin database answers."""
    db_status = {
        "configured": database.client is not None,
        "connected": False,
        "name": SUPERADMIN_DATABASE,
        "collections": [],
    }
    if database.client is not None:
        try:
            db_status["collections"] = sorted(database.client[SUPERADMIN_DATABASE].list_collection_names())
            db_status["connected"] = True
        except Exception as e:
            logger.warning("Health check could not reach MongoDB: %s", e)
            db_status["error"] = str(e)[:200]
    return {"status": "ok" if db_status["connected"] else "degraded", "database": db_status}


@app.post("/api/update-role")
def update_role(payload: UpdateRoleRequest, _: Identity = Depends(require_role("superadmin"))):
    try:
        user = clerk_client.get_user(payload.userId)
        metadata = dict(user.get("public_metadata") or {})
        metadata["role"] = payload.role
        if payload.companyId is not None:
            metadata["companyId"] = payload.companyId
        clerk_client.update_user_metadata(payload.userId, metadata)
    except IdentityError as e:
        logger.error("Role update for %s failed: %s", payload.userId, e)
        raise HTTPException(status_code=502, detail="Failed to update user role")
    logger.info("Role of %s set to %s", payload.userId, payload.role)
    return {
        "done": True,
        "message": f"Role updated to {payload.role}",
        "user": {"id": payload.userId, "publicMetadata": metadata},
    }


@app.get("/api/me")
def me(user: Identity = Depends(get_current_user)):
    return {"id": user.user_id, "role": user.role, "companyId": user.company_id}


# ---------------------- Tenant CRM ----------------------
def register_crm_routes(resource: crm.Resource) -> None:
    base = f"/api/{resource.name}"
    schema = resource.schema

    @app.get(base, name=f"list_{resource.name}")
    def list_records(
        page: int = Query(1, ge=1),
        limit: int = Query(crm.DEFAULT_LIMIT, ge=1, le=crm.MAX_LIMIT),
        search: str = Query(""),
        status: str = Query("All"),
        sortBy: str = Query("createdAt"),
        sortOrder: str = Query("desc"),
        tenant: str = Depends(require_company),
    ):
        return crm.list_records(tenant, resource, page, limit, search, status, sortBy, sortOrder)

    @app.get(f"{base}/export", name=f"export_{resource.name}")
    def export_records(export_format: str = Query(..., alias="format"), tenant: str = Depends(require_company)):
        if export_format not in ("csv", "excel"):
            raise HTTPException(status_code=400, detail="Invalid format. Supported formats: csv, excel")
        result = _unwrap(crm.export_records(tenant, resource))
        return Response(
            content=result["data"],
            media_type=result["contentType"],
            headers={"Content-Disposition": f'attachment; filename="{resource.name}.csv"'},
        )

    @app.post(base, name=f"create_{resource.name}")
    def create_record(payload: schema, tenant: str = Depends(require_company)):
        return crm.create_record(tenant, resource, payload)

    @app.get(f"{base}/{{record_id}}", name=f"get_{resource.name}")
    def get_record(record_id: str, tenant: str = Depends(require_company)):
        result = crm.get_record(tenant, resource, record_id)
        return _unwrap(result, 404 if "not found" in str(result.get("error")) else 400)

    @app.put(f"{base}/{{record_id}}", name=f"update_{resource.name}")
    def update_record(record_id: str, updates: dict, tenant: str = Depends(require_company)):
        result = crm.update_record(tenant, resource, record_id, updates)
        return _unwrap(result, 404 if "not found" in str(result.get("error")) else 400)

    @app.delete(f"{base}/{{record_id}}", name=f"delete_{resource.name}")
    def delete_record(record_id: str, tenant: str = Depends(require_company)):
        result = crm.delete_record(tenant, resource, record_id)
        return _unwrap(result, 404 if "not found" in str(result.get("error")) else 400)


for _resource in crm.RESOURCES.values():
    register_crm_routes(_resource)


# ---------------------- Social feed ----------------------
feed = APIRouter(prefix="/api/socialfeed")


def _feed_result(result: dict) -> dict:
    return _unwrap(result, 404 if "not found" in str(result.get("error")).lower() else 400)


@feed.get("/posts")
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(socialfeed.DEFAULT_LIMIT, ge=1, le=socialfeed.MAX_LIMIT),
    tenant: str = Depends(require_company),
):
    return socialfeed.get_all_posts(tenant, page, limit)


@feed.get("/posts/user/{user_id}")
def list_user_posts(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(socialfeed.DEFAULT_LIMIT, ge=1, le=socialfeed.MAX_LIMIT),
    tenant: str = Depends(require_company),
):
    return socialfeed.get_posts_by_user(tenant, user_id, page, limit)


@feed.post("/posts", status_code=201)
def create_post(payload: Post, user: Identity = Depends(get_current_user), tenant: str = Depends(require_company)):
    return socialfeed.create_post(tenant, user.user_id, payload)


@feed.put("/posts/{post_id}")
def update_post(post_id: str, payload: PostUpdate, user: Identity = Depends(get_current_user),
                tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.update_post(tenant, post_id, user.user_id, payload))


@feed.delete("/posts/{post_id}")
def delete_post(post_id: str, user: Identity = Depends(get_current_user), tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.delete_post(tenant, post_id, user.user_id))


@feed.post("/posts/{post_id}/like")
def like_post(post_id: str, user: Identity = Depends(get_current_user), tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.toggle_like(tenant, post_id, user.user_id))


@feed.post("/posts/{post_id}/bookmark")
def bookmark_post(post_id: str, user: Identity = Depends(get_current_user), tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.toggle_bookmark(tenant, post_id, user.user_id))


@feed.post("/posts/{post_id}/comments", status_code=201)
def add_comment(post_id: str, payload: CommentIn, user: Identity = Depends(get_current_user),
                tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.add_comment(tenant, post_id, user.user_id, payload.content))


@feed.delete("/posts/{post_id}/comments/{comment_id}")
def delete_comment(post_id: str, comment_id: str, user: Identity = Depends(get_current_user),
                   tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.delete_comment(tenant, post_id, comment_id, user.user_id))


@feed.post("/posts/{post_id}/comments/{comment_id}/replies", status_code=201)
def add_reply(post_id: str, comment_id: str, payload: ReplyIn, user: Identity = Depends(get_current_user),
              tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.add_reply(tenant, post_id, comment_id, user.user_id, payload.content))


@feed.get("/posts/{post_id}/comments/{comment_id}/replies")
def list_replies(
    post_id: str,
    comment_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(socialfeed.REPLY_LIMIT, ge=1, le=socialfeed.MAX_LIMIT),
    tenant: str = Depends(require_company),
):
    return _feed_result(socialfeed.get_comment_replies(tenant, post_id, comment_id, page, limit))


@feed.post("/posts/{post_id}/comments/{comment_id}/replies/{reply_id}/like")
def like_reply(post_id: str, comment_id: str, reply_id: str, user: Identity = Depends(get_current_user),
               tenant: str = Depends(require_company)):
    return _feed_result(socialfeed.toggle_reply_like(tenant, post_id, comment_id, reply_id, user.user_id))


@feed.get("/hashtags/trending")
def trending_hashtags(limit: int = Query(socialfeed.TRENDING_LIMIT, ge=1, le=socialfeed.MAX_LIMIT),
                      tenant: str = Depends(require_company)):
    return socialfeed.get_trending_hashtags(tenant, limit)


@feed.get("/bookmarks")
def bookmarked_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(socialfeed.DEFAULT_LIMIT, ge=1, le=socialfeed.MAX_LIMIT),
    user: Identity = Depends(get_current_user),
    tenant: str = Depends(require_company),
):
    return socialfeed.get_bookmarked_posts(tenant, user.user_id, page, limit)


@feed.get("/search")
def search_posts(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(socialfeed.DEFAULT_LIMIT, ge=1, le=socialfeed.MAX_LIMIT),
    tenant: str = Depends(require_company),
):
    return _feed_result(socialfeed.search_posts(tenant, q, page, limit))


app.include_router(feed)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(asgi_app, host="0.0.0.0", port=PORT)
