"""
Company social feed

Posts live in the tenant's "socialFeeds" collection with likes, comments,
shares and bookmarks embedded. Comments and replies carry their own _id.
Authors are resolved through the identity provider when posts are read;
unknown users get a placeholder profile built from their id.
"""
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

from clerk import IdentityError, clerk_client
from database import get_tenant_collections, utcnow
from events import encode
from schemas import Post, PostUpdate

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
REPLY_LIMIT = 10
TRENDING_LIMIT = 10


def _collection(tenant_id: str):
    return get_tenant_collections(tenant_id)["socialFeeds"]


def _oid(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _paging(page: Any, limit: Any, default: int = DEFAULT_LIMIT):
    try:
        page = max(int(page), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(limit), 1), MAX_LIMIT)
    except (TypeError, ValueError):
        limit = default
    return page, limit


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)}


# ---------------------- Authors ----------------------

def placeholder_user(user_id: Optional[str]) -> Dict[str, Any]:
    name = user_id.replace("user_", "") if user_id else "Unknown"
    return {"id": user_id, "firstName": name, "lastName": "", "imageUrl": None, "email": None}


def _profile(user_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    emails = user.get("email_addresses") or []
    primary = next(
        (e.get("email_address") for e in emails if e.get("id") == user.get("primary_email_address_id")),
        emails[0].get("email_address") if emails else None,
    )
    return {
        "id": user_id,
        "firstName": user.get("first_name") or (primary.split("@")[0] if primary else "User"),
        "lastName": user.get("last_name") or "",
        "imageUrl": user.get("image_url"),
        "email": primary,
    }


def _user_ids(items: Iterable[dict]) -> Iterable[str]:
    for item in items:
        yield item.get("userId")
        for key in ("likes", "shares", "bookmarks"):
            for entry in item.get(key) or []:
                yield entry.get("userId")
        yield from _user_ids(item.get("comments") or [])
        yield from _user_ids(item.get("replies") or [])


def _directory(posts: List[dict], client) -> Dict[str, Dict[str, Any]]:
    users = {}
    for user_id in _user_ids(posts):
        if not isinstance(user_id, str) or not user_id.strip() or user_id in users:
            continue
        try:
            users[user_id] = _profile(user_id, client.get_user(user_id))
        except IdentityError as e:
            logger.warning("Could not load feed author %s: %s", user_id, e)
            users[user_id] = placeholder_user(user_id)
    return users


def _with_users(item: dict, users: Dict[str, Dict[str, Any]]) -> dict:
    out = dict(item)
    out["user"] = users.get(item.get("userId")) or placeholder_user(item.get("userId"))
    for key in ("likes", "shares", "bookmarks"):
        if key in item:
            out[key] = [
                {**entry, "user": users.get(entry.get("userId")) or placeholder_user(entry.get("userId"))}
                for entry in item.get(key) or []
            ]
    for key in ("comments", "replies"):
        if key in item:
            out[key] = [_with_users(child, users) for child in item.get(key) or []]
    return out


def enrich_posts(posts: List[dict], client=None) -> List[dict]:
    """Attach author profiles to posts, comments, replies and reactions."""
    users = _directory(posts, client or clerk_client)
    return encode([_with_users(post, users) for post in posts])


# ---------------------- Reads ----------------------

def _list(tenant_id: str, query: Dict[str, Any], page: Any, limit: Any, client=None) -> Dict[str, Any]:
    page, limit = _paging(page, limit)
    collection = _collection(tenant_id)
    total = collection.count_documents(query)
    posts = list(collection.find(query).sort("createdAt", -1).skip((page - 1) * limit).limit(limit))
    return {"done": True, "data": enrich_posts(posts, client), "pagination": _pagination(page, limit, total)}


def get_all_posts(tenant_id: str, page: Any = 1, limit: Any = DEFAULT_LIMIT, client=None) -> Dict[str, Any]:
    return _list(tenant_id, {}, page, limit, client)


def get_posts_by_user(tenant_id: str, user_id: str, page: Any = 1, limit: Any = DEFAULT_LIMIT, client=None) -> Dict[str, Any]:
    return _list(tenant_id, {"userId": user_id}, page, limit, client)


def get_bookmarked_posts(tenant_id: str, user_id: str, page: Any = 1, limit: Any = DEFAULT_LIMIT, client=None) -> Dict[str, Any]:
    return _list(tenant_id, {"bookmarks.userId": user_id}, page, limit, client)


def search_posts(tenant_id: str, text: str, page: Any = 1, limit: Any = DEFAULT_LIMIT, client=None) -> Dict[str, Any]:
    if not text or not text.strip():
        return {"done": False, "error": "Search query is required"}
    pattern = {"$regex": re.escape(text.strip()), "$options": "i"}
    return _list(tenant_id, {"$or": [{"content": pattern}, {"tags": pattern}]}, page, limit, client)


def get_trending_hashtags(tenant_id: str, limit: Any = TRENDING_LIMIT) -> Dict[str, Any]:
    _, limit = _paging(1, limit, TRENDING_LIMIT)
    pipeline = [
        {"$unwind": "$tags"},
        {"$group": {"_id": "$tags", "count": {"$sum": 1}, "lastUsed": {"$max": "$createdAt"}}},
        {"$sort": {"count": -1, "lastUsed": -1}},
        {"$limit": limit},
        {"$project": {"_id": 0, "hashtag": "$_id", "count": 1, "lastUsed": 1}},
    ]
    return {"done": True, "data": encode(list(_collection(tenant_id).aggregate(pipeline)))}


def get_comment_replies(tenant_id: str, post_id: str, comment_id: str, page: Any = 1, limit: Any = REPLY_LIMIT) -> Dict[str, Any]:
    _, comment = _find_comment(tenant_id, post_id, comment_id)
    if comment is None:
        return {"done": False, "error": "Post or comment not found"}
    page, limit = _paging(page, limit, REPLY_LIMIT)
    replies = sorted(comment.get("replies") or [], key=lambda r: r.get("createdAt"), reverse=True)
    start = (page - 1) * limit
    return {
        "done": True,
        "data": encode([_with_users(reply, {}) for reply in replies[start:start + limit]]),
        "pagination": _pagination(page, limit, len(replies)),
    }


# ---------------------- Posts ----------------------

def _one(tenant_id: str, oid: ObjectId, client=None) -> Dict[str, Any]:
    return enrich_posts([_collection(tenant_id).find_one({"_id": oid})], client)[0]


def create_post(tenant_id: str, user_id: str, post: Post, client=None) -> Dict[str, Any]:
    now = utcnow()
    doc = post.model_dump()
    doc.update({
        "userId": user_id,
        "companyId": tenant_id,
        "likes": [],
        "comments": [],
        "shares": [],
        "bookmarks": [],
        "createdAt": now,
        "updatedAt": now,
    })
    result = _collection(tenant_id).insert_one(doc)
    logger.info("Post %s created by %s in %s", result.inserted_id, user_id, tenant_id)
    return {"done": True, "data": _one(tenant_id, result.inserted_id, client), "message": "Post created successfully"}


def update_post(tenant_id: str, post_id: str, user_id: str, updates: PostUpdate, client=None) -> Dict[str, Any]:
    oid = _oid(post_id)
    if oid is None:
        return {"done": False, "error": "Invalid post id"}
    changes = updates.model_dump(exclude_none=True)
    changes["updatedAt"] = utcnow()
    result = _collection(tenant_id).update_one({"_id": oid, "userId": user_id}, {"$set": changes})
    if result.matched_count == 0:
        return {"done": False, "error": "Post not found or unauthorized"}
    return {"done": True, "data": _one(tenant_id, oid, client), "message": "Post updated successfully"}


def delete_post(tenant_id: str, post_id: str, user_id: str) -> Dict[str, Any]:
    oid = _oid(post_id)
    if oid is None:
        return {"done": False, "error": "Invalid post id"}
    result = _collection(tenant_id).delete_one({"_id": oid, "userId": user_id})
    if result.deleted_count == 0:
        return {"done": False, "error": "Post not found or unauthorized"}
    logger.info("Post %s deleted by %s", post_id, user_id)
    return {"done": True, "data": None, "message": "Post deleted successfully"}


def _toggle(tenant_id: str, post_id: str, user_id: str, field: str):
    oid = _oid(post_id)
    if oid is None:
        return None, {"done": False, "error": "Invalid post id"}
    collection = _collection(tenant_id)
    post = collection.find_one({"_id": oid}, {field: 1})
    if post is None:
        return None, {"done": False, "error": "Post not found"}
    if any(entry.get("userId") == user_id for entry in post.get(field) or []):
        collection.update_one({"_id": oid}, {"$pull": {field: {"userId": user_id}}})
    else:
        collection.update_one({"_id": oid}, {"$push": {field: {"userId": user_id, "createdAt": utcnow()}}})
    return oid, None


def toggle_like(tenant_id: str, post_id: str, user_id: str, client=None) -> Dict[str, Any]:
    oid, error = _toggle(tenant_id, post_id, user_id, "likes")
    if error:
        return error
    return {"done": True, "data": _one(tenant_id, oid, client), "message": "Like updated successfully"}


def toggle_bookmark(tenant_id: str, post_id: str, user_id: str) -> Dict[str, Any]:
    _, error = _toggle(tenant_id, post_id, user_id, "bookmarks")
    if error:
        return error
    return {"done": True, "data": None, "message": "Bookmark updated successfully"}


# ---------------------- Comments and replies ----------------------

def _find_comment(tenant_id: str, post_id: str, comment_id: str):
    post_oid, comment_oid = _oid(post_id), _oid(comment_id)
    if post_oid is None or comment_oid is None:
        return None, None
    post = _collection(tenant_id).find_one({"_id": post_oid})
    if post is None:
        return None, None
    comment = next((c for c in post.get("comments") or [] if c.get("_id") == comment_oid), None)
    return post, comment


def add_comment(tenant_id: str, post_id: str, user_id: str, content: str, client=None) -> Dict[str, Any]:
    oid = _oid(post_id)
    if oid is None:
        return {"done": False, "error": "Invalid post id"}
    now = utcnow()
    comment = {"_id": ObjectId(), "userId": user_id, "content": content, "createdAt": now, "likes": [], "replies": []}
    result = _collection(tenant_id).update_one(
        {"_id": oid}, {"$push": {"comments": comment}, "$set": {"updatedAt": now}}
    )
    if result.matched_count == 0:
        return {"done": False, "error": "Post not found"}
    return {"done": True, "data": _one(tenant_id, oid, client), "message": "Comment added successfully"}


def delete_comment(tenant_id: str, post_id: str, comment_id: str, user_id: str) -> Dict[str, Any]:
    post, comment = _find_comment(tenant_id, post_id, comment_id)
    if comment is None or comment.get("userId") != user_id:
        return {"done": False, "error": "Comment not found or unauthorized"}
    _collection(tenant_id).update_one(
        {"_id": post["_id"]},
        {"$pull": {"comments": {"_id": comment["_id"]}}, "$set": {"updatedAt": utcnow()}},
    )
    return {"done": True, "data": None, "message": "Comment deleted successfully"}


def _save_comments(tenant_id: str, post: dict) -> None:
    _collection(tenant_id).update_one(
        {"_id": post["_id"]}, {"$set": {"comments": post["comments"], "updatedAt": utcnow()}}
    )


def add_reply(tenant_id: str, post_id: str, comment_id: str, user_id: str, content: str, client=None) -> Dict[str, Any]:
    post, comment = _find_comment(tenant_id, post_id, comment_id)
    if comment is None:
        return {"done": False, "error": "Comment not found"}
    comment.setdefault("replies", []).append(
        {"_id": ObjectId(), "userId": user_id, "content": content, "createdAt": utcnow(), "likes": []}
    )
    _save_comments(tenant_id, post)
    return {"done": True, "data": _one(tenant_id, post["_id"], client), "message": "Reply added successfully"}


def toggle_reply_like(tenant_id: str, post_id: str, comment_id: str, reply_id: str, user_id: str, client=None) -> Dict[str, Any]:
    post, comment = _find_comment(tenant_id, post_id, comment_id)
    reply_oid = _oid(reply_id)
    reply = None
    if comment is not None and reply_oid is not None:
        reply = next((r for r in comment.get("replies") or [] if r.get("_id") == reply_oid), None)
    if reply is None:
        return {"done": False, "error": "Reply not found"}

    likes = reply.setdefault("likes", [])
    if any(like.get("userId") == user_id for like in likes):
        reply["likes"] = [like for like in likes if like.get("userId") != user_id]
    else:
        likes.append({"userId": user_id, "createdAt": utcnow()})
    _save_comments(tenant_id, post)
    return {"done": True, "data": _one(tenant_id, post["_id"], client), "message": "Reply like updated successfully"}
