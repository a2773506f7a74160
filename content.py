"""
Content routes: blog, events, FAQ, media gallery, businesses and banners.

Reads are public (drafts and inactive entries are hidden from anonymous
callers), writes need an admin token. PUT and DELETE take the document id in
the JSON body.
"""

import re
import unicodedata
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import (
    NEWEST_FIRST,
    create_document,
    delete_document,
    get_document,
    get_documents,
    get_db,
    serialize_doc,
    slug_taken,
    update_document,
)
from errors import DuplicateSlug, NotFound, ValidationError
from schemas import (
    Banner,
    Blog,
    BlogCreate,
    BlogUpdate,
    Business,
    BusinessUpdate,
    Event,
    EventCreate,
    EventStatus,
    EventUpdate,
    Faq,
    FaqUpdate,
    IdPayload,
    Media,
    MediaCreate,
    MediaType,
    MediaUpdate,
    as_utc_naive,
)
from security import get_current_admin, get_optional_admin
from uploads import upload_file

logger = structlog.get_logger(__name__)

router = APIRouter()

YOUTUBE_ID_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


# =========
# Utilities
# =========

def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[-\s_]+", "-", value).strip("-")


def unique_slug(db: Database, collection_name: str, slug: Optional[str], title: str) -> str:
    slug = slugify(slug or title)
    if not slug:
        raise ValidationError("Slug could not be generated from the title")
    if slug_taken(db, collection_name, slug):
        raise DuplicateSlug()
    return slug


def youtube_id(url: str) -> Optional[str]:
    match = YOUTUBE_ID_RE.match(url)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


def youtube_thumbnail(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def is_youtube_thumbnail(url: Optional[str]) -> bool:
    return bool(url) and url.startswith("https://img.youtube.com/vi/")


def media_fields(data: Dict[str, Any], existing: Optional[dict] = None) -> Dict[str, Any]:
    """Fill source, type and thumbnail from the url.

    On update ``existing`` is the stored document: a thumbnail that was
    derived from an earlier YouTube url is replaced, a hand-picked one is kept.
    """
    url = data.get("url")
    if not url:
        return data
    existing = existing or {}
    stored_thumbnail = existing.get("thumbnail")
    auto_thumbnail = not stored_thumbnail or is_youtube_thumbnail(stored_thumbnail)
    video_id = youtube_id(url)
    if video_id:
        data["source"] = "youtube"
        data["type"] = "video"
        if not data.get("thumbnail") and ("thumbnail" in data or auto_thumbnail):
            data["thumbnail"] = youtube_thumbnail(video_id)
    else:
        data["source"] = "local"
        if existing.get("source") == "youtube":
            data.setdefault("type", "image")
            if "thumbnail" not in data and is_youtube_thumbnail(stored_thumbnail):
                data["thumbnail"] = ""
    return data


def save_with_slug(write, *args):
    # the unique index on slug catches a concurrent insert that passed slug_taken
    try:
        return write(*args)
    except DuplicateKeyError:
        raise DuplicateSlug()


def changes_of(payload) -> dict:
    update = payload.model_dump(exclude={"id"}, exclude_none=True)
    if not update:
        raise ValidationError("Nothing to update")
    return update


# ====
# Blog
# ====
@router.get("/api/blogs")
def list_blogs(
    slug: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    admin: Optional[dict] = Depends(get_optional_admin),
    db: Database = Depends(get_db),
):
    visible: Dict[str, Any] = {} if admin else {"isPublished": True}
    if slug:
        post = db["blog"].find_one_and_update(
            {"slug": slug, **visible},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not post:
            raise NotFound("Blog not found")
        return {"success": True, "data": serialize_doc(post)}

    query = dict(visible)
    if category:
        query["category"] = category
    if tag:
        query["tags"] = {"$in": [tag]}
    items = get_documents(db, "blog", query, sort=NEWEST_FIRST, limit=limit)
    return {"success": True, "count": len(items), "data": items}


@router.get("/api/blogs/categories")
def blog_categories(admin: Optional[dict] = Depends(get_optional_admin), db: Database = Depends(get_db)):
    query = {} if admin else {"isPublished": True}
    counts: Dict[str, int] = {}
    for post in db["blog"].find(query, {"category": 1}):
        name = post.get("category") or "Uncategorized"
        counts[name] = counts.get(name, 0) + 1
    data = [{"category": name, "count": n} for name, n in sorted(counts.items())]
    return {"success": True, "data": data}


@router.post("/api/blogs")
def create_blog(payload: BlogCreate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    data = payload.model_dump(exclude_none=True)
    data["slug"] = unique_slug(db, "blog", payload.slug, payload.title)
    post = Blog(**data)
    doc = save_with_slug(create_document, db, "blog", post)
    logger.info("blog_created", blog_id=doc["id"], slug=doc["slug"])
    return {"success": True, "message": "Blog post created successfully", "data": doc}


@router.put("/api/blogs")
def update_blog(payload: BlogUpdate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    update = changes_of(payload)
    if not get_document(db, "blog", payload.id):
        raise NotFound("Blog not found")
    if "slug" in update:
        update["slug"] = slugify(update["slug"])
        if not update["slug"]:
            raise ValidationError("Invalid slug")
        if slug_taken(db, "blog", update["slug"], exclude_id=payload.id):
            raise DuplicateSlug()
    doc = save_with_slug(update_document, db, "blog", payload.id, update)
    if not doc:
        raise NotFound("Blog not found")
    return {"success": True, "message": "Blog updated", "data": doc}


@router.delete("/api/blogs")
def delete_blog(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, "blog", payload.id):
        raise NotFound("Blog not found")
    return {"success": True, "message": "Deleted successfully"}


# ======
# Events
# ======
@router.get("/api/events")
def list_events(status: Optional[EventStatus] = None, db: Database = Depends(get_db)):
    query = {"status": status} if status else {}
    items = get_documents(db, "event", query, sort=[("startDate", 1), ("_id", 1)])
    return {"success": True, "count": len(items), "data": items}


@router.post("/api/events")
def create_event(payload: EventCreate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    data = payload.model_dump()
    data["slug"] = unique_slug(db, "event", payload.slug, payload.title)
    event = Event(**data)
    doc = save_with_slug(create_document, db, "event", event)
    logger.info("event_created", event_id=doc["id"], slug=doc["slug"])
    return {"success": True, "message": "Event created successfully", "data": doc}


@router.put("/api/events")
def update_event(payload: EventUpdate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    update = changes_of(payload)
    existing = get_document(db, "event", payload.id)
    if not existing:
        raise NotFound("Event not found")
    start = update.get("startDate", existing.get("startDate"))
    end = update.get("endDate", existing.get("endDate"))
    if start is not None and end is not None and as_utc_naive(end) < as_utc_naive(start):
        raise ValidationError("endDate must not be before startDate")
    if "slug" in update:
        update["slug"] = slugify(update["slug"])
        if not update["slug"]:
            raise ValidationError("Invalid slug")
        if slug_taken(db, "event", update["slug"], exclude_id=payload.id):
            raise DuplicateSlug()
    doc = save_with_slug(update_document, db, "event", payload.id, update)
    if not doc:
        raise NotFound("Event not found")
    return {"success": True, "message": "Event updated successfully", "data": doc}


@router.delete("/api/events")
def delete_event(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, "event", payload.id):
        raise NotFound("Event not found")
    return {"success": True, "message": "Event deleted successfully"}


# ===
# FAQ
# ===
@router.get("/api/faq")
def list_faqs(
    category: Optional[str] = None,
    admin: Optional[dict] = Depends(get_optional_admin),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {} if admin else {"isActive": True}
    if category:
        query["category"] = category
    items = get_documents(db, "faq", query, sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": items}


@router.post("/api/faq")
def create_faq(payload: Faq, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    doc = create_document(db, "faq", payload)
    return {"success": True, "message": "FAQ created successfully", "data": doc}


@router.put("/api/faq")
def update_faq(payload: FaqUpdate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    doc = update_document(db, "faq", payload.id, changes_of(payload))
    if not doc:
        raise NotFound("FAQ not found")
    return {"success": True, "message": "FAQ updated successfully", "data": doc}


@router.delete("/api/faq")
def delete_faq(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, "faq", payload.id):
        raise NotFound("FAQ not found")
    return {"success": True, "message": "FAQ deleted successfully"}


# =====
# Media
# =====
@router.get("/api/media")
def list_media(
    type: Optional[MediaType] = None,
    category: Optional[str] = None,
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {}
    if type:
        query["type"] = type
    if category:
        query["category"] = category
    items = get_documents(db, "media", query, sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": items}


@router.post("/api/media")
def create_media(payload: MediaCreate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    media = Media(**media_fields(payload.model_dump()))
    doc = create_document(db, "media", media)
    return {"success": True, "message": "Media added successfully", "data": doc}


@router.put("/api/media")
def update_media(payload: MediaUpdate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    update = changes_of(payload)
    existing = get_document(db, "media", payload.id)
    if not existing:
        raise NotFound("Media not found")
    doc = update_document(db, "media", payload.id, media_fields(update, existing))
    if not doc:
        raise NotFound("Media not found")
    return {"success": True, "message": "Media updated successfully", "data": doc}


@router.delete("/api/media")
def delete_media(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, "media", payload.id):
        raise NotFound("Media not found")
    return {"success": True, "message": "Media deleted successfully"}


# ========
# Business
# ========
@router.get("/api/business")
def list_businesses(db: Database = Depends(get_db)):
    items = get_documents(db, "business", sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": items}


@router.post("/api/business")
def create_business(payload: Business, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    doc = create_document(db, "business", payload)
    return {"success": True, "message": "Company added successfully", "data": doc}


@router.put("/api/business")
def update_business(payload: BusinessUpdate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    doc = update_document(db, "business", payload.id, changes_of(payload))
    if not doc:
        raise NotFound("Company not found")
    return {"success": True, "message": "Company info updated", "data": doc}


@router.delete("/api/business")
def delete_business(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, "business", payload.id):
        raise NotFound("Company not found")
    return {"success": True, "message": "Company deleted successfully"}


# =======
# Banners
# =======
@router.get("/api/banners")
def list_banners(admin: Optional[dict] = Depends(get_optional_admin), db: Database = Depends(get_db)):
    query = {} if admin else {"isActive": True}
    items = get_documents(db, "banner", query, sort=[("order", 1), ("_id", 1)])
    return {"success": True, "count": len(items), "data": items}


@router.post("/api/banners")
def create_banner(
    title: str = Form(...),
    link: str = Form(""),
    order: int = Form(0),
    isActive: bool = Form(True),
    desktopImage: Optional[UploadFile] = File(None),
    mobileImage: Optional[UploadFile] = File(None),
    _: dict = Depends(get_current_admin),
    db: Database = Depends(get_db),
):
    if not title.strip():
        raise ValidationError("Title is required")
    if desktopImage is None or not desktopImage.filename:
        raise ValidationError("Desktop Image is required")
    desktop_url = upload_file(desktopImage, folder="banner_desktop")
    if mobileImage is not None and mobileImage.filename:
        mobile_url = upload_file(mobileImage, folder="banner_mobile")
    else:
        mobile_url = desktop_url
    banner = Banner(
        title=title,
        desktopImage=desktop_url,
        mobileImage=mobile_url,
        link=link,
        isActive=isActive,
        order=order,
    )
    doc = create_document(db, "banner", banner)
    return {"success": True, "message": "Banner created successfully", "data": doc}


@router.put("/api/banners")
def update_banner(
    id: str = Form(...),
    title: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    order: Optional[int] = Form(None),
    isActive: Optional[bool] = Form(None),
    desktopImage: Optional[UploadFile] = File(None),
    mobileImage: Optional[UploadFile] = File(None),
    _: dict = Depends(get_current_admin),
    db: Database = Depends(get_db),
):
    if not get_document(db, "banner", id):
        raise NotFound("Banner not found")
    update: Dict[str, Any] = {}
    if title is not None:
        if not title.strip():
            raise ValidationError("Title is required")
        update["title"] = title
    if link is not None:
        update["link"] = link
    if order is not None:
        update["order"] = order
    if isActive is not None:
        update["isActive"] = isActive
    # without a new file the stored image stays
    if desktopImage is not None and desktopImage.filename:
        update["desktopImage"] = upload_file(desktopImage, folder="banner_desktop")
    if mobileImage is not None and mobileImage.filename:
        update["mobileImage"] = upload_file(mobileImage, folder="banner_mobile")
    if not update:
        raise ValidationError("Nothing to update")
    doc = update_document(db, "banner", id, update)
    if not doc:
        raise NotFound("Banner not found")
    return {"success": True, "message": "Banner updated successfully", "data": doc}


@router.delete("/api/banners")
def delete_banner(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, "banner", payload.id):
        raise NotFound("Banner not found")
    return {"success": True, "message": "Banner deleted successfully"}
