"""
Site-wide singletons (About, Contact) and the admin dashboard numbers.
"""

from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import delete_singleton, get_db, get_singleton, upsert_singleton
from errors import NotFound, ValidationError
from schemas import About, Contact
from security import get_current_admin

# Hosts the frontend may load remote images from
ALLOWED_IMAGE_HOSTS = ["res.cloudinary.com", "img.youtube.com"]

COLLECTIONS = ["about", "banner", "blog", "business", "contact", "event", "faq", "media", "review", "reviewinvite"]

router = APIRouter()


# =====
# About
# =====
@router.get("/api/about")
def get_about(db: Database = Depends(get_db)):
    return {"success": True, "data": get_singleton(db, "about")}


@router.put("/api/about")
def put_about(payload: About, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    update = payload.model_dump(exclude_none=True)
    if not update:
        raise ValidationError("Nothing to update")
    doc = upsert_singleton(db, "about", update)
    return {"success": True, "message": "About section saved", "data": doc}


@router.delete("/api/about")
def delete_about(_: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_singleton(db, "about"):
        raise NotFound("About not found")
    return {"success": True, "message": "About section deleted"}


# =======
# Contact
# =======
@router.get("/api/contact")
def get_contact(db: Database = Depends(get_db)):
    return {"success": True, "data": get_singleton(db, "contact")}


@router.put("/api/contact")
def put_contact(payload: Contact, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    update = payload.model_dump(exclude_none=True)
    if not update:
        raise ValidationError("Nothing to update")
    if get_singleton(db, "contact") is None and not (update.get("email") and update.get("phone")):
        raise ValidationError("Email and Phone are required")
    doc = upsert_singleton(db, "contact", update)
    return {"success": True, "message": "Contact updated successfully", "data": doc}


@router.delete("/api/contact")
def delete_contact(_: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_singleton(db, "contact"):
        raise NotFound("Contact not found")
    return {"success": True, "message": "Contact deleted successfully"}


# =========
# Dashboard
# =========
@router.get("/api/stats")
def stats(_: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    counts = {name: db[name].count_documents({}) for name in COLLECTIONS}
    data = {
        "counts": counts,
        "publishedBlogs": db["blog"].count_documents({"isPublished": True}),
        "activeReviews": db["review"].count_documents({"isActive": True}),
        "pendingInvites": db["reviewinvite"].count_documents({"status": "pending"}),
        "upcomingEvents": db["event"].count_documents({"status": "upcoming"}),
    }
    return {"success": True, "data": data}


@router.get("/api/config")
def public_config():
    return {"success": True, "data": {"imageHosts": ALLOWED_IMAGE_HOSTS}}
