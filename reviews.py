"""
Testimonials and the invite links used to collect them.

An invite starts ``pending``; the first review submitted with its id flips it
to ``completed`` and any later submission is refused.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import ReturnDocument
from pymongo.database import Database

from database import (
    NEWEST_FIRST,
    create_document,
    delete_document,
    get_document,
    get_documents,
    get_db,
    now,
    to_object_id,
    update_document,
)
from errors import NotFound, ValidationError
from schemas import IdPayload, InviteStatus, Review, ReviewInviteCreate, Reviewinvite, ReviewUpdate
from security import get_current_admin, get_optional_admin

logger = structlog.get_logger(__name__)

REVIEWS = "review"
INVITES = "reviewinvite"

router = APIRouter()


def find_invite(db: Database, invite_id: str) -> Optional[dict]:
    try:
        return get_document(db, INVITES, invite_id)
    except ValidationError:
        # malformed ids come from hand-edited links
        return None


def get_pending_invite(db: Database, invite_id: str) -> dict:
    invite = find_invite(db, invite_id)
    if not invite:
        raise NotFound("Invalid link")
    if invite["status"] != "pending":
        raise ValidationError("Review already submitted")
    return invite


def claim_invite(db: Database, invite_id: str) -> None:
    """Move an invite from pending to completed, exactly once."""
    invite = get_pending_invite(db, invite_id)
    res = db[INVITES].find_one_and_update(
        {"_id": to_object_id(invite["id"]), "status": "pending"},
        {"$set": {"status": "completed", "updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    if res is None:
        # lost the race to a concurrent submission
        raise ValidationError("Review already submitted")


def release_invite(db: Database, invite_id: str) -> None:
    db[INVITES].update_one(
        {"_id": to_object_id(invite_id)},
        {"$set": {"status": "pending", "updatedAt": now()}},
    )


# Reviews
@router.get("/api/review")
def list_reviews(admin: Optional[dict] = Depends(get_optional_admin), db: Database = Depends(get_db)):
    query = {} if admin else {"isActive": True}
    items = get_documents(db, REVIEWS, query, sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": items}


@router.post("/api/review")
def create_review(
    payload: Review,
    admin: Optional[dict] = Depends(get_optional_admin),
    db: Database = Depends(get_db),
):
    if payload.inviteId:
        claim_invite(db, payload.inviteId)
        try:
            doc = create_document(db, REVIEWS, payload)
        except Exception:
            release_invite(db, payload.inviteId)
            raise
        logger.info("invite_completed", invite_id=payload.inviteId, review_id=doc["id"])
    elif admin is not None:
        doc = create_document(db, REVIEWS, payload)
    else:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return {"success": True, "message": "Review added successfully", "data": doc}


@router.put("/api/review")
def update_review(payload: ReviewUpdate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    update = payload.model_dump(exclude={"id"}, exclude_none=True)
    if not update:
        raise ValidationError("Nothing to update")
    doc = update_document(db, REVIEWS, payload.id, update)
    if not doc:
        raise NotFound("Review not found")
    return {"success": True, "message": "Review updated successfully", "data": doc}


@router.delete("/api/review")
def delete_review(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, REVIEWS, payload.id):
        raise NotFound("Review not found")
    return {"success": True, "message": "Review deleted successfully"}


# Invites
@router.post("/api/review/invite")
def create_invite(payload: ReviewInviteCreate, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    invite = Reviewinvite(**payload.model_dump())
    doc = create_document(db, INVITES, invite)
    logger.info("invite_created", invite_id=doc["id"])
    return {"success": True, "message": "Invite created", "data": doc}


@router.get("/api/review/invite")
def get_invite(id: Optional[str] = None, db: Database = Depends(get_db)):
    if not id:
        raise ValidationError("Invite ID is required")
    doc = find_invite(db, id)
    if not doc:
        raise NotFound("Invalid link")
    return {"success": True, "data": doc}


@router.get("/api/review/invites")
def list_invites(
    status: Optional[InviteStatus] = Query(None),
    _: dict = Depends(get_current_admin),
    db: Database = Depends(get_db),
):
    query = {"status": status} if status else {}
    items = get_documents(db, INVITES, query, sort=NEWEST_FIRST)
    return {"success": True, "count": len(items), "data": items}


@router.delete("/api/review/invite")
def delete_invite(payload: IdPayload, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    if not delete_document(db, INVITES, payload.id):
        raise NotFound("Invite not found")
    return {"success": True, "message": "Invite deleted"}
