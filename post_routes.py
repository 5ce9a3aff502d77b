"""/post routes: demo CRUD over the posts collection (reads are public)."""

from fastapi import APIRouter, Depends, HTTPException, status

from database import Database, get_db, serialize, to_object_id
from logging_config import get_logger
from schemas import Post, TokenClaims
from security import require_auth

logger = get_logger(__name__)

router = APIRouter(prefix="/post", tags=["post"])


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


@router.get("")
def list_posts(db: Database = Depends(get_db)):
    return db.get_documents("posts")


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def create_post(body: Post, claims: TokenClaims = Depends(require_auth), db: Database = Depends(get_db)):
    post_id = db.create_document("posts", body.model_dump())
    logger.info("post_created", post_id=post_id, author=claims.username)
    return {"id": post_id}


@router.get("/{post_id}")
def get_post(post_id: str, db: Database = Depends(get_db)):
    oid = to_object_id(post_id)
    doc = db.collection("posts").find_one({"_id": oid}) if oid else None
    if not doc:
        raise _not_found()
    return serialize(doc)


@router.patch("/{post_id}")
def update_post(
    post_id: str,
    body: Post,
    claims: TokenClaims = Depends(require_auth),
    db: Database = Depends(get_db),
):
    oid = to_object_id(post_id)
    if oid is None:
        raise _not_found()
    result = db.collection("posts").update_one({"_id": oid}, {"$set": body.model_dump()})
    if result.matched_count == 0:
        raise _not_found()
    return {"matched": result.matched_count, "modified": result.modified_count}


@router.delete("/{post_id}")
def delete_post(post_id: str, claims: TokenClaims = Depends(require_auth), db: Database = Depends(get_db)):
    oid = to_object_id(post_id)
    if oid is None:
        raise _not_found()
    result = db.collection("posts").delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise _not_found()
    logger.info("post_deleted", post_id=post_id, by=claims.username)
    return {"deleted": result.deleted_count}
