"""
/user routes: combined customer/employee/admin login, registration,
admin signup and the current-user profile.
"""

import hmac
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, EmailStr
from pymongo.errors import DuplicateKeyError

from config import Settings
from database import Database, get_db, to_object_id
from logging_config import get_logger
from schemas import ROLE_COLLECTIONS, TokenClaims
from security import (
    AuthenticationError,
    authenticate,
    create_access_token,
    get_app_settings,
    hash_password,
    require_auth,
)
from validation import matches, validate_credentials

logger = get_logger(__name__)

router = APIRouter(prefix="/user", tags=["user"])

ADMIN_PERMISSIONS = ["payments:review", "payments:stats"]


# ----------------------
# Schemas
# ----------------------

class LoginBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: str = "customer"


class RegisterBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None


class AdminSignupBody(RegisterBody):
    admin_secret: Optional[str] = None


# ----------------------
# Helpers
# ----------------------

def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def check_login_lockout(request: Request, username: str) -> str:
    """Raise 429 when this IP/username pair has too many recent failures."""
    key = f"{client_ip(request)}:{username}"
    limiter = request.app.state.login_limiter
    if limiter.is_blocked(key):
        logger.warning("login_locked_out", username=username, ip=client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed login attempts, try again later",
            headers={"Retry-After": str(limiter.retry_after(key))},
        )
    return key


def public_user(account: Dict[str, Any], role: str) -> Dict[str, Any]:
    return {
        "user_id": str(account["_id"]),
        "username": account["username"],
        "full_name": account.get("full_name") or account["username"],
        "role": role,
        "permissions": account.get("permissions", []),
    }


def create_account(
    db: Database,
    body: RegisterBody,
    role: str,
    permissions: Optional[List[str]] = None,
) -> str:
    if not body.username or not body.password or not body.full_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username, password, and full name are required",
        )
    errors = validate_credentials(body.username, body.password)
    if not matches("name", body.full_name):
        errors.append("Invalid full name (2-50 letters and spaces only)")
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Validation failed", "errors": errors},
        )

    collection = db.collection(ROLE_COLLECTIONS[role])
    if collection.find_one({"username": body.username}):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")

    doc = {
        "username": body.username,
        "password_hash": hash_password(body.password),
        "full_name": body.full_name.strip(),
        "email": body.email,
        "role": role,
        "is_active": True,
        "permissions": permissions or [],
        "created_at": datetime.now(timezone.utc),
    }
    try:
        user_id = db.create_document(ROLE_COLLECTIONS[role], doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    logger.info("account_created", username=body.username, role=role)
    return user_id


# ----------------------
# Routes
# ----------------------

@router.post("/login")
def login(
    body: LoginBody,
    request: Request,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if not body.username or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password are required",
        )
    if body.role not in ROLE_COLLECTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")

    key = check_login_lockout(request, body.username)
    collection_name = ROLE_COLLECTIONS[body.role]
    try:
        account = authenticate(db.collection(collection_name), body.username, body.password)
    except AuthenticationError as e:
        logger.info(
            "login_failed",
            username=body.username,
            collection=collection_name,
            reason=e.reason,
        )
        if e.reason == "account_deactivated":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account deactivated")
        request.app.state.login_limiter.hit(key)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Authentication failed")

    request.app.state.login_limiter.reset(key)
    role = account.get("role") or body.role
    account["role"] = role
    token = create_access_token(account, settings)
    logger.info("login_succeeded", username=body.username, role=role)
    return {
        "message": "Authentication successful",
        "token": token,
        "user": public_user(account, role),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
@router.post("/signup", status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, db: Database = Depends(get_db)):
    user_id = create_account(db, body, role="customer")
    return {"message": "Customer registered successfully", "user_id": user_id}


@router.post("/admin/signup", status_code=status.HTTP_201_CREATED)
def admin_signup(
    body: AdminSignupBody,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    supplied = (body.admin_secret or "").encode("utf-8")
    if not hmac.compare_digest(supplied, settings.admin_signup_secret.encode("utf-8")):
        logger.warning("admin_signup_rejected", username=body.username)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid admin secret")
    user_id = create_account(db, body, role="admin", permissions=ADMIN_PERMISSIONS)
    return {"message": "Admin registered successfully", "user_id": user_id}


@router.get("/me")
def get_me(claims: TokenClaims = Depends(require_auth), db: Database = Depends(get_db)):
    oid = to_object_id(claims.user_id)
    account = db.collection(ROLE_COLLECTIONS[claims.role]).find_one({"_id": oid}) if oid else None
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {
        "name": account.get("full_name") or account["username"],
        "username": account["username"],
        "user_id": str(account["_id"]),
        "role": claims.role,
        "permissions": account.get("permissions", []),
    }
