"""
/payments routes.

Customers create payment requests and list their own; employees (and
admins) list pending/all requests, approve or reject them and read
dashboard statistics. Every route checks the token role itself.

Status updates are a single update_one filtered on status "pending", so a
payment can only leave "pending" once; there is no version check beyond
that, and two reviewers racing on the same id see one success and one 404.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from database import Database, get_db, serialize, to_object_id
from logging_config import get_logger
from schemas import PAYMENT_STATUSES, REVIEW_STATUSES, TokenClaims
from security import EMPLOYEE_ROLES, require_auth, require_role
from validation import (
    check_amount_bounds,
    generate_reference,
    sanitize_payment,
    validate_payment,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]

customer_only = require_role(
    "customer", message="Employees cannot create payments. Use the verification portal instead."
)
customer_list_only = require_role(
    "customer", message="Employees cannot access customer payment list."
)


# ----------------------
# Schemas
# ----------------------

class CreatePaymentBody(BaseModel):
    source_account: Optional[str] = None
    target_account: Optional[str] = None
    beneficiary_name: Optional[str] = None
    beneficiary_bank: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    purpose: Optional[str] = None


class StatusBody(BaseModel):
    status: Optional[str] = None


# ----------------------
# Customer routes
# ----------------------

@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_payment(
    body: CreatePaymentBody,
    claims: TokenClaims = Depends(customer_only),
    db: Database = Depends(get_db),
):
    data = sanitize_payment(body.model_dump())

    errors = validate_payment(data)
    if errors:
        logger.info("payment_validation_failed", username=claims.username, errors=errors)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Validation failed", "errors": errors},
        )
    bounds_error = check_amount_bounds(data["amount"])
    if bounds_error:
        logger.info("payment_amount_rejected", username=claims.username, amount=data["amount"])
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=bounds_error)

    payment = {
        **data,
        "customer_id": claims.user_id,
        "customer_name": claims.username,
        "status": "pending",
        "reference": generate_reference(),
        "created_at": datetime.now(timezone.utc),
    }
    payment_id = db.create_document("payments", payment)
    logger.info(
        "payment_created",
        reference=payment["reference"],
        amount=payment["amount"],
        currency=payment["currency"],
        customer=claims.username,
    )
    return {
        "message": "Payment request created successfully",
        "payment_id": payment_id,
        "reference": payment["reference"],
        "status": payment["status"],
        "amount": payment["amount"],
        "currency": payment["currency"],
        "timestamp": payment["created_at"],
    }


@router.get("/my-payments")
def my_payments(claims: TokenClaims = Depends(customer_list_only), db: Database = Depends(get_db)):
    payments = db.get_documents("payments", {"customer_id": claims.user_id}, sort=NEWEST_FIRST)
    return {"payments": payments}


@router.get("/history")
def payment_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    claims: TokenClaims = Depends(customer_list_only),
    db: Database = Depends(get_db),
):
    query = {"customer_id": claims.user_id}
    payments = db.get_documents(
        "payments", query, sort=NEWEST_FIRST, limit=limit, skip=(page - 1) * limit
    )
    total = db.collection("payments").count_documents(query)
    return {"payments": payments, "page": page, "limit": limit, "total": total}


# ----------------------
# Employee routes
# ----------------------

@router.get("/pending")
def pending_payments(
    claims: TokenClaims = Depends(
        require_role(*EMPLOYEE_ROLES, message="Only employees can view pending payments.")
    ),
    db: Database = Depends(get_db),
):
    return {"payments": db.get_documents("payments", {"status": "pending"}, sort=NEWEST_FIRST)}


@router.get("/all")
def all_payments(
    claims: TokenClaims = Depends(
        require_role(*EMPLOYEE_ROLES, message="Only employees can view all payments.")
    ),
    db: Database = Depends(get_db),
):
    return {"payments": db.get_documents("payments", sort=NEWEST_FIRST)}


def _stats(db: Database) -> Dict[str, Any]:
    collection = db.collection("payments")
    stats: Dict[str, Any] = {"total_payments": collection.count_documents({})}
    for payment_status in PAYMENT_STATUSES:
        stats[payment_status] = collection.count_documents({"status": payment_status})
    stats["latest_payments"] = db.get_documents("payments", sort=NEWEST_FIRST, limit=5)
    return stats


stats_access = require_role(*EMPLOYEE_ROLES, message="Only employees can view statistics.")


@router.get("/stats")
def payment_stats(claims: TokenClaims = Depends(stats_access), db: Database = Depends(get_db)):
    return _stats(db)


@router.get("/dashboard/stats")
def dashboard_stats(claims: TokenClaims = Depends(stats_access), db: Database = Depends(get_db)):
    return _stats(db)


@router.patch("/{payment_id}/status")
def update_status(
    payment_id: str,
    body: StatusBody,
    claims: TokenClaims = Depends(
        require_role(*EMPLOYEE_ROLES, message="Only employees can update payment status.")
    ),
    db: Database = Depends(get_db),
):
    if body.status not in REVIEW_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status value")

    oid = to_object_id(payment_id)
    modified = 0
    if oid is not None:
        result = db.collection("payments").update_one(
            {"_id": oid, "status": "pending"},
            {
                "$set": {
                    "status": body.status,
                    "reviewed_by": claims.username,
                    "reviewed_at": datetime.now(timezone.utc),
                }
            },
        )
        modified = result.modified_count
    if modified == 0:
        logger.info("payment_review_missed", payment_id=payment_id, reviewer=claims.username)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

    logger.info("payment_reviewed", payment_id=payment_id, status=body.status, reviewer=claims.username)
    return {"message": f"Payment {body.status} successfully"}


# ----------------------
# Development diagnostics (mounted only when ENABLE_DEBUG_ROUTES is set)
# ----------------------

debug_router = APIRouter(prefix="/payments", tags=["debug"])


@debug_router.get("/test-db")
def test_database(db: Database = Depends(get_db)):
    try:
        count = db.collection("payments").count_documents({})
    except Exception as e:
        logger.error("test_db_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database connection failed",
        )
    return {
        "message": "Database connected successfully",
        "total_payments": count,
        "database": db.name,
        "collection": "payments",
    }


@debug_router.get("/debug-data")
def debug_data(
    claims: TokenClaims = Depends(require_role(*EMPLOYEE_ROLES, message="Employees only")),
    db: Database = Depends(get_db),
):
    payments = db.get_documents("payments", sort=NEWEST_FIRST)
    users: List[Dict[str, Any]] = []
    for name in ("customers", "employees", "users"):
        for doc in db.collection(name).find({}, {"password_hash": 0}):
            user = serialize(doc)
            users.append(
                {
                    "id": user["id"],
                    "username": user.get("username"),
                    "email": user.get("email"),
                    "role": user.get("role"),
                    "collection": name,
                }
            )
    return {
        "total_payments": len(payments),
        "payments": payments,
        "total_users": len(users),
        "users": users,
    }
