"""/employee routes: the employee portal login (no self registration)."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from config import Settings
from database import Database, get_db
from logging_config import get_logger
from security import AuthenticationError, authenticate, create_access_token, get_app_settings
from user_routes import check_login_lockout
from validation import validate_credentials

logger = get_logger(__name__)

router = APIRouter(prefix="/employee", tags=["employee"])


class EmployeeLoginBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
def employee_login(
    body: EmployeeLoginBody,
    request: Request,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    errors = validate_credentials(body.username, body.password)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Validation failed", "errors": errors},
        )

    key = check_login_lockout(request, body.username)
    try:
        employee = authenticate(db.collection("employees"), body.username, body.password)
    except AuthenticationError as e:
        logger.info("employee_login_failed", username=body.username, reason=e.reason)
        if e.reason == "account_deactivated":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account deactivated")
        request.app.state.login_limiter.hit(key)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    request.app.state.login_limiter.reset(key)
    employee.setdefault("role", "employee")
    token = create_access_token(employee, settings, expires_hours=settings.employee_token_expiry_hours)
    logger.info("employee_login_succeeded", username=body.username)
    return {
        "message": "Login successful",
        "token": token,
        "employee": {
            "id": str(employee["_id"]),
            "username": employee["username"],
            "full_name": employee.get("full_name"),
            "role": employee["role"],
        },
    }
