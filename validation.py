"""
Input validation for the payment portal.

The same rules run on the API (authoritative) and in the Streamlit
frontend, which re-validates forms before submitting them.
"""
import re
import secrets
import string
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

PATTERNS = {
    "username": re.compile(r"^[a-zA-Z0-9_]{3,20}$"),
    "password": re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"),
    "amount": re.compile(r"^\d+(\.\d{1,2})?$"),
    "currency": re.compile(r"^[A-Z]{3}$"),
    "account_number": re.compile(r"^[A-Z0-9]{8,34}$"),
    "swift_code": re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$"),
    "name": re.compile(r"^[a-zA-Z\s]{2,50}$"),
    "purpose": re.compile(r"^[a-zA-Z0-9\s.,-]{5,200}$"),
}

SQL_KEYWORDS = re.compile(
    r"\b(ALTER|CREATE|DELETE|DROP|EXEC|INSERT|SELECT|UPDATE|UNION|WHERE)\b", re.IGNORECASE
)
STRIPPED_CHARS = re.compile(r"[<>&\"']")
MAX_INPUT_LENGTH = 1000

MIN_AMOUNT = Decimal("10")
MAX_AMOUNT = Decimal("100000")

PAYMENT_FIELDS = (
    "source_account",
    "target_account",
    "beneficiary_name",
    "beneficiary_bank",
    "amount",
    "currency",
    "purpose",
)


def matches(pattern_name: str, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return PATTERNS[pattern_name].fullmatch(value.strip()) is not None


def sanitize_input(value: Any) -> Any:
    """Strip markup characters and SQL keywords, trim, cap at 1000 chars."""
    if not isinstance(value, str):
        return value
    value = STRIPPED_CHARS.sub("", value)
    value = SQL_KEYWORDS.sub("", value)
    return value.strip()[:MAX_INPUT_LENGTH]


def sanitize_payment(data: Dict[str, Any]) -> Dict[str, Any]:
    return {field: sanitize_input(data.get(field)) for field in PAYMENT_FIELDS}


def validate_payment(data: Dict[str, Any]) -> List[str]:
    """Return field-level error messages; an empty list means the payload is well formed."""
    errors = []
    if not matches("amount", data.get("amount")):
        errors.append("Invalid amount format (e.g., 1000.00)")
    if not matches("currency", data.get("currency")):
        errors.append("Invalid currency code (use 3-letter format like USD, EUR, GBP)")
    if not matches("account_number", data.get("source_account")):
        errors.append("Invalid source account number (8-34 alphanumeric characters)")
    if not matches("account_number", data.get("target_account")):
        errors.append("Invalid destination account number (8-34 alphanumeric characters)")
    if not matches("name", data.get("beneficiary_name")):
        errors.append("Invalid beneficiary name (2-50 letters and spaces only)")
    if not matches("swift_code", data.get("beneficiary_bank")):
        errors.append("Invalid bank SWIFT code (8 or 11 characters, e.g., BOFAUS3N)")
    if not matches("purpose", data.get("purpose")):
        errors.append("Invalid payment purpose (5-200 characters)")
    return errors


def check_amount_bounds(amount: str) -> Optional[str]:
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError):
        return "Invalid amount"
    if value < MIN_AMOUNT:
        return "Minimum payment amount is 10"
    if value > MAX_AMOUNT:
        return "Maximum payment amount is 100,000"
    return None


def validate_credentials(username: Any, password: Any) -> List[str]:
    errors = []
    if not matches("username", username):
        errors.append("Invalid username format (3-20 letters, digits or underscores)")
    if not matches("password", password):
        errors.append(
            "Invalid password format (8+ characters with upper and lower case letters, "
            "a digit and one of @$!%*?&)"
        )
    return errors


def generate_reference() -> str:
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"PAY-{int(time.time() * 1000)}-{suffix}"
