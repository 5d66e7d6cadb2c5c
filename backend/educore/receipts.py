"""Receipt numbers and the plain-text fee receipt."""
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

RECEIPT_PREFIX = "RCP"


@dataclass(frozen=True)
class ReceiptData:
    receipt_number: str
    student_name: str
    student_id: str
    academic_year: str
    term: int
    amount_due: float
    amount_paid: float
    paid_date: str
    updated_by_name: str


def generate_receipt_number(year: int | None = None) -> str:
    """``RCP-<year>-<6 digits>``. Collisions are possible and not checked."""
    year = year or datetime.now(timezone.utc).year
    return f"{RECEIPT_PREFIX}-{year}-{100000 + secrets.randbelow(900000)}"


def build_receipt_text(data: ReceiptData) -> str:
    balance = data.amount_due - data.amount_paid
    status_line = "PAID IN FULL" if balance <= 0 else "PARTIAL PAYMENT"
    lines = [
        "======================================",
        "         EDUCORE SCHOOL",
        "      OFFICIAL FEE RECEIPT",
        "======================================",
        f"Receipt No   : {data.receipt_number}",
        f"Date         : {data.paid_date}",
        f"Academic Year: {data.academic_year}  |  Term: {data.term}",
        "--------------------------------------",
        f"Student      : {data.student_name}",
        f"Student ID   : {data.student_id}",
        "--------------------------------------",
        f"Amount Due   : ₹{data.amount_due:.2f}",
        f"Amount Paid  : ₹{data.amount_paid:.2f}",
        f"Balance      : ₹{balance:.2f}",
        f"Status       : {status_line}",
        "--------------------------------------",
        f"Received By  : {data.updated_by_name}",
        "======================================",
    ]
    return "\n".join(lines)
