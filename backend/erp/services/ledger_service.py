# Overview: Service-layer operations for the credit/debit ledger; encapsulates business logic and store work.

"""
Ledger Service

Credit entries are money customers owe the shop, debit entries are money the
shop owes suppliers. Both carry `amount`, `paidAmount`, `remainingAmount`
and an embedded `paymentHistory` list.

Payments are read-modify-write on a single record with no version check:
two payments recorded at the same time both see the same remaining balance
and the later write wins.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, time

from ..schemas import (
    CREDIT_ENTRIES,
    DEBIT_ENTRIES,
    CREDIT_POLICY,
    DEBIT_POLICY,
    PAYMENT_POLICY,
)
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_amount
from erp.time_utils import parse_iso_date, today_iso, utcnow
from .document_store import Collection
from .invoice_service import format_money, whatsapp_link


CREDIT = "credit"
DEBIT = "debit"
LEDGER_KINDS = (CREDIT, DEBIT)


class LedgerError(Exception):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def derive_balance(entry: dict) -> dict:
    """remainingAmount and status from amount/paidAmount."""
    amount = entry.get("amount") or 0
    paid = entry.get("paidAmount") or 0
    remaining = round_amount(amount - paid)
    if remaining <= 0:
        status = "paid"
    elif paid > 0:
        status = "partial"
    else:
        status = "pending"
    return {"remainingAmount": remaining, "status": status}


def days_overdue(due_date: str | None, now: datetime | None = None) -> int:
    """Whole days (rounded up) since the due date; 0 when not yet due or undated."""
    due = parse_iso_date(due_date)
    if due is None:
        return 0
    now = now or utcnow()
    elapsed = (now - datetime.combine(due, time.min)).total_seconds() / 86400
    return max(0, math.ceil(elapsed))


def with_overdue(entry: dict, now: datetime | None = None) -> dict:
    """Read-side view: flags an unpaid entry past its due date as overdue."""
    overdue_days = days_overdue(entry.get("dueDate"), now)
    view = {**entry, "daysOverdue": overdue_days}
    if overdue_days > 0 and (entry.get("remainingAmount") or 0) > 0:
        view["status"] = "overdue"
    return view


def ledger_summary(credits: list[dict], debits: list[dict], now: datetime | None = None) -> dict:
    credit_views = [with_overdue(e, now) for e in credits]
    debit_views = [with_overdue(e, now) for e in debits]
    return {
        "total_receivable": round_amount(sum(e.get("remainingAmount") or 0 for e in credit_views)),
        "total_payable": round_amount(sum(e.get("remainingAmount") or 0 for e in debit_views)),
        "credit_count": len(credit_views),
        "debit_count": len(debit_views),
        "overdue_credit": [e for e in credit_views if e["status"] == "overdue"],
        "overdue_debit": [e for e in debit_views if e["status"] == "overdue"],
    }


class LedgerService:
    def __init__(self, store):
        self.credits = Collection(store, CREDIT_ENTRIES, CREDIT_POLICY)
        self.debits = Collection(store, DEBIT_ENTRIES, DEBIT_POLICY)

    def _collection(self, kind: str) -> Collection:
        if kind == CREDIT:
            return self.credits
        if kind == DEBIT:
            return self.debits
        raise ValidationError(f"Ledger kind must be one of: {', '.join(LEDGER_KINDS)}")

    def _create(self, kind: str, payload: dict) -> dict:
        collection = self._collection(kind)
        patch = validate_record(payload=payload, policy=collection.policy, partial=False)
        require_non_negative(patch, "amount", "paidAmount")
        if patch["paidAmount"] > patch["amount"]:
            raise ValidationError("paidAmount cannot exceed amount")

        patch.update(derive_balance(patch))
        patch["paymentHistory"] = []
        entry_id = collection.create(patch)
        return {**patch, "id": entry_id}

    def create_credit_entry(self, payload: dict) -> dict:
        return self._create(CREDIT, payload)

    def create_debit_entry(self, payload: dict) -> dict:
        return self._create(DEBIT, payload)

    def list_entries(self, kind: str, status: str | None = None, search: str | None = None) -> list[dict]:
        now = utcnow()
        entries = [with_overdue(e, now) for e in self._collection(kind).all()]
        if status and status != "all":
            entries = [e for e in entries if e.get("status") == status]
        term = (search or "").strip().lower()
        if term:
            name_field = "customerName" if kind == CREDIT else "supplierName"
            entries = [
                e for e in entries
                if term in str(e.get(name_field, "")).lower() or term in str(e.get("invoiceNumber", "")).lower()
            ]
        return sorted(entries, key=lambda e: (e.get("dueDate") or "", e.get("createdAt", "")))

    def get_entry(self, kind: str, entry_id: str) -> dict:
        return with_overdue(self._collection(kind).require(entry_id))

    def update_entry(self, kind: str, entry_id: str, payload: dict) -> dict:
        collection = self._collection(kind)
        existing = collection.require(entry_id)
        patch = validate_record(payload=payload, policy=collection.policy, partial=True)
        require_non_negative(patch, "amount", "paidAmount")

        merged = {**existing, **patch}
        if (merged.get("paidAmount") or 0) > (merged.get("amount") or 0):
            raise ValidationError("paidAmount cannot exceed amount")
        # status is never written directly; it always follows the balance
        patch.update(derive_balance(merged))

        collection.update(entry_id, patch)
        return with_overdue(collection.require(entry_id))

    def delete_entry(self, kind: str, entry_id: str) -> None:
        collection = self._collection(kind)
        collection.require(entry_id)
        collection.delete(entry_id)

    def subscribe(self, kind: str, callback):
        return self._collection(kind).subscribe(callback)

    def record_payment(self, kind: str, entry_id: str, payload: dict) -> dict:
        """
        Append a payment to the entry's history and recompute its balance.

        The amount must be positive and no more than the remaining balance;
        otherwise nothing is written.
        """
        collection = self._collection(kind)
        entry = collection.require(entry_id)
        payment = validate_record(payload=payload, policy=PAYMENT_POLICY, partial=False)

        amount = payment["amount"]
        remaining = entry.get("remainingAmount")
        if remaining is None:
            remaining = round_amount((entry.get("amount") or 0) - (entry.get("paidAmount") or 0))

        if amount <= 0:
            raise LedgerError("Payment amount must be greater than zero", details={"amount": amount})
        if amount > remaining:
            raise LedgerError(
                "Payment amount cannot exceed remaining balance",
                details={"amount": amount, "remainingAmount": remaining},
            )

        new_paid = round_amount((entry.get("paidAmount") or 0) + amount)
        new_remaining = round_amount((entry.get("amount") or 0) - new_paid)

        record = {
            "id": uuid.uuid4().hex,
            "amount": amount,
            "date": payment.get("date") or today_iso(),
            "method": payment["method"],
            "reference": payment["reference"],
            "notes": payment["notes"],
        }

        collection.update(entry_id, {
            "paidAmount": new_paid,
            "remainingAmount": new_remaining,
            "status": "paid" if new_remaining == 0 else "partial",
            "paymentHistory": [*(entry.get("paymentHistory") or []), record],
        })
        return with_overdue(collection.require(entry_id))

    def reminder(self, entry_id: str) -> dict:
        """Payment reminder for a customer credit entry as a messaging deep link."""
        entry = with_overdue(self.credits.require(entry_id))
        if not (entry.get("customerPhone") or "").strip():
            raise ValidationError("Customer has no phone number")

        message = (
            f"Dear {entry.get('customerName', '')}, this is a friendly reminder that "
            f"{format_money(entry.get('remainingAmount'))} is outstanding"
        )
        if entry.get("invoiceNumber"):
            message += f" on invoice {entry['invoiceNumber']}"
        if entry.get("dueDate"):
            message += f" (due {entry['dueDate']})"
        message += ". Thank you."

        return {
            "message": message,
            "url": whatsapp_link(entry.get("customerPhone"), message),
            "days_overdue": entry["daysOverdue"],
        }
