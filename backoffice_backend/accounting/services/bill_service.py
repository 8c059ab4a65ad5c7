# accounting/services/bill_service.py

"""
BILL / ACCOUNT WRITES (versioned)

All writes go through core.services.versioned_store:
- optimistic version check (X-Entity-Version)
- soft-deleted rows are not resurrected unless recreate=True

Bill rules:
- paid_amount / status are derived by payment posting, never accepted from
  the client
- a Paid bill is immutable: edits and deletes fail with BILL_PAID_IMMUTABLE
- bill_number is unique per tenant among live bills
"""

from __future__ import annotations

import logging

from accounting.models import Account, Bill, Category, Contact, Project
from accounting.models.status import STATUS_PAID, STATUS_UNPAID
from accounting.services.posting import derive_payment_status, document_payload
from core.services.events import emit_to_tenant
from core.services.exceptions import (
    BusinessRuleError,
    ImmutableRecordError,
    NotFoundError,
    RequestValidationError,
)
from core.services.money import ZERO, epsilon, money
from core.services.versioned_store import soft_delete_entity, upsert_entity

logger = logging.getLogger("ledger")

BILL_FIELDS = (
    "bill_number",
    "contact_id",
    "amount",
    "issue_date",
    "due_date",
    "description",
    "category_id",
    "project_id",
)


def _require_owned(model, *, tenant_id, pk, label: str):
    if pk and not model.objects.filter(tenant_id=tenant_id, pk=pk).exists():
        raise NotFoundError(f"{label} not found")
    return pk


def assert_bill_mutable(bill: Bill) -> None:
    if bill.status == STATUS_PAID:
        raise ImmutableRecordError(
            "Paid bills cannot be modified or deleted.",
            bill_id=str(bill.id),
        )


def save_bill(
    *,
    tenant_id,
    data: dict,
    bill_id=None,
    expected_version=None,
    recreate: bool = False,
    user=None,
) -> Bill:
    values = {k: data[k] for k in BILL_FIELDS if k in data}

    number = (values.get("bill_number") or "").strip()
    if "bill_number" in values:
        if not number:
            raise RequestValidationError("bill_number is required")
        values["bill_number"] = number

    if "amount" in values:
        values["amount"] = money(values["amount"])
        if values["amount"] < ZERO:
            raise RequestValidationError("amount cannot be negative")

    _require_owned(Contact, tenant_id=tenant_id, pk=values.get("contact_id"), label="Contact")
    _require_owned(Category, tenant_id=tenant_id, pk=values.get("category_id"), label="Category")
    _require_owned(Project, tenant_id=tenant_id, pk=values.get("project_id"), label="Project")

    if number:
        duplicate = Bill.objects.filter(tenant_id=tenant_id, bill_number=number)
        if bill_id:
            duplicate = duplicate.exclude(pk=bill_id)
        if duplicate.exists():
            raise BusinessRuleError(
                f"Bill number {number} already exists", code="DUPLICATE_NUMBER"
            )

    exists = bill_id and Bill.all_objects.filter(tenant_id=tenant_id, pk=bill_id).exists()
    if not exists:
        if "amount" not in values or not number:
            raise RequestValidationError("bill_number and amount are required")
        values["paid_amount"] = ZERO
        values["status"] = STATUS_UNPAID

    def guard(current: Bill):
        assert_bill_mutable(current)
        if "amount" in values:
            if values["amount"] < money(current.paid_amount) - epsilon():
                raise BusinessRuleError(
                    "amount cannot be lower than the amount already paid",
                    code="AMOUNT_BELOW_PAID",
                )
            return {
                "status": derive_payment_status(
                    total=values["amount"], paid=current.paid_amount
                )
            }
        return None

    bill = upsert_entity(
        Bill,
        tenant_id=tenant_id,
        entity_id=bill_id,
        values=values,
        expected_version=expected_version,
        recreate=recreate,
        guard=guard,
        user=user,
    )

    if not bill.is_deleted:
        event = "bill.created" if bill.version == 1 else "bill.updated"
        emit_to_tenant(tenant_id, event, document_payload(bill, number_field="bill_number"), user=user)

    return bill


def delete_bill(*, tenant_id, bill_id, expected_version=None, user=None) -> Bill:
    bill = soft_delete_entity(
        Bill,
        tenant_id=tenant_id,
        entity_id=bill_id,
        expected_version=expected_version,
        guard=assert_bill_mutable,
        user=user,
    )
    logger.info("Bill soft-deleted", extra={"bill_id": str(bill.id)})
    emit_to_tenant(tenant_id, "bill.deleted", {"id": str(bill.id)}, user=user)
    return bill


ACCOUNT_FIELDS = ("name", "account_type", "description")


def save_account(
    *,
    tenant_id,
    data: dict,
    account_id=None,
    expected_version=None,
    recreate: bool = False,
    user=None,
) -> Account:
    """
    Balance is only moved by payment posting; an opening balance is accepted
    on creation.
    """
    values = {k: data[k] for k in ACCOUNT_FIELDS if k in data}
    if "name" in values:
        values["name"] = (values["name"] or "").strip()
        if not values["name"]:
            raise RequestValidationError("name is required")

    if not (account_id and Account.all_objects.filter(tenant_id=tenant_id, pk=account_id).exists()):
        if not values.get("name"):
            raise RequestValidationError("name is required")
        values["balance"] = money(data.get("balance"))

    account = upsert_entity(
        Account,
        tenant_id=tenant_id,
        entity_id=account_id,
        values=values,
        expected_version=expected_version,
        recreate=recreate,
        user=user,
    )
    if not account.is_deleted:
        emit_to_tenant(tenant_id, "account.updated", {"id": str(account.id)}, user=user)
    return account
