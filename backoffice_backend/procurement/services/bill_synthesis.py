# procurement/services/bill_synthesis.py

"""
======================================================
PATH: procurement/services/bill_synthesis.py
======================================================
BILL SYNTHESIS (approved P2P invoice -> buyer payable)

synthesize_bill():
1) Already linked bill for the invoice? return it (Bill.p2p_invoice is
   one-to-one, so retries never create a second bill)
2) Resolve the vendor Contact in the buyer's directory:
      registered supplier details -> exact company match
      -> partial name/company match -> create
3) Due date = issue date + supplier payment terms (Net 30 default)
4) Insert the Bill through the versioned store: Unpaid, paid_amount 0,
   booked against the PO's project

Runs in its own atomic unit so a failure here never touches the approval.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from accounting.models import Bill, Category, Contact
from accounting.models.status import STATUS_UNPAID
from accounting.services.posting import document_payload
from core.models import AuditLog, Tenant
from core.services import audit
from core.services.events import emit_to_tenant
from core.services.money import ZERO, money
from core.services.versioned_store import upsert_entity
from procurement.models import P2PInvoice, RegisteredSupplier

logger = logging.getLogger("p2p")


def payment_term_days(supplier: Tenant) -> int:
    default_terms = getattr(settings, "P2P_DEFAULT_PAYMENT_TERMS", Tenant.TERMS_NET_30)
    terms = (supplier.payment_terms or "").strip() or default_terms
    if terms not in Tenant.TERM_DAYS:
        terms = default_terms
    return Tenant.TERM_DAYS.get(terms, 30)


def resolve_vendor_contact(*, buyer_tenant_id, supplier: Tenant, user=None) -> Contact:
    registered = RegisteredSupplier.objects.filter(
        buyer_tenant_id=buyer_tenant_id,
        supplier_tenant=supplier,
        status=RegisteredSupplier.STATUS_ACTIVE,
    ).first()

    company = (
        (registered.supplier_company if registered else "")
        or supplier.company_name
        or supplier.name
        or "Supplier"
    ).strip()
    name = ((registered.supplier_name if registered else "") or supplier.name or company).strip()

    vendors = Contact.objects.filter(
        tenant_id=buyer_tenant_id, contact_type=Contact.TYPE_VENDOR
    ).order_by("created_at")

    contact = vendors.filter(company_name=company).first()
    if contact is None:
        contact = vendors.filter(
            Q(name__icontains=company) | Q(company_name__icontains=company)
        ).first()
    if contact is not None:
        return contact

    contact = upsert_entity(
        Contact,
        tenant_id=buyer_tenant_id,
        values={
            "name": name,
            "company_name": company,
            "phone": registered.contact_no if registered else "",
            "address": registered.address if registered else "",
            "contact_type": Contact.TYPE_VENDOR,
        },
        user=user,
    )
    logger.info(
        "Created vendor contact for supplier",
        extra={"contact_id": str(contact.id), "supplier_tenant_id": str(supplier.id)},
    )
    return contact


def _category_id(*, buyer_tenant_id, items):
    first = items[0] if isinstance(items, list) and items else {}
    category_id = first.get("category_id") if isinstance(first, dict) else None
    if category_id and Category.objects.filter(
        tenant_id=buyer_tenant_id, pk=category_id
    ).exists():
        return category_id
    return None


@transaction.atomic
def synthesize_bill(invoice: P2PInvoice, *, user=None) -> Bill:
    existing = Bill.all_objects.filter(p2p_invoice=invoice).first()
    if existing is not None:
        return existing

    buyer_tenant_id = invoice.buyer_tenant_id
    supplier = invoice.supplier_tenant
    po = invoice.po

    contact = resolve_vendor_contact(
        buyer_tenant_id=buyer_tenant_id, supplier=supplier, user=user
    )

    issue_date = timezone.localdate()
    due_date = issue_date + timedelta(days=payment_term_days(supplier))

    bill = upsert_entity(
        Bill,
        tenant_id=buyer_tenant_id,
        values={
            "bill_number": f"BILL-{invoice.invoice_number}",
            "contact_id": contact.id,
            "amount": money(invoice.amount),
            "paid_amount": ZERO,
            "status": STATUS_UNPAID,
            "issue_date": issue_date,
            "due_date": due_date,
            "description": (
                f"PO: {po.po_number} | Invoice: {invoice.invoice_number} "
                f"| Vendor: {contact.company_name or contact.name}"
            ),
            "category_id": _category_id(buyer_tenant_id=buyer_tenant_id, items=invoice.items),
            "project_id": po.project_id,
            "p2p_invoice_id": invoice.id,
        },
        user=user,
    )

    audit.record(
        AuditLog.ENTITY_BILL,
        bill.id,
        AuditLog.ACTION_CREATED,
        tenant_id=buyer_tenant_id,
        to_status=bill.status,
        user=user,
        payload={"p2p_invoice_id": str(invoice.id), "po_id": str(po.id)},
    )

    payload = document_payload(bill, number_field="bill_number")
    payload["source"] = "p2p_invoice_approval"
    emit_to_tenant(buyer_tenant_id, "bill.created", payload, user=user)

    logger.info(
        "Bill created from approved invoice",
        extra={
            "bill_id": str(bill.id),
            "bill_number": bill.bill_number,
            "invoice_id": str(invoice.id),
            "project_id": str(po.project_id) if po.project_id else None,
        },
    )
    return bill
