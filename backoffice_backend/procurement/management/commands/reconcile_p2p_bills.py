# procurement/management/commands/reconcile_p2p_bills.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from procurement.models import BillReconciliation
from procurement.services.reconciliation import retry_open_reconciliations


class Command(BaseCommand):
    help = "Retry bill creation for approved P2P invoices left without a bill."

    def add_arguments(self, parser):
        parser.add_argument(
            "--tenant",
            dest="tenant_id",
            help="Only retry reconciliations of this buyer tenant (optional)",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Maximum number of open reconciliations to retry",
        )

    def handle(self, *args, **options):
        pending = BillReconciliation.objects.filter(status=BillReconciliation.STATUS_OPEN)
        if options.get("tenant_id"):
            pending = pending.filter(tenant_id=options["tenant_id"])

        if not pending.exists():
            self.stdout.write(self.style.SUCCESS("No open bill reconciliations."))
            return

        counts = retry_open_reconciliations(
            tenant_id=options.get("tenant_id"),
            limit=options.get("limit"),
        )

        self.stdout.write(
            f"Resolved: {counts['resolved']}  Failed: {counts['failed']}  Skipped: {counts['skipped']}"
        )
        if counts["failed"]:
            self.stderr.write(self.style.ERROR("Some reconciliations are still open."))
        else:
            self.stdout.write(self.style.SUCCESS("Reconciliation run complete."))
