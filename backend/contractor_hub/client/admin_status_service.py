# backend/contractor_hub/client/admin_status_service.py
from __future__ import annotations

from datetime import date
from typing import Optional

from ..domain.job_status import status_options
from .api_client import ApiClient, Envelope


class AdminStatusService:
    def __init__(self, api: ApiClient):
        self.api = api

    def mark_deposit_paid(
        self,
        quote_id: int,
        *,
        payment_method: str = "cash",
        notes: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Envelope:
        return self.api.post(
            f"/admin/status/quotes/{quote_id}/mark-deposit-paid",
            {"paymentMethod": payment_method, "notes": notes, "transactionId": transaction_id},
        )

    def reopen_quote(self, quote_id: int, reason: Optional[str] = None) -> Envelope:
        return self.api.post(f"/admin/status/quotes/{quote_id}/reopen", {"reason": reason})

    def sync_payment(self, quote_id: int, payment_intent_id: Optional[str] = None) -> Envelope:
        return self.api.post(f"/admin/status/quotes/{quote_id}/sync-payment", {"paymentIntentId": payment_intent_id})

    def update_job_status(
        self,
        job_id: int,
        status: str,
        *,
        scheduled_start_date: Optional[date] = None,
        scheduled_end_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> Envelope:
        body = {
            "status": status,
            "scheduledStartDate": scheduled_start_date.isoformat() if scheduled_start_date else None,
            "scheduledEndDate": scheduled_end_date.isoformat() if scheduled_end_date else None,
            "reason": reason,
        }
        return self.api.patch(f"/admin/status/jobs/{job_id}/status", body)

    def override_job_status(self, job_id: int, status: str, reason: str, *, confirm: bool = False) -> Envelope:
        return self.api.post(
            f"/admin/status/jobs/{job_id}/override-status",
            {"status": status, "reason": reason, "confirmOverride": bool(confirm)},
        )

    @staticmethod
    def status_options(current_status: Optional[str] = None) -> list[str]:
        return status_options(current_status)
