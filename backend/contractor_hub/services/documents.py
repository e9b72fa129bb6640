# backend/contractor_hub/services/documents.py
"""
Job documents: material list, paint product order and work order.

PDFs are rendered with reportlab from the job, its quote and the derived
progress items, and stored on disk under

    <document_storage_dir>/<tenant_id>/<job_id>/<document-type>.pdf

The job row records one URL per document plus documents_generated_at. A
failure in one document does not stop the others; errors are collected and
returned to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import settings
from ..domain.labels import DOCUMENT_TYPE_LABELS, area_status_label
from ..domain.progress import derive_progress_items
from ..models import Job, Tenant

log = logging.getLogger(__name__)

DOCUMENT_TYPES: tuple[str, ...] = ("material-list", "paint-order", "work-order")

_URL_FIELDS = {
    "material-list": "material_list_url",
    "paint-order": "paint_order_url",
    "work-order": "work_order_url",
}


class DocumentError(ValueError):
    pass


@dataclass
class GenerationResult:
    documents: dict[str, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def _job_dir(job: Job) -> Path:
    return Path(settings.document_storage_dir) / str(job.tenant_id) / str(job.id)


def document_path(job: Job, doc_type: str) -> Path:
    if doc_type not in DOCUMENT_TYPES:
        raise DocumentError(f"Unknown document type: {doc_type}")
    return _job_dir(job) / f"{doc_type}.pdf"


def document_url(job: Job, doc_type: str) -> str:
    return f"/api/jobs/{job.id}/documents/{doc_type}"


def list_documents(job: Job) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for doc_type in DOCUMENT_TYPES:
        url = getattr(job, _URL_FIELDS[doc_type])
        out.append(
            {
                "type": doc_type,
                "label": DOCUMENT_TYPE_LABELS[doc_type],
                "url": url,
                "available": bool(url) and document_path(job, doc_type).exists(),
                "generatedAt": job.documents_generated_at.isoformat() if job.documents_generated_at else None,
            }
        )
    return out


def read_document(job: Job, doc_type: str) -> bytes:
    path = document_path(job, doc_type)
    if not getattr(job, _URL_FIELDS[doc_type]) or not path.exists():
        raise FileNotFoundError(doc_type)
    return path.read_bytes()


# -----------------------------
# Rendering
# -----------------------------
def _address(job: Job) -> str:
    if job.job_address:
        return job.job_address
    q = job.quote
    if q is None:
        return ""
    parts = [q.street or "", " ".join(p for p in (q.city, q.state, q.zip_code) if p)]
    return ", ".join(p for p in parts if p)


def _header(tenant: Optional[Tenant], job: Job, title: str) -> list:
    styles = getSampleStyleSheet()
    flow: list = []
    if tenant is not None:
        flow.append(Paragraph(escape(tenant.company_name), styles["Title"]))
        contact = " | ".join(p for p in (tenant.phone_number, tenant.email) if p)
        if contact:
            flow.append(Paragraph(escape(contact), styles["Normal"]))
    flow.append(Spacer(1, 0.15 * inch))
    flow.append(Paragraph(title, styles["Heading1"]))
    flow.append(Paragraph(escape(f"Job: {job.job_number}"), styles["Normal"]))
    flow.append(Paragraph(escape(f"Customer: {job.customer_name or ''}"), styles["Normal"]))
    addr = _address(job)
    if addr:
        flow.append(Paragraph(escape(f"Address: {addr}"), styles["Normal"]))
    flow.append(Spacer(1, 0.25 * inch))
    return flow


def _table(rows: list[list[Any]]) -> Table:
    t = Table(rows, repeatRows=1)
    t.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f3a5f")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return t


def _render(flow: list) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=LETTER, leftMargin=0.75 * inch, rightMargin=0.75 * inch)
    doc.build(flow)
    return buf.getvalue()


def render_material_list(job: Job, tenant: Optional[Tenant]) -> bytes:
    summary = derive_progress_items(job)
    rows: list[list[Any]] = [["Item", "Category", "Quantity", "Unit"]]
    for item in summary.items:
        rows.append([item.name, item.category or "", item.quantity if item.quantity is not None else "", item.unit or ""])

    flow = _header(tenant, job, "Material List")
    if summary.is_empty:
        flow.append(Paragraph("No line items on this job.", getSampleStyleSheet()["Normal"]))
    else:
        flow.append(_table(rows))
    return _render(flow)


def render_paint_order(job: Job, tenant: Optional[Tenant]) -> bytes:
    styles = getSampleStyleSheet()
    quote = job.quote
    rows: list[list[Any]] = [["Area", "Surface", "Quantity", "Product", "Color"]]
    for area in (quote.areas if quote is not None else None) or []:
        rows.append(
            [
                area.get("name") or area.get("surfaceType") or "",
                area.get("surfaceType") or "",
                f"{area.get('quantity') or ''} {area.get('unit') or ''}".strip(),
                area.get("product") or area.get("paintProduct") or "",
                area.get("color") or area.get("colorName") or "",
            ]
        )

    flow = _header(tenant, job, "Paint Product Order")
    if len(rows) == 1:
        flow.append(Paragraph("No area-level paint selections on this quote.", styles["Normal"]))
    else:
        flow.append(_table(rows))
    return _render(flow)


def render_work_order(job: Job, tenant: Optional[Tenant]) -> bytes:
    styles = getSampleStyleSheet()
    summary = derive_progress_items(job)

    flow = _header(tenant, job, "Work Order")
    start = job.scheduled_start_date.isoformat() if job.scheduled_start_date else "TBD"
    end = job.scheduled_end_date.isoformat() if job.scheduled_end_date else "TBD"
    flow.append(Paragraph(f"Scheduled: {start} to {end}", styles["Normal"]))
    if job.estimated_duration:
        flow.append(Paragraph(f"Estimated duration: {job.estimated_duration} day(s)", styles["Normal"]))
    crew = ", ".join(str(c) for c in (job.assigned_crew_members or []))
    if crew:
        flow.append(Paragraph(escape(f"Crew: {crew}"), styles["Normal"]))
    if job.crew_notes:
        flow.append(Paragraph(escape(f"Crew notes: {job.crew_notes}"), styles["Normal"]))
    flow.append(Spacer(1, 0.2 * inch))

    rows: list[list[Any]] = [["Item", "Quantity", "Status", "Done"]]
    for item in summary.items:
        qty = f"{item.quantity if item.quantity is not None else ''} {item.unit or ''}".strip()
        rows.append([item.name, qty, area_status_label(item.status), "[x]" if item.is_completed else "[ ]"])
    flow.append(_table(rows))
    return _render(flow)


_RENDERERS: dict[str, Callable[[Job, Optional[Tenant]], bytes]] = {
    "material-list": render_material_list,
    "paint-order": render_paint_order,
    "work-order": render_work_order,
}


def generate_job_documents(job: Job, tenant: Optional[Tenant]) -> GenerationResult:
    """
    Render and store every document for the job, updating its URL fields.
    Does not commit.
    """
    if not job.deposit_paid:
        raise DocumentError("Documents can only be generated after the deposit is paid")

    result = GenerationResult()
    job_dir = _job_dir(job)
    job_dir.mkdir(parents=True, exist_ok=True)

    for doc_type, render in _RENDERERS.items():
        try:
            pdf = render(job, tenant)
            document_path(job, doc_type).write_bytes(pdf)
        except Exception as e:
            log.exception("document generation failed", extra={"job_id": int(job.id), "document_type": doc_type})
            result.errors.append(f"{DOCUMENT_TYPE_LABELS[doc_type]}: {e}")
            continue
        url = document_url(job, doc_type)
        setattr(job, _URL_FIELDS[doc_type], url)
        result.documents[doc_type] = url

    job.documents_generated_at = datetime.utcnow()
    return result
