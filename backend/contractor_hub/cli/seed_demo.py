# backend/contractor_hub/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from contractor_hub.db import init_db, session_scope
from contractor_hub.models import AppUser, Client, Job, PricingScheme, Quote, Tenant
from contractor_hub.services.auth_service import hash_password


@dataclass(frozen=True)
class SeedResult:
    tenant_slug: str
    user_email: str
    job_ids: dict[str, int] = field(default_factory=dict)
    quote_ids: dict[str, int] = field(default_factory=dict)


def _get_or_create_tenant(db: Session, slug: str, name: str) -> Tenant:
    row = db.scalar(select(Tenant).where(Tenant.slug == slug))
    if row:
        return row
    row = Tenant(slug=slug, company_name=name, email=f"office@{slug}.local", phone_number="555-0100")
    db.add(row)
    db.flush()
    return row


def _get_or_create_user(db: Session, tenant: Tenant, email: str, full_name: str, password: Optional[str]) -> AppUser:
    row = db.scalar(select(AppUser).where(AppUser.email == email))
    if row:
        return row
    row = AppUser(
        tenant_id=int(tenant.id),
        email=email,
        full_name=full_name,
        role="contractor_admin",
        password_hash=hash_password(password) if password else None,
    )
    db.add(row)
    db.flush()
    return row


def _default_scheme(db: Session, tenant: Tenant) -> PricingScheme:
    row = db.scalar(
        select(PricingScheme).where(PricingScheme.tenant_id == tenant.id, PricingScheme.is_default.is_(True))
    )
    if row:
        return row
    row = PricingScheme(
        tenant_id=int(tenant.id),
        name="Production Rates",
        type="production_based",
        description="Per-area production pricing",
        pricing_rules={"walls": {"price": 2.5, "unit": "sqft"}, "trim": {"price": 1.75, "unit": "linear_ft"}},
        is_default=True,
        is_active=True,
    )
    db.add(row)
    db.flush()
    return row


def _quote_and_job(
    db: Session,
    *,
    tenant: Tenant,
    client: Client,
    number: str,
    scheme_type: str,
    total: float,
    job_status: str,
    scheme: Optional[PricingScheme] = None,
    **shape,
) -> tuple[Quote, Job]:
    existing = db.scalar(select(Quote).where(Quote.tenant_id == tenant.id, Quote.quote_number == f"Q-{number}"))
    if existing and existing.jobs:
        return existing, existing.jobs[0]

    now = datetime.utcnow()
    quote = Quote(
        tenant_id=int(tenant.id),
        client_id=int(client.id),
        pricing_scheme_id=int(scheme.id) if scheme is not None else None,
        quote_number=f"Q-{number}",
        status="deposit_paid" if job_status != "accepted" else "accepted",
        pricing_scheme_type=scheme_type,
        customer_name=client.name,
        customer_email=client.email,
        customer_phone=client.phone,
        street=client.street,
        city=client.city,
        state=client.state,
        zip_code=client.zip_code,
        total=total,
        accepted_at=now,
        deposit_verified=job_status != "accepted",
        **shape,
    )
    db.add(quote)
    db.flush()

    job = Job(
        tenant_id=int(tenant.id),
        quote_id=int(quote.id),
        client_id=int(client.id),
        job_number=f"J-{number}",
        job_name=f"{client.name} repaint",
        status=job_status,
        customer_name=client.name,
        customer_email=client.email,
        customer_phone=client.phone,
        total_amount=total,
        deposit_amount=round(total * 0.5, 2),
        deposit_paid=job_status != "accepted",
        deposit_paid_at=now if job_status != "accepted" else None,
    )
    db.add(job)
    db.flush()
    return quote, job


def seed_into(
    db: Session,
    *,
    tenant_slug: str = "demo-painting",
    company_name: str = "Demo Painting Co",
    user_email: str = "owner@demo-painting.local",
    user_name: str = "Demo Owner",
    password: Optional[str] = "demo-password",
) -> SeedResult:
    """Seed one tenant with a quote and job per pricing shape. Commits."""
    tenant = _get_or_create_tenant(db, tenant_slug, company_name)
    _get_or_create_user(db, tenant, user_email, user_name, password)
    scheme = _default_scheme(db, tenant)

    client = db.scalar(select(Client).where(Client.tenant_id == tenant.id, Client.email == "pat@example.com"))
    if client is None:
        client = Client(
            tenant_id=int(tenant.id),
            name="Pat Homeowner",
            email="pat@example.com",
            phone="555-0142",
            street="12 Elm St",
            city="Springfield",
            state="IL",
            zip_code="62701",
        )
        db.add(client)
        db.flush()

    flat_q, flat_job = _quote_and_job(
        db,
        tenant=tenant,
        client=client,
        number="1001",
        scheme_type="flat_rate_unit",
        total=1850.0,
        job_status="deposit_paid",
        flat_rate_items={},
        breakdown=[
            {"category": "Interior", "itemKey": "doors", "quantity": 3},
            {"category": "exterior", "itemKey": "windows", "quantity": 5},
        ],
    )
    turnkey_q, turnkey_job = _quote_and_job(
        db,
        tenant=tenant,
        client=client,
        number="1002",
        scheme_type="turnkey",
        total=9200.0,
        job_status="scheduled",
    )
    area_q, area_job = _quote_and_job(
        db,
        tenant=tenant,
        client=client,
        number="1003",
        scheme_type="production_based",
        total=4300.0,
        job_status="in_progress",
        scheme=scheme,
        areas=[
            {"id": 1, "name": "Living Room", "surfaceType": "walls", "quantity": 420, "unit": "sqft"},
            {"id": 2, "name": "Kitchen", "surfaceType": "walls", "quantity": 260, "unit": "sqft"},
            {"id": 3, "surfaceType": "trim", "quantity": 180, "unit": "linear_ft"},
        ],
    )

    db.commit()
    return SeedResult(
        tenant_slug=str(tenant.slug),
        user_email=user_email,
        job_ids={"flat_rate": int(flat_job.id), "turnkey": int(turnkey_job.id), "areas": int(area_job.id)},
        quote_ids={"flat_rate": int(flat_q.id), "turnkey": int(turnkey_q.id), "areas": int(area_q.id)},
    )


def seed_demo(**kwargs) -> SeedResult:
    init_db()
    with session_scope() as db:
        return seed_into(db, **kwargs)
