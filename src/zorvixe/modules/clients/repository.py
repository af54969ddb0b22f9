"""
Clients Repository

Database operations for clients, payment registrations and the bootstrap
payment link. Link and completion writes go through the shared link
repository (``zorvixe.modules.links.repository``).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Client, ClientLink, PaymentLink, PaymentRegistration, PaymentStatus
from .schemas import ClientCreate

LIKE_ESCAPE = "\\"


async def create_client(
    db: AsyncSession,
    data: ClientCreate,
    *,
    project_id: str,
    zorvixe_id: str,
) -> Client:
    """Create a new client."""
    new_client = Client(
        name=data.name,
        email=data.email,
        phone=data.phone,
        company=data.company,
        project_name=data.project_name,
        project_description=data.project_description,
        project_id=project_id,
        zorvixe_id=zorvixe_id,
        payment_amount=data.payment_amount,
    )

    db.add(new_client)
    await db.commit()
    await db.refresh(new_client)

    return new_client


async def get_clients_with_links(
    db: AsyncSession,
    now: datetime,
) -> list[tuple[Client, ClientLink | None, PaymentRegistration | None]]:
    """
    Get every client (newest first) with its usable link and its payment
    registration, if any.
    """
    result = await db.execute(
        select(Client, ClientLink, PaymentRegistration)
        .outerjoin(
            ClientLink,
            and_(
                ClientLink.subject_id == Client.id,
                ClientLink.active.is_(True),
                ClientLink.expires_at > now,
            ),
        )
        .outerjoin(PaymentRegistration, PaymentRegistration.subject_id == Client.id)
        .order_by(Client.created_at.desc())
    )
    return [(row[0], row[1], row[2]) for row in result.all()]


# ============================================
# Payment Registrations
# ============================================


def _payments_with_clients():
    return select(PaymentRegistration, Client).outerjoin(
        Client, PaymentRegistration.subject_id == Client.id
    )


async def get_payments(
    db: AsyncSession,
    *,
    status: PaymentStatus | None = None,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[tuple[PaymentRegistration, Client | None]], int]:
    """
    Get payment registrations, newest first, with their client.

    Returns:
        Tuple of (page of (payment, client) rows, total count matching filters)
    """
    query = _payments_with_clients()
    if status:
        query = query.where(PaymentRegistration.status == status)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(PaymentRegistration.created_at.desc()).offset(skip).limit(limit)
    )
    return [(row[0], row[1]) for row in result.all()], total


def _contains_pattern(search: str) -> str:
    """ILIKE pattern matching ``search`` literally, wildcards included."""
    escaped = (
        search.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


async def search_payments(
    db: AsyncSession,
    search: str,
    limit: int = 20,
) -> list[tuple[PaymentRegistration, Client | None]]:
    """Case-insensitive search over names, project ids and the reference id."""
    search_pattern = _contains_pattern(search)
    columns = (
        PaymentRegistration.client_name,
        PaymentRegistration.project_name,
        PaymentRegistration.project_id,
        PaymentRegistration.zorvixe_id,
        PaymentRegistration.reference_id,
    )
    result = await db.execute(
        _payments_with_clients()
        .where(or_(*(column.ilike(search_pattern, escape=LIKE_ESCAPE) for column in columns)))
        .order_by(PaymentRegistration.created_at.desc())
        .limit(limit)
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_payment_with_client(
    db: AsyncSession,
    payment_id: UUID,
) -> tuple[PaymentRegistration, Client | None] | None:
    """Get a payment registration and its client by payment ID."""
    result = await db.execute(
        _payments_with_clients().where(PaymentRegistration.id == payment_id)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def get_payment_by_id(db: AsyncSession, payment_id: UUID) -> PaymentRegistration | None:
    """Get payment registration by ID."""
    return await db.get(PaymentRegistration, payment_id)


async def update_payment_status(
    db: AsyncSession,
    payment: PaymentRegistration,
    status: PaymentStatus,
) -> PaymentRegistration:
    """Set the review status of a payment registration."""
    payment.status = status

    await db.commit()
    await db.refresh(payment)

    return payment


# ============================================
# Bootstrap Payment Link
# ============================================


async def get_payment_link_by_token(db: AsyncSession, token: str) -> PaymentLink | None:
    result = await db.execute(select(PaymentLink).where(PaymentLink.token == token))
    return result.scalar_one_or_none()


async def create_payment_link(db: AsyncSession, token: str) -> PaymentLink:
    payment_link = PaymentLink(token=token, active=True)

    db.add(payment_link)
    await db.commit()
    await db.refresh(payment_link)

    return payment_link
