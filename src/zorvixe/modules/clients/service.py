"""
Clients Service Layer

Business logic for the client payment-registration workflow.

This module implements:
1. Client management:
   - Create clients with generated project and Zorvixe ids
   - List clients with their usable link and payment state

2. Payment links (via the shared link engine):
   - Issue a 30-day link, optionally emailing it to the client
   - Resolve a token to the client's payment details
   - Toggle the client's current link

3. Payment registration:
   - Record exactly one registration per client, copying the client,
     project and amount fields from the client record
   - Generate the ``PAY-<year>-<6 alnum>`` reference id

4. Payment administration:
   - Paginated listing, search and status review

5. Bootstrap payment link:
   - Seed the standalone link configured in settings
"""

import logging
from datetime import UTC, date, datetime, timedelta
from math import ceil
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.config import settings
from zorvixe.core.email import send_payment_link
from zorvixe.core.identifiers import (
    generate_payment_reference,
    generate_project_id,
    generate_zorvixe_id,
)
from zorvixe.modules.clients import repository
from zorvixe.modules.clients.models import (
    Client,
    ClientLink,
    ClientStatus,
    PaymentLink,
    PaymentRegistration,
    PaymentStatus,
)
from zorvixe.modules.clients.schemas import (
    ClientCreate,
    ClientDetailsResponse,
    ClientLinkCreate,
    ClientLinkResponse,
    ClientListItem,
    ClientListResponse,
    ClientPaymentView,
    ClientResponse,
    Pagination,
    PaymentAdminView,
    PaymentDetailResponse,
    PaymentListResponse,
    PaymentResponse,
    PaymentSearchResponse,
    PaymentStatusResponse,
    PaymentSubmitRequest,
    PaymentSubmitResponse,
    PaymentSummary,
)
from zorvixe.modules.links import service as links
from zorvixe.modules.links.exceptions import (
    LinkServiceError,
    OutcomeNotFoundError,
    StorageFailedError,
    ValidationFailedError,
)
from zorvixe.modules.links.schemas import LinkInfo, LinkToggleResponse
from zorvixe.modules.links.workflow import LinkWorkflow

logger = logging.getLogger(__name__)

# Constants
PAYMENT_LINK_TTL = timedelta(days=30)
PAYMENT_REMINDER_LEAD = timedelta(days=3)
DEFAULT_DUE_DAYS = 7
SEARCH_MIN_LENGTH = 3
SEARCH_MAX_RESULTS = 20
CREATE_ATTEMPTS = 3  # retries on a generated-id collision

PAYMENT_WORKFLOW = LinkWorkflow(
    name="payment",
    subject_label="client",
    subject_model=Client,
    link_model=ClientLink,
    outcome_model=PaymentRegistration,
    ttl=PAYMENT_LINK_TTL,
    url_path="payment",
    completed_status=ClientStatus.PAYMENT_SUBMITTED,
    outcome_ref=lambda payment: payment.reference_id,
    already_completed_message="Payment has already been submitted for this client",
    reminder_lead=PAYMENT_REMINDER_LEAD,
    reminder_action="register your project payment",
)


class PaymentNotFoundError(OutcomeNotFoundError):
    """Raised when a payment registration is not found."""

    def __init__(self, payment_id: UUID | None = None):
        message = (
            f"Payment registration {payment_id} not found"
            if payment_id
            else "Payment registration not found"
        )
        super().__init__(message=message, error_code="PAYMENT_NOT_FOUND")


class PaymentLinkNotFoundError(LinkServiceError):
    """Raised when the bootstrap payment link token is unknown."""

    def __init__(self):
        super().__init__(
            message="Payment link not found",
            error_code="PAYMENT_LINK_NOT_FOUND",
            status_code=404,
        )


def _utcnow() -> datetime:
    return datetime.now(UTC)


def default_due_date(today: date) -> date:
    """Suggested payment due date: one week from today."""
    return today + timedelta(days=DEFAULT_DUE_DAYS)


# ============================================
# Clients
# ============================================


async def create_client(db: AsyncSession, data: ClientCreate) -> ClientResponse:
    """
    Create a client with freshly generated project and Zorvixe ids.

    Raises:
        StorageFailedError: If the client could not be stored
    """
    for attempt in range(1, CREATE_ATTEMPTS + 1):
        try:
            client = await repository.create_client(
                db,
                data,
                project_id=generate_project_id(),
                zorvixe_id=generate_zorvixe_id(),
            )
            break
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"Generated client id collided (attempt {attempt}): {e.orig}")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to create client: {e}", exc_info=True)
            raise StorageFailedError() from e
    else:
        raise StorageFailedError()

    logger.info(f"Client created: id={client.id}, project_id={client.project_id}")
    return ClientResponse.model_validate(client)


async def list_clients(db: AsyncSession, *, now: datetime | None = None) -> ClientListResponse:
    """List clients, newest first, with their usable link and payment state."""
    rows = await repository.get_clients_with_links(db, now or _utcnow())

    clients = []
    for client, link, payment in rows:
        item = ClientListItem.model_validate(client)
        item.current_link = LinkInfo.model_validate(link) if link else None
        item.payment_completed = payment is not None
        item.reference_id = payment.reference_id if payment else None
        clients.append(item)

    return ClientListResponse(clients=clients)


# ============================================
# Payment Links
# ============================================


async def issue_payment_link(
    db: AsyncSession,
    data: ClientLinkCreate,
    *,
    now: datetime | None = None,
) -> ClientLinkResponse:
    """
    Issue a new payment link for a client, replacing any previous one.

    When ``data.notify`` is set the link is emailed to the client. A failed
    email is logged and does not fail the request.

    Raises:
        SubjectNotFoundError: If the client does not exist
        StorageFailedError: If the store fails
    """
    issued = await links.issue_link(
        db, PAYMENT_WORKFLOW, data.client_id, base_url=settings.public_base_url, now=now
    )
    client = issued.subject

    if data.notify:
        email_sent = await send_payment_link(
            to_email=client.email,
            client_name=client.name,
            project_name=client.project_name,
            project_id=client.project_id,
            amount=f"{client.payment_amount:,.2f}",
            link_url=issued.url,
            expires_at=issued.link.expires_at,
        )
        if not email_sent:
            logger.error(f"Failed to email payment link to client {client.id}")

    return ClientLinkResponse(
        link=issued.url,
        token=issued.link.token,
        expires_at=issued.link.expires_at,
        client=ClientResponse.model_validate(client),
    )


async def toggle_payment_link(
    db: AsyncSession,
    client_id: UUID,
    active: bool,
    *,
    now: datetime | None = None,
) -> LinkToggleResponse:
    """
    Activate or deactivate the client's current payment link.

    Raises:
        LinkNotFoundError: If the client has no unexpired link
    """
    link = await links.set_link_active(db, PAYMENT_WORKFLOW, client_id, active, now=now)
    return LinkToggleResponse(
        message=f"Link {'activated' if active else 'deactivated'} successfully",
        link=LinkInfo.model_validate(link),
    )


async def get_client_details(
    db: AsyncSession,
    token: str,
    *,
    now: datetime | None = None,
) -> ClientDetailsResponse:
    """
    Resolve a payment token to what its holder may see.

    Raises:
        InvalidOrExpiredLinkError: If the token is unknown, inactive or expired
            (and not completed)
    """
    now = now or _utcnow()
    resolution = await links.resolve_link(db, PAYMENT_WORKFLOW, token, now=now)
    client = resolution.subject

    return ClientDetailsResponse(
        client=ClientPaymentView(
            client_id=client.id,
            client_name=client.name,
            company=client.company,
            project_name=client.project_name,
            project_id=client.project_id,
            zorvixe_id=client.zorvixe_id,
            project_description=client.project_description,
            amount=client.payment_amount,
            due_date=default_due_date(now.date()),
        ),
        link_id=resolution.link.id,
        expires_at=resolution.link.expires_at,
        completed=resolution.completed,
        payment=PaymentSummary.model_validate(resolution.outcome) if resolution.outcome else None,
    )


# ============================================
# Payment Registration
# ============================================


async def submit_payment(
    db: AsyncSession,
    data: PaymentSubmitRequest,
    *,
    now: datetime | None = None,
) -> PaymentSubmitResponse:
    """
    Record the client's payment registration through their link.

    Raises:
        ValidationFailedError: If the due date lies in the past
        InvalidOrExpiredLinkError: If the token is unknown, inactive or expired
        AlreadyCompletedError: If the client's payment was already registered
        StorageFailedError: If the store fails
    """
    now = now or _utcnow()

    if data.due_date is not None and data.due_date < now.date():
        raise ValidationFailedError({"due_date": "Due date cannot be in the past"})

    def build_registration(client: Client, link: ClientLink, at: datetime) -> PaymentRegistration:
        return PaymentRegistration(
            subject_id=client.id,
            client_name=client.name,
            project_name=client.project_name,
            project_id=client.project_id,
            zorvixe_id=client.zorvixe_id,
            project_description=client.project_description,
            amount=client.payment_amount,
            due_date=data.due_date or default_due_date(at.date()),
            receipt_url=data.receipt_url,
            reference_id=generate_payment_reference(at),
            status=PaymentStatus.PENDING,
        )

    payment = await links.complete_link(
        db, PAYMENT_WORKFLOW, data.token, build_registration, now=now
    )

    return PaymentSubmitResponse(
        reference_id=payment.reference_id,
        payment=PaymentResponse.model_validate(payment),
    )


# ============================================
# Payment Administration
# ============================================


def _to_admin_view(payment: PaymentRegistration, client: Client | None) -> PaymentAdminView:
    view = PaymentAdminView.model_validate(payment)
    if client is not None:
        view.client_email = client.email
        view.client_phone = client.phone
        view.company = client.company
    return view


def _parse_status_filter(status: str | None) -> PaymentStatus | None:
    if status is None or status == "all":
        return None
    try:
        return PaymentStatus(status)
    except ValueError as e:
        allowed = ", ".join(["all", *(s.value for s in PaymentStatus)])
        raise ValidationFailedError({"status": f"Must be one of: {allowed}"}) from e


async def list_payments(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
) -> PaymentListResponse:
    """
    List payment registrations, newest first.

    ``status`` of ``None`` or ``"all"`` disables the status filter.

    Raises:
        ValidationFailedError: If ``status`` is not a known payment status
    """
    status_filter = _parse_status_filter(status)

    rows, total = await repository.get_payments(
        db, status=status_filter, skip=(page - 1) * limit, limit=limit
    )

    return PaymentListResponse(
        payments=[_to_admin_view(payment, client) for payment, client in rows],
        pagination=Pagination(
            total=total,
            total_pages=ceil(total / limit) if limit else 0,
            current_page=page,
            limit=limit,
        ),
    )


async def search_payments(db: AsyncSession, query: str) -> PaymentSearchResponse:
    """
    Search payment registrations by client/project name, project id, Zorvixe
    id or reference id.

    Raises:
        ValidationFailedError: If the query is shorter than 3 characters
    """
    query = query.strip()
    if len(query) < SEARCH_MIN_LENGTH:
        raise ValidationFailedError(
            {"query": f"Search query must be at least {SEARCH_MIN_LENGTH} characters"}
        )

    rows = await repository.search_payments(db, query, limit=SEARCH_MAX_RESULTS)
    return PaymentSearchResponse(payments=[_to_admin_view(payment, client) for payment, client in rows])


async def get_payment(db: AsyncSession, payment_id: UUID) -> PaymentDetailResponse:
    """
    Raises:
        PaymentNotFoundError: If the payment registration does not exist
    """
    row = await repository.get_payment_with_client(db, payment_id)
    if row is None:
        raise PaymentNotFoundError(payment_id)

    payment, client = row
    return PaymentDetailResponse(payment=_to_admin_view(payment, client))


async def update_payment_status(
    db: AsyncSession,
    payment_id: UUID,
    status: PaymentStatus,
) -> PaymentStatusResponse:
    """
    Set the review status of a payment registration.

    Raises:
        PaymentNotFoundError: If the payment registration does not exist
    """
    payment = await repository.get_payment_by_id(db, payment_id)
    if payment is None:
        raise PaymentNotFoundError(payment_id)

    payment = await repository.update_payment_status(db, payment, status)
    logger.info(f"Payment {payment_id} status set to {status.value}")

    return PaymentStatusResponse(payment=PaymentResponse.model_validate(payment))


# ============================================
# Bootstrap Payment Link
# ============================================


async def ensure_payment_link(db: AsyncSession, token: str) -> PaymentLink:
    """Create the bootstrap payment link unless it already exists."""
    existing = await repository.get_payment_link_by_token(db, token)
    if existing is not None:
        return existing

    try:
        payment_link = await repository.create_payment_link(db, token)
    except IntegrityError:
        # Seeded concurrently by another worker
        await db.rollback()
        existing = await repository.get_payment_link_by_token(db, token)
        if existing is None:
            raise
        return existing

    logger.info(f"Bootstrap payment link created: id={payment_link.id}")
    return payment_link


async def get_payment_link_status(db: AsyncSession, token: str) -> bool:
    """
    Returns:
        Whether the bootstrap payment link is active

    Raises:
        PaymentLinkNotFoundError: If no payment link has this token
    """
    payment_link = await repository.get_payment_link_by_token(db, token)
    if payment_link is None:
        raise PaymentLinkNotFoundError()
    return payment_link.active
