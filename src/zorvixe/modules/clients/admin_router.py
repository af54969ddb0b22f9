"""
Clients Admin Router

API endpoints for administrators to manage clients, their payment links and
the payment registrations those links produce.

Endpoints:
- POST /admin/clients - Create a client
- GET /admin/clients - List clients with their usable link and payment state
- POST /admin/client-links - Issue a payment link (replaces the previous one)
- PUT /admin/client-links/{client_id}/toggle - Activate/deactivate the current link
- GET /admin/payments - List payment registrations (paginated)
- GET /admin/payments/search - Search payment registrations
- GET /admin/payments/{id} - Get a payment registration
- PUT /admin/payments/{id}/status - Set the review status of a payment
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.database import get_db
from zorvixe.modules.clients import service
from zorvixe.modules.clients.schemas import (
    ClientCreate,
    ClientCreateResponse,
    ClientLinkCreate,
    ClientLinkResponse,
    ClientListResponse,
    PaymentDetailResponse,
    PaymentListResponse,
    PaymentSearchResponse,
    PaymentStatusResponse,
    PaymentStatusUpdate,
)
from zorvixe.modules.links.exceptions import LinkServiceError, internal_error, to_http_exception
from zorvixe.modules.links.schemas import ErrorResponse, LinkToggleRequest, LinkToggleResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Clients
# ============================================


@router.post(
    "/clients",
    response_model=ClientCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Client",
)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
) -> ClientCreateResponse:
    """Create a client. Project id and Zorvixe id are generated."""
    try:
        client = await service.create_client(db, data)
        return ClientCreateResponse(client=client)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error creating client: {e}")
        raise internal_error() from e


@router.get("/clients", response_model=ClientListResponse, summary="List Clients")
async def list_clients(db: AsyncSession = Depends(get_db)) -> ClientListResponse:
    try:
        return await service.list_clients(db)
    except Exception as e:
        logger.exception(f"Unexpected error listing clients: {e}")
        raise internal_error() from e


# ============================================
# Payment Links
# ============================================


@router.post(
    "/client-links",
    response_model=ClientLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue Payment Link",
    description="""
Issue a 30-day payment link for a client.

Every earlier link of the client is deactivated in the same transaction, so
exactly one link is active afterwards. With `notify: true` the link is also
emailed to the client; an email failure does not fail the request.
""",
    responses={404: {"description": "Client not found", "model": ErrorResponse}},
)
async def issue_client_link(
    data: ClientLinkCreate,
    db: AsyncSession = Depends(get_db),
) -> ClientLinkResponse:
    try:
        return await service.issue_payment_link(db, data)
    except LinkServiceError as e:
        logger.warning(f"Payment link not issued for client {data.client_id}: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error issuing payment link: {e}")
        raise internal_error() from e


@router.put(
    "/client-links/{client_id}/toggle",
    response_model=LinkToggleResponse,
    summary="Activate or Deactivate Payment Link",
    description="""
Toggle the client's most recent payment link. A link can only be reactivated
before it expires; its expiry is never extended.
""",
    responses={404: {"description": "No unexpired link", "model": ErrorResponse}},
)
async def toggle_client_link(
    client_id: UUID,
    data: LinkToggleRequest,
    db: AsyncSession = Depends(get_db),
) -> LinkToggleResponse:
    try:
        return await service.toggle_payment_link(db, client_id, data.active)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error toggling payment link: {e}")
        raise internal_error() from e


# ============================================
# Payment Registrations
# ============================================


@router.get("/payments", response_model=PaymentListResponse, summary="List Payments")
async def list_payments(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    status: str | None = Query(
        None, description="Filter by status: pending, verified, rejected or all"
    ),
    db: AsyncSession = Depends(get_db),
) -> PaymentListResponse:
    try:
        return await service.list_payments(db, page=page, limit=limit, status=status)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error listing payments: {e}")
        raise internal_error() from e


# Declared before /payments/{payment_id} so "search" is not parsed as an id
@router.get("/payments/search", response_model=PaymentSearchResponse, summary="Search Payments")
async def search_payments(
    query: str = Query(..., description="At least 3 characters"),
    db: AsyncSession = Depends(get_db),
) -> PaymentSearchResponse:
    try:
        return await service.search_payments(db, query)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error searching payments: {e}")
        raise internal_error() from e


@router.get(
    "/payments/{payment_id}",
    response_model=PaymentDetailResponse,
    summary="Get Payment",
    responses={404: {"description": "Payment not found", "model": ErrorResponse}},
)
async def get_payment(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PaymentDetailResponse:
    try:
        return await service.get_payment(db, payment_id)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching payment {payment_id}: {e}")
        raise internal_error() from e


@router.put(
    "/payments/{payment_id}/status",
    response_model=PaymentStatusResponse,
    summary="Update Payment Status",
    responses={404: {"description": "Payment not found", "model": ErrorResponse}},
)
async def update_payment_status(
    payment_id: UUID,
    data: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> PaymentStatusResponse:
    try:
        return await service.update_payment_status(db, payment_id, data.status)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating payment {payment_id}: {e}")
        raise internal_error() from e
