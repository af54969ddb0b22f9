"""
Clients Router

Public endpoints used by the holder of a payment link. No authentication:
the token in the link is the only credential.

Endpoints:
- GET /client-details/{token} - Payment details behind a link
- POST /payment/submit - Register the payment (once per client)
- GET /payment-link/{token} - Status of the bootstrap payment link

Security:
- Rate limited per client IP
- Unknown, inactive and expired tokens all answer 404 INVALID_OR_EXPIRED_LINK
- Tokens are never logged
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from zorvixe.core.database import get_db
from zorvixe.core.rate_limit import rate_limit
from zorvixe.modules.clients import service
from zorvixe.modules.clients.schemas import (
    ClientDetailsResponse,
    PaymentLinkStatusResponse,
    PaymentSubmitRequest,
    PaymentSubmitResponse,
)
from zorvixe.modules.links.exceptions import (
    AlreadyCompletedError,
    LinkServiceError,
    internal_error,
    to_http_exception,
)
from zorvixe.modules.links.schemas import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Requests per minute per client IP
RATE_LIMIT_DETAILS = (30, 60)
RATE_LIMIT_SUBMIT = (10, 60)


@router.get(
    "/client-details/{token}",
    response_model=ClientDetailsResponse,
    summary="Get Payment Details",
    description="""
Resolve a payment link to the client's project and payment details.

A link whose payment was already registered stays readable, so the holder can
see that the payment was submitted (`completed: true`).
""",
    responses={404: {"description": "Invalid or expired link", "model": ErrorResponse}},
)
@rate_limit(*RATE_LIMIT_DETAILS)
async def get_client_details(
    request: Request,
    token: str,
    db: AsyncSession = Depends(get_db),
) -> ClientDetailsResponse:
    try:
        return await service.get_client_details(db, token)
    except LinkServiceError as e:
        logger.info(f"Payment link lookup rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching client details: {e}")
        raise internal_error() from e


@router.post(
    "/payment/submit",
    response_model=PaymentSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Payment Registration",
    description="""
Register the client's payment through their link.

Client, project and amount are taken from the client record. `due_date`
defaults to one week from today. Each client can register exactly one
payment; any further attempt answers 409 `ALREADY_COMPLETED`.
""",
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        404: {"description": "Invalid or expired link", "model": ErrorResponse},
        409: {"description": "Payment already submitted", "model": ErrorResponse},
        503: {"description": "Storage unavailable", "model": ErrorResponse},
    },
)
@rate_limit(*RATE_LIMIT_SUBMIT)
async def submit_payment(
    request: Request,
    data: PaymentSubmitRequest,
    db: AsyncSession = Depends(get_db),
) -> PaymentSubmitResponse:
    try:
        response = await service.submit_payment(db, data)

        logger.info(f"Payment registration submitted: reference_id={response.reference_id}")

        return response

    except AlreadyCompletedError as e:
        logger.warning(f"Duplicate payment submission rejected: {e.message}")
        raise to_http_exception(e) from e
    except LinkServiceError as e:
        logger.info(f"Payment submission rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error submitting payment: {e}")
        raise internal_error() from e


@router.get(
    "/payment-link/{token}",
    response_model=PaymentLinkStatusResponse,
    summary="Get Bootstrap Payment Link Status",
    responses={404: {"description": "Payment link not found", "model": ErrorResponse}},
)
@rate_limit(*RATE_LIMIT_DETAILS)
async def get_payment_link_status(
    request: Request,
    token: str,
    db: AsyncSession = Depends(get_db),
) -> PaymentLinkStatusResponse:
    try:
        active = await service.get_payment_link_status(db, token)
        return PaymentLinkStatusResponse(active=active)
    except LinkServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching payment link status: {e}")
        raise internal_error() from e
