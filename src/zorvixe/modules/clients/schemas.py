"""
Clients Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from zorvixe.core.validators import HttpUrlString, PersonName, Phone
from zorvixe.modules.clients.models import ClientStatus, PaymentStatus
from zorvixe.modules.links.schemas import LinkInfo


# ============================================
# Clients
# ============================================


class ClientCreate(BaseModel):
    """Request body for POST /admin/clients."""

    name: PersonName
    email: EmailStr
    phone: Phone
    company: str | None = Field(None, max_length=200)
    project_name: str = Field(..., min_length=1, max_length=200)
    project_description: str | None = Field(None, max_length=5000)
    payment_amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str
    company: str | None
    project_name: str
    project_description: str | None
    project_id: str
    zorvixe_id: str
    payment_amount: Decimal
    status: ClientStatus
    created_at: datetime
    updated_at: datetime


class ClientCreateResponse(BaseModel):
    success: bool = True
    client: ClientResponse


class ClientListItem(ClientResponse):
    """A client with its currently usable link and payment state."""

    current_link: LinkInfo | None = None
    payment_completed: bool = False
    reference_id: str | None = None


class ClientListResponse(BaseModel):
    success: bool = True
    clients: list[ClientListItem]


# ============================================
# Payment Links
# ============================================


class ClientLinkCreate(BaseModel):
    """Request body for POST /admin/client-links."""

    client_id: UUID
    notify: bool = False


class ClientLinkResponse(BaseModel):
    success: bool = True
    link: str
    token: str
    expires_at: datetime
    client: ClientResponse


class ClientPaymentView(BaseModel):
    """What the holder of a payment link sees before submitting."""

    client_id: UUID
    client_name: str
    company: str | None
    project_name: str
    project_id: str
    zorvixe_id: str
    project_description: str | None
    amount: Decimal
    due_date: date


class PaymentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference_id: str
    status: PaymentStatus
    created_at: datetime


class ClientDetailsResponse(BaseModel):
    """Response for GET /client-details/{token}."""

    success: bool = True
    client: ClientPaymentView
    link_id: UUID
    expires_at: datetime
    completed: bool
    payment: PaymentSummary | None = None


# ============================================
# Payment Registrations
# ============================================


class PaymentSubmitRequest(BaseModel):
    """Request body for POST /payment/submit."""

    token: str = Field(..., min_length=1, max_length=100)
    receipt_url: HttpUrlString
    due_date: date | None = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject_id: UUID = Field(..., serialization_alias="client_id")
    client_name: str
    project_name: str
    project_id: str
    zorvixe_id: str
    project_description: str | None
    amount: Decimal
    due_date: date
    receipt_url: str
    reference_id: str
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime


class PaymentSubmitResponse(BaseModel):
    success: bool = True
    message: str = "Payment registration submitted successfully"
    reference_id: str
    payment: PaymentResponse


class PaymentAdminView(PaymentResponse):
    """A payment registration with the client's current contact details."""

    client_email: str | None = None
    client_phone: str | None = None
    company: str | None = None


class Pagination(BaseModel):
    total: int
    total_pages: int
    current_page: int
    limit: int


class PaymentListResponse(BaseModel):
    success: bool = True
    payments: list[PaymentAdminView]
    pagination: Pagination


class PaymentSearchResponse(BaseModel):
    success: bool = True
    payments: list[PaymentAdminView]


class PaymentDetailResponse(BaseModel):
    success: bool = True
    payment: PaymentAdminView


class PaymentStatusUpdate(BaseModel):
    """Request body for PUT /admin/payments/{id}/status."""

    status: PaymentStatus


class PaymentStatusResponse(BaseModel):
    success: bool = True
    message: str = "Payment status updated"
    payment: PaymentResponse


class PaymentLinkStatusResponse(BaseModel):
    success: bool = True
    active: bool
