"""
Clients Module

Handles the client payment-registration workflow:
1. Administrators create clients and issue 30-day payment links
2. The link holder views the payment details and registers the payment once
3. Administrators review payment registrations

API Endpoints:
- GET /client-details/{token}, POST /payment/submit, GET /payment-link/{token}
- /admin/clients, /admin/client-links, /admin/payments (see admin_router)
"""

from .router import router
from .service import PAYMENT_WORKFLOW

__all__ = ["router", "PAYMENT_WORKFLOW"]
