"""
Candidates Module

Handles the candidate document-onboarding workflow:
1. Administrators create candidates and issue 5-hour onboarding links
2. The link holder uploads their certificates as one PDF, once
3. Administrators download the PDF and review the candidate

API Endpoints:
- GET /candidate-details/{token}, POST /candidate/upload/{token}
- /admin/candidates, /admin/candidate-links, /admin/candidate-download (see admin_router)
"""

from .router import router
from .service import ONBOARDING_WORKFLOW

__all__ = ["router", "ONBOARDING_WORKFLOW"]
