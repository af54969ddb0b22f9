from fastapi import APIRouter

from zorvixe.modules.candidates import router as candidates_router
from zorvixe.modules.candidates.admin_router import router as admin_candidates_router
from zorvixe.modules.clients import router as clients_router
from zorvixe.modules.clients.admin_router import router as admin_clients_router
from zorvixe.modules.contacts import router as contacts_router

api_router = APIRouter()

api_router.include_router(contacts_router, tags=["Contacts"])

api_router.include_router(clients_router, tags=["Client Payments"])

api_router.include_router(candidates_router, tags=["Candidate Onboarding"])

api_router.include_router(
    admin_clients_router,
    prefix="/admin",
    tags=["Admin - Clients & Payments"],
)

api_router.include_router(
    admin_candidates_router,
    prefix="/admin",
    tags=["Admin - Candidates"],
)
