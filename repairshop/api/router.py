"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from repairshop.api.auth import router as auth_router
from repairshop.api.customers import router as customers_router
from repairshop.api.jobs import router as jobs_router
from repairshop.api.quotes import router as quotes_router
from repairshop.api.invoices import router as invoices_router
from repairshop.api.settings import router as settings_router
from repairshop.api.users import router as users_router
from repairshop.api.public import router as public_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(customers_router)
api_router.include_router(jobs_router)
api_router.include_router(quotes_router)
api_router.include_router(invoices_router)
api_router.include_router(settings_router)
api_router.include_router(users_router)
api_router.include_router(public_router)
