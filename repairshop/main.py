"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repairshop.api.router import api_router
from repairshop.config import configure_logging
from repairshop.db.engine import create_all, engine
from repairshop.errors import RepairShopError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_all()
    yield
    await engine.dispose()


app = FastAPI(
    title="E-Repair Shop",
    description="Back office for an appliance repair shop: jobs, quotes, invoices and customer notifications.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RepairShopError)
async def repairshop_error_handler(request: Request, exc: RepairShopError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Validation error", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(api_router)


@app.get("/health")
async def health():
    return {"ok": True}
