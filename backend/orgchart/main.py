from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orgchart.api.v1.router import api_router
from orgchart.core.config import settings
from orgchart.services.employee_service import employee_service
from orgchart.services.notification_service import notification_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await employee_service.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize EmployeeService — continuing without DB")
    try:
        await notification_service.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize NotificationService — continuing without notifications")
    yield
    await employee_service.close()
    await notification_service.close()


app = FastAPI(
    title="Org Chart API",
    description="Hierarchy changes, commission tiers and staged commits",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Org Chart API"}
