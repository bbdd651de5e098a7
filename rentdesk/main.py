import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rentdesk.config import settings
from rentdesk.customers.router import router as customers_router
from rentdesk.database import engine
from rentdesk.expenses.router import router as expenses_router
from rentdesk.middleware import CorrelationIDMiddleware
from rentdesk.reports.router import router as reports_router
from rentdesk.reservations.router import router as reservations_router
from rentdesk.vehicles.router import router as vehicles_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s %s starting (%s)", settings.app_name, settings.app_version, settings.environment)
    yield
    await engine.dispose()
    logger.info("%s stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Middleware
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(vehicles_router, prefix="/api/vehicles", tags=["Vehicles"])
app.include_router(customers_router, prefix="/api/customers", tags=["Customers"])
app.include_router(reservations_router, prefix="/api/reservations", tags=["Reservations"])
app.include_router(expenses_router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "version": settings.app_version}
