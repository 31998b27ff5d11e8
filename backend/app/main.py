"""
Pharmacy Franchise Backend: orders, stock and billing across branches.

ARCHITECTURE:
- FastAPI Backend: HTTP routing, auth, franchise scoping
- Services: order workflow, stock ledger, billing (one transaction per operation)
- SQL DB: Source of truth for all state (SQLite by default)

STOCK MODEL:
- Inventory rows per (franchise, product) are authoritative
- An order, its items and every stock decrement commit together or not at all
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from app.api.routes import auth, customers, dashboard, franchises, inventory, orders, products
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.rate_limiter import RateLimitMiddleware
from app.db.init_db import init_db

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    1. Initialize database tables
    2. Create the first admin user on an empty database
    """
    try:
        print("[*] Initializing database...")
        init_db()
        print("[OK] Database initialized")
    except Exception as e:
        print(f"[ERROR] Startup error: {e}")
        import traceback
        traceback.print_exc()

    yield


app = FastAPI(
    title="Pharmacy Franchise API",
    description="Franchise pharmacy back office: catalog, customers, orders, stock and bills.",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# SECURITY: Trust only configured hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "Idempotency-Key",
    ],
    max_age=600,  # Cache preflight for 10 minutes
    expose_headers=["Content-Type", "Content-Disposition"],
)

# SECURITY: Rate limiting to prevent brute force and DoS attacks
app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.SECURE_COOKIES:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(franchises.router, prefix="/api/franchises", tags=["franchises"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])


@app.get("/health")
def health():
    return {"status": "ok"}
