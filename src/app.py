"""Order Ledger FastAPI application.

Web server for checkout sessions, completion webhooks, status reads and
administrative order updates. Each request runs inside the ledger's
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay:
#   - "test"       → memory providers
#   - "production" → PostgreSQL
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledger.domain import ledger

ledger.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Order Ledger API",
    description="Checkout sessions, completion webhooks and order status",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ledger.api.routes import (  # noqa: E402
    bind_domain_context,
    checkout_router,
    order_router,
    register_error_handlers,
)

app.include_router(checkout_router)
app.include_router(order_router)
register_error_handlers(app)
bind_domain_context(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": ledger.name})
