import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from points_ledger import config
from points_ledger.db import engine, Base
from points_ledger.errors import LedgerError

from points_ledger.models.account import Account
from points_ledger.models.purchase import Purchase
from points_ledger.models.purchase_item import PurchaseItem
from points_ledger.models.emission_event import EmissionEvent
from points_ledger.models.club_subscription import ClubSubscription

from points_ledger.routes.accounts import router as accounts_router
from points_ledger.routes.purchases import router as purchases_router
from points_ledger.routes.emissions import router as emissions_router
from points_ledger.routes.clubs import router as clubs_router, cron_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Points Ledger")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "https://localhost:3000",
        "http://127.0.0.1:3000",
        "https://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(accounts_router)
app.include_router(purchases_router)
app.include_router(emissions_router)
app.include_router(clubs_router)
app.include_router(cron_router)


@app.get("/")
def read_root():
    return {"message": "Points Ledger is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001)
