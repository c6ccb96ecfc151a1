import logging

from fastapi import FastAPI

from tripsplit.api.v1.routes.expenses import router as expenses_router
from tripsplit.api.v1.routes.groups import router as groups_router
from tripsplit.api.v1.routes.settlements import router as settlements_router
from tripsplit.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title=settings.app_name,
    description="Shared trip expenses, member balances and settlement suggestions",
    version="1.0.0"
)

app.include_router(groups_router)
app.include_router(expenses_router)
app.include_router(settlements_router)


@app.get("/")
def read_root():
    return {"message": settings.app_name, "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
