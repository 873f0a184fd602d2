from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from taxengine.config import get_settings
from taxengine.logger import init_logging
from taxengine.api import tax
from taxengine.core.regime import available_tax_years, get_regime


settings = get_settings()
init_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail at startup, not on the first request, if the default year has no rules
    get_regime(settings.DEFAULT_TAX_YEAR)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)

app.include_router(tax.router, prefix="/api/v1/tax", tags=["tax"])


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "tax_years": available_tax_years(),
    }
