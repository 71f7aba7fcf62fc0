# awesome_discount/main.py
import time

from fastapi import FastAPI, Request

from awesome_discount.api.discounts import router as discounts_router
from awesome_discount.core.logging_config import logger, setup_logging
from awesome_discount.core.settings import get_settings

settings = get_settings()

setup_logging(settings.log_level, json_logs=settings.log_json)

# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="awesome-discount", version="0.1.0")

logger.info("startup", service="awesome-discount", plan=settings.discount_plan_path)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 2)
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


app.include_router(discounts_router)
