from __future__ import annotations

import time
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from ..adapters.function_run import run_model
from ..calculators.volume_tiers import describe_volume_tiers
from ..core.logging_config import logger
from ..core.settings import Settings, get_settings
from ..domain.models import DEFAULT_VOLUME_TIERS, ConfigurationError, DiscountConfiguration
from ..engine.evaluator import DiscountEvaluator
from ..schemas.discount_config_v1 import (
    TagEditV1,
    configuration_to_dict,
    dump_configuration,
    load_configuration,
)
from ..schemas.evaluate_v1 import EvaluateInputV1, EvaluateOutputV1
from ..schemas.function_io_v1 import RunInputV1, RunResultV1
from ..services.config_editor import (
    add_tag,
    available_tag_options,
    remove_tag,
    set_tag_percentage,
    total_tag_discount,
)
from ..services.customer_tags import (
    CustomerTagClient,
    CustomerTagLookupError,
    ShopifyCredentials,
)

# ----------------------------
# Router
# ----------------------------
router = APIRouter(prefix="/api/discounts", tags=["discounts"])


# ----------------------------
# Dependencies
# ----------------------------
@lru_cache(maxsize=4)
def _build_evaluator(plan_path: str, cap_override: Optional[float]) -> DiscountEvaluator:
    evaluator = DiscountEvaluator.from_yaml_file(plan_path)
    if cap_override is not None:
        evaluator = DiscountEvaluator(evaluator.plan.with_cap(Decimal(str(cap_override))))
    return evaluator


def get_evaluator(settings: Settings = Depends(get_settings)) -> DiscountEvaluator:
    return _build_evaluator(settings.discount_plan_path, settings.max_combined_discount)


def get_tag_client(settings: Settings = Depends(get_settings)) -> Optional[CustomerTagClient]:
    if not settings.shopify_subdomain or not settings.shopify_access_token:
        return None
    credentials = ShopifyCredentials(
        subdomain=settings.shopify_subdomain,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
    )
    return CustomerTagClient(credentials, timeout=settings.shopify_timeout_seconds)


def _require_tag_client(client: Optional[CustomerTagClient]) -> CustomerTagClient:
    if client is None:
        raise HTTPException(status_code=503, detail="Customer tag lookup is not configured.")
    return client


# ----------------------------
# Helpers
# ----------------------------
def _log_obs(*, request: Request, endpoint: str, duration_ms: float, event: str, **fields: Any) -> None:
    request_id = request.headers.get("X-Request-ID", "unknown")
    logger.bind(request_id=request_id, endpoint=endpoint, duration_ms=duration_ms, **fields).info(event)


def _load_or_422(raw: Any):
    try:
        return load_configuration(raw)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _config_response(configuration: DiscountConfiguration, settings: Settings) -> Dict[str, Any]:
    return {
        "namespace": settings.metafield_namespace,
        "key": settings.metafield_key,
        "configuration": configuration_to_dict(configuration),
        "value": dump_configuration(configuration),
        "totalTagDiscount": float(total_tag_discount(configuration)),
    }


# ----------------------------
# 1) Platform function run
# ----------------------------
@router.post("/run", response_model=RunResultV1, response_model_exclude_none=True)
def run_function(
    payload: RunInputV1,
    request: Request,
    evaluator: DiscountEvaluator = Depends(get_evaluator),
) -> RunResultV1:
    t0 = time.time()
    try:
        result = run_model(payload, evaluator)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    _log_obs(
        request=request,
        endpoint="/api/discounts/run",
        duration_ms=round((time.time() - t0) * 1000, 2),
        event="discount_function_run",
        line_count=len(payload.cart.lines),
        discounts=len(result.discounts),
    )
    return result


# ----------------------------
# 2) Direct evaluate
# ----------------------------
@router.post("/evaluate", response_model=EvaluateOutputV1)
def evaluate_discounts(
    payload: EvaluateInputV1,
    request: Request,
    evaluator: DiscountEvaluator = Depends(get_evaluator),
) -> EvaluateOutputV1:
    t0 = time.time()
    configuration = _load_or_422(payload.configuration)

    result = evaluator.evaluate(payload.cart.to_domain(), payload.customer_tags, configuration)

    _log_obs(
        request=request,
        endpoint="/api/discounts/evaluate",
        duration_ms=round((time.time() - t0) * 1000, 2),
        event="discount_evaluate",
        line_count=len(payload.cart.lines),
        discounts=len(result),
    )
    return EvaluateOutputV1.from_result(result)


# ----------------------------
# 3) Configuration (settings screen)
# ----------------------------
@router.post("/config/validate")
def validate_configuration(
    raw: Any = Body(None),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return _config_response(_load_or_422(raw), settings)


@router.post("/config/tags")
def edit_tags(
    payload: TagEditV1,
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    configuration = _load_or_422(payload.configuration)
    try:
        if payload.action == "add":
            configuration = add_tag(configuration, payload.tag)
        elif payload.action == "remove":
            configuration = remove_tag(configuration, payload.tag)
        else:
            if payload.percentage is None:
                raise ConfigurationError("percentage is required for set_percentage")
            configuration = set_tag_percentage(configuration, payload.tag, payload.percentage)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _config_response(configuration, settings)


@router.post("/config/tag-options")
def tag_options(
    raw: Any = Body(None),
    client: Optional[CustomerTagClient] = Depends(get_tag_client),
) -> Dict[str, Any]:
    configuration = _load_or_422(raw)
    client = _require_tag_client(client)
    try:
        store_tags = client.list_store_tags()
    except CustomerTagLookupError as e:
        logger.warning("store_tag_lookup_failed", error=str(e))
        raise HTTPException(status_code=502, detail="Failed to load customer tags")
    return {"tags": list(available_tag_options(store_tags, configuration))}


@router.get("/volume-tiers")
def volume_tiers() -> Dict[str, Any]:
    return {
        "tiers": [
            {"minimumItemCount": t.minimum_item_count, "percentage": float(t.percentage)}
            for t in DEFAULT_VOLUME_TIERS
        ],
        "lines": list(describe_volume_tiers(DEFAULT_VOLUME_TIERS)),
    }


# ----------------------------
# 4) Customer tags
# ----------------------------
@router.get("/customers/{customer_id}/tags")
def customer_tags(
    customer_id: str,
    client: Optional[CustomerTagClient] = Depends(get_tag_client),
) -> Dict[str, Any]:
    client = _require_tag_client(client)
    try:
        tags = client.fetch_customer_tags(customer_id)
    except CustomerTagLookupError as e:
        logger.warning("customer_tag_lookup_failed", customer_id=customer_id, error=str(e))
        raise HTTPException(status_code=502, detail="Customer tag lookup failed")
    return {"customerId": customer_id, "tags": list(tags)}

