"""
Potion API — Potion Route Handlers
===================================

What:  Catalog CRUD, price-range and vendor lookups, and analytics.
How:   Query parameters are parsed by services/validators.py, queries are
       built and run by the potion service, documents come back as JSON.

Access (see security.py):
    GET routes      → public
    POST /potions   → session required
    PUT, DELETE     → named policies `update_potion` / `delete_potion`,
                      configured through POTION_UPDATE_ACCESS and
                      POTION_DELETE_ACCESS

Route order matters: fixed paths (/names, /price-range, /analytics/...,
/vendor/...) are declared before /{potion_id} so they are not captured by it.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pymongo.asynchronous.collection import AsyncCollection

from potion_api.database import get_potions_collection
from potion_api.exceptions import InvalidQueryParameter
from potion_api.schemas.auth import MessageResponse
from potion_api.schemas.common import ErrorResponse, ValidationErrorResponse
from potion_api.schemas.potion import (
    DistinctCategoriesResponse,
    GroupResult,
    PotionCreate,
    PotionOut,
    PotionUpdate,
    PriceRangeResponse,
    RatioItem,
)
from potion_api.security import authorize, require_session
from potion_api.services.potion_service import potion_service
from potion_api.services.token_service import SessionClaims
from potion_api.services.validators import parse_analytics_search, parse_price_bounds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/potions", tags=["Potions"])


@router.get("", response_model=List[PotionOut], summary="List every potion")
async def list_potions(
    potions: AsyncCollection = Depends(get_potions_collection),
) -> List[Dict[str, Any]]:
    return await potion_service.list_potions(potions)


@router.get("/names", response_model=List[str], summary="List potion names")
async def list_names(
    potions: AsyncCollection = Depends(get_potions_collection),
) -> List[str]:
    return await potion_service.list_names(potions)


@router.get(
    "/price-range",
    response_model=PriceRangeResponse,
    responses={400: {"description": "min or max is not a number", "model": ErrorResponse}},
    summary="Potions within a price range, cheapest first",
)
async def price_range(
    min_price: Optional[str] = Query(default=None, alias="min", description="Lowest price (inclusive)"),
    max_price: Optional[str] = Query(default=None, alias="max", description="Highest price (inclusive)"),
    potions: AsyncCollection = Depends(get_potions_collection),
) -> Dict[str, Any]:
    low, high = parse_price_bounds(min_price, max_price)
    return {"potions": await potion_service.find_in_price_range(potions, low, high)}


# ── Analytics ─────────────────────────────────────────────────────────────
@router.get(
    "/analytics/distinct-categories",
    response_model=DistinctCategoriesResponse,
    summary="Number of unique categories",
)
async def distinct_categories(
    potions: AsyncCollection = Depends(get_potions_collection),
) -> Dict[str, int]:
    return await potion_service.count_distinct_categories(potions)


@router.get(
    "/analytics/strength-flavor-ratio",
    response_model=List[RatioItem],
    summary="strength / flavor ratio of every potion",
)
async def strength_flavor_ratio(
    potions: AsyncCollection = Depends(get_potions_collection),
) -> List[Dict[str, Any]]:
    return await potion_service.strength_flavor_ratios(potions)


@router.get(
    "/analytics/search",
    response_model=List[GroupResult],
    responses={400: {"description": "Invalid groupBy, metric or field", "model": ErrorResponse}},
    summary="Aggregate a metric per vendor or per category",
)
async def analytics_search(
    group_by: Optional[str] = Query(default=None, alias="groupBy", description="vendor | category"),
    metric: Optional[str] = Query(default=None, description="avg | sum | count"),
    field: Optional[str] = Query(default=None, description="score | price | ratings"),
    potions: AsyncCollection = Depends(get_potions_collection),
) -> List[Dict[str, Any]]:
    parsed_group, parsed_metric, parsed_field = parse_analytics_search(group_by, metric, field)
    return await potion_service.grouped_analytics(potions, parsed_group, parsed_metric, parsed_field)


# ── Vendor ────────────────────────────────────────────────────────────────
@router.get("/vendor/", include_in_schema=False)
async def vendor_missing() -> None:
    raise InvalidQueryParameter("ID du vendeur requis", parameter="vendor_id")


@router.get(
    "/vendor/{vendor_id}",
    response_model=List[PotionOut],
    responses={
        400: {"description": "Missing vendor id", "model": ErrorResponse},
        404: {"description": "No potion for this vendor", "model": ErrorResponse},
    },
    summary="Potions of one vendor, by name",
)
async def list_by_vendor(
    vendor_id: str,
    potions: AsyncCollection = Depends(get_potions_collection),
) -> List[Dict[str, Any]]:
    if not vendor_id.strip():
        raise InvalidQueryParameter("ID du vendeur requis", parameter="vendor_id")
    return await potion_service.list_by_vendor(potions, vendor_id)


# ── Single potion ─────────────────────────────────────────────────────────
@router.post(
    "",
    status_code=201,
    response_model=PotionOut,
    responses={
        400: {"description": "Invalid potion", "model": ValidationErrorResponse},
        401: {"description": "Missing, expired or invalid session", "model": ErrorResponse},
    },
    summary="Create a potion (session required)",
)
async def create_potion(
    payload: PotionCreate,
    claims: SessionClaims = Depends(require_session),
    potions: AsyncCollection = Depends(get_potions_collection),
) -> Dict[str, Any]:
    created = await potion_service.create_potion(potions, payload.model_dump(exclude_none=True))
    logger.info("Potion %s created by user %s", created["_id"], claims.id)
    return created


@router.get(
    "/{potion_id}",
    response_model=PotionOut,
    responses={404: {"description": "Potion not found", "model": ErrorResponse}},
    summary="Get one potion",
)
async def get_potion(
    potion_id: str,
    potions: AsyncCollection = Depends(get_potions_collection),
) -> Dict[str, Any]:
    return await potion_service.get_potion(potions, potion_id)


@router.put(
    "/{potion_id}",
    response_model=PotionOut,
    dependencies=[Depends(authorize("update_potion"))],
    responses={
        400: {"description": "Invalid changes", "model": ValidationErrorResponse},
        404: {"description": "Potion not found", "model": ErrorResponse},
    },
    summary="Update a potion",
)
async def update_potion(
    potion_id: str,
    payload: PotionUpdate,
    potions: AsyncCollection = Depends(get_potions_collection),
) -> Dict[str, Any]:
    # Null values are dropped, never written
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    return await potion_service.update_potion(potions, potion_id, changes)


@router.delete(
    "/{potion_id}",
    response_model=MessageResponse,
    dependencies=[Depends(authorize("delete_potion"))],
    responses={404: {"description": "Potion not found", "model": ErrorResponse}},
    summary="Delete a potion",
)
async def delete_potion(
    potion_id: str,
    potions: AsyncCollection = Depends(get_potions_collection),
) -> MessageResponse:
    await potion_service.delete_potion(potions, potion_id)
    return MessageResponse(message="Potion deleted successfully")
