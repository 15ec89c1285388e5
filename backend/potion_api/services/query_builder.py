"""
Potion API — Catalog Query Builder
===================================

What:  Translates validated request parameters into MongoDB filters, sorts,
       projections and aggregation pipelines.
Why:   Keeps query construction pure (no I/O), so every query shape can be
       asserted in unit tests without a database.
How:   Each function returns plain dicts/lists that pymongo accepts as-is.

Security:
    Field paths inside pipelines come only from the GroupBy / MetricField
    enumerations below. A raw query-string value never becomes a `$field`
    reference.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING

from potion_api.services.validators import GroupBy, Metric, MetricField

Filter = Dict[str, Any]
Sort = List[Tuple[str, int]]
Pipeline = List[Dict[str, Any]]

# GroupBy → document attribute
_GROUP_KEYS: Dict[GroupBy, str] = {
    GroupBy.VENDOR: "vendor_id",
    GroupBy.CATEGORY: "categories",
}

# MetricField → document attribute
_METRIC_PATHS: Dict[MetricField, str] = {
    MetricField.SCORE: "score",
    MetricField.PRICE: "price",
    MetricField.RATINGS: "ratings",
}


@dataclass(frozen=True)
class FindQuery:
    """Arguments for a `collection.find()` call."""

    filter: Filter
    sort: Sort
    projection: Optional[Dict[str, int]] = None


def price_range_query(min_price: float, max_price: float) -> FindQuery:
    """Potions with min_price <= price <= max_price, cheapest first."""
    return FindQuery(
        filter={"price": {"$gte": min_price, "$lte": max_price}},
        sort=[("price", ASCENDING)],
    )


def vendor_query(vendor_id: str) -> FindQuery:
    """Potions of one vendor, by name, without the legacy `__v` version field."""
    return FindQuery(
        filter={"vendor_id": vendor_id},
        sort=[("name", ASCENDING)],
        projection={"__v": 0},
    )


def distinct_categories_pipeline() -> Pipeline:
    """Count of unique values across every potion's `categories` array."""
    return [
        {"$unwind": "$categories"},
        {"$group": {"_id": None, "categories": {"$addToSet": "$categories"}}},
        {"$project": {"_id": 0, "count": {"$size": "$categories"}}},
    ]


def strength_flavor_ratio_pipeline() -> Pipeline:
    """
    `ratings.strength / ratings.flavor` per potion.

    A flavor of 0 yields a ratio of 0 instead of a division error.
    """
    return [
        {
            "$project": {
                "ratio": {
                    "$cond": [
                        {"$eq": ["$ratings.flavor", 0]},
                        0,
                        {"$divide": ["$ratings.strength", "$ratings.flavor"]},
                    ]
                }
            }
        }
    ]


def _accumulator(metric: Metric, metric_field: Optional[MetricField]) -> Dict[str, Any]:
    if metric is Metric.COUNT:
        return {"$sum": 1}
    if metric_field is None:
        raise ValueError(f"metric '{metric.value}' needs a field")
    path = "$" + _METRIC_PATHS[metric_field]
    if metric is Metric.AVG:
        return {"$avg": path}
    return {"$sum": path}


def grouped_analytics_pipeline(
    group_by: GroupBy,
    metric: Metric,
    metric_field: Optional[MetricField] = None,
) -> Pipeline:
    """
    Group potions by vendor or by category and aggregate each group.

    Grouping by category unwinds the array first, so a potion listed under
    N categories counts toward N groups.
    """
    pipeline: Pipeline = []
    if group_by is GroupBy.CATEGORY:
        pipeline.append({"$unwind": "$categories"})
    pipeline.append(
        {
            "$group": {
                "_id": "$" + _GROUP_KEYS[group_by],
                "result": _accumulator(metric, metric_field),
            }
        }
    )
    pipeline.append({"$sort": {"_id": ASCENDING}})
    return pipeline
