"""
Potion API — Query Builder Unit Tests
======================================

What:  Asserts the exact filters and pipelines handed to MongoDB.
How:   The grouping and ratio pipelines are also run against a handful of
       documents with a tiny evaluator that supports only the stages and
       operators these pipelines use.

What we test:
    ✅ Price range is inclusive on both ends and sorted by price
    ✅ Vendor listing hides `__v` and sorts by name
    ✅ A flavor of 0 gives a ratio of 0
    ✅ Grouping by category unwinds: one potion counts toward each of its categories
    ✅ Field references only come from the enumerations
"""

from collections import OrderedDict
from typing import Any, Dict, List

from pymongo import ASCENDING

from potion_api.services import query_builder
from potion_api.services.validators import GroupBy, Metric, MetricField


# ── Minimal pipeline evaluator ────────────────────────────────────────────
def _path(doc: Dict[str, Any], ref: str) -> Any:
    value: Any = doc
    for part in ref.lstrip("$").split("."):
        value = value.get(part) if isinstance(value, dict) else None
    return value


def _expr(doc: Dict[str, Any], expr: Any) -> Any:
    if isinstance(expr, str) and expr.startswith("$"):
        return _path(doc, expr)
    if isinstance(expr, dict):
        (op, args), = expr.items()
        if op == "$eq":
            return _expr(doc, args[0]) == _expr(doc, args[1])
        if op == "$cond":
            return _expr(doc, args[1]) if _expr(doc, args[0]) else _expr(doc, args[2])
        if op == "$divide":
            return _expr(doc, args[0]) / _expr(doc, args[1])
    return expr


def run(pipeline: List[Dict[str, Any]], docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for stage in pipeline:
        (name, spec), = stage.items()
        if name == "$unwind":
            key = spec.lstrip("$")
            docs = [dict(doc, **{key: item}) for doc in docs for item in doc.get(key, [])]
        elif name == "$project":
            docs = [
                {"_id": doc["_id"], **{k: _expr(doc, v) for k, v in spec.items()}}
                for doc in docs
            ]
        elif name == "$group":
            groups: "OrderedDict[Any, List[Dict[str, Any]]]" = OrderedDict()
            for doc in docs:
                groups.setdefault(_expr(doc, spec["_id"]), []).append(doc)
            (op, arg), = spec["result"].items()
            out = []
            for key, members in groups.items():
                values = [_expr(m, arg) for m in members]
                result = sum(values) if op == "$sum" else sum(values) / len(values)
                out.append({"_id": key, "result": result})
            docs = out
        elif name == "$sort":
            docs = sorted(docs, key=lambda d: d["_id"])
    return docs


POTIONS = [
    {"_id": 1, "vendor_id": "v1", "price": 10, "categories": ["healing", "fire"],
     "ratings": {"strength": 10, "flavor": 0}},
    {"_id": 2, "vendor_id": "v1", "price": 30, "categories": ["healing", "ice"],
     "ratings": {"strength": 9, "flavor": 3}},
]


class TestFindQueries:
    def test_price_range_is_inclusive_and_sorted(self):
        query = query_builder.price_range_query(10, 50)

        assert query.filter == {"price": {"$gte": 10, "$lte": 50}}
        assert query.sort == [("price", ASCENDING)]
        assert query.projection is None

    def test_vendor_query(self):
        query = query_builder.vendor_query("v1")

        assert query.filter == {"vendor_id": "v1"}
        assert query.projection == {"__v": 0}
        assert query.sort == [("name", ASCENDING)]


class TestDistinctCategories:
    def test_pipeline_shape(self):
        pipeline = query_builder.distinct_categories_pipeline()

        assert pipeline[0] == {"$unwind": "$categories"}
        assert pipeline[1]["$group"]["categories"] == {"$addToSet": "$categories"}
        assert pipeline[2]["$project"]["count"] == {"$size": "$categories"}


class TestStrengthFlavorRatio:
    def test_zero_flavor_yields_zero(self):
        results = run(query_builder.strength_flavor_ratio_pipeline(), POTIONS)

        assert results == [{"_id": 1, "ratio": 0}, {"_id": 2, "ratio": 3.0}]


class TestGroupedAnalytics:
    def test_count_by_category_unwinds_categories(self):
        pipeline = query_builder.grouped_analytics_pipeline(
            GroupBy.CATEGORY, Metric.COUNT, MetricField.PRICE
        )

        assert pipeline[0] == {"$unwind": "$categories"}
        assert run(pipeline, POTIONS) == [
            {"_id": "fire", "result": 1},
            {"_id": "healing", "result": 2},
            {"_id": "ice", "result": 1},
        ]

    def test_vendor_grouping_does_not_unwind(self):
        pipeline = query_builder.grouped_analytics_pipeline(GroupBy.VENDOR, Metric.SUM, MetricField.PRICE)

        assert all("$unwind" not in stage for stage in pipeline)
        assert pipeline[0]["$group"] == {"_id": "$vendor_id", "result": {"$sum": "$price"}}
        assert run(pipeline, POTIONS) == [{"_id": "v1", "result": 40}]

    def test_average(self):
        pipeline = query_builder.grouped_analytics_pipeline(GroupBy.VENDOR, Metric.AVG, MetricField.PRICE)

        assert pipeline[0]["$group"]["result"] == {"$avg": "$price"}
        assert run(pipeline, POTIONS) == [{"_id": "v1", "result": 20}]

    def test_count_ignores_field(self):
        pipeline = query_builder.grouped_analytics_pipeline(GroupBy.VENDOR, Metric.COUNT)

        assert pipeline[0]["$group"]["result"] == {"$sum": 1}

    def test_field_paths_come_from_enumeration(self):
        for metric_field in MetricField:
            pipeline = query_builder.grouped_analytics_pipeline(GroupBy.VENDOR, Metric.SUM, metric_field)
            assert pipeline[0]["$group"]["result"] == {"$sum": "$" + metric_field.value}

    def test_results_sorted_by_group(self):
        pipeline = query_builder.grouped_analytics_pipeline(GroupBy.CATEGORY, Metric.COUNT)

        assert pipeline[-1] == {"$sort": {"_id": ASCENDING}}
