"""
Potion API — Potion Service (Business Logic)
=============================================

What:  CRUD and analytics operations over the `potions` collection.
Why:   Encapsulates store access and error translation, independent of HTTP.
How:   Queries come from services/query_builder.py; this module runs them
       and turns documents into JSON-compatible dicts.
Who:   Called by the route handlers in routes/potions.py.

Error Handling Strategy:
    Store failures (PyMongoError) are wrapped in DatabaseError, which hides
    driver details from the client. NotFoundError propagates as-is.
    An id that is not a valid ObjectId cannot match any document and is
    reported as not found.

Design Decision:
    PotionService is stateless; the collection is passed into every call.
    Tests pass an AsyncMock collection and assert on the query it received.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from potion_api.exceptions import DatabaseError, NotFoundError, ValidationFailed
from potion_api.services import query_builder
from potion_api.services.validators import GroupBy, Metric, MetricField

logger = logging.getLogger(__name__)

POTION_NOT_FOUND = "Potion not found"
VENDOR_EMPTY = "Aucune potion trouvée pour ce vendeur"


def to_jsonable(value: Any) -> Any:
    """Recursively render ObjectId values as hex strings."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    return value


def _object_id(potion_id: str) -> ObjectId:
    try:
        return ObjectId(potion_id)
    except (InvalidId, TypeError):
        raise NotFoundError(POTION_NOT_FOUND, resource="potion", resource_id=potion_id)


async def _find(collection: AsyncCollection, query: query_builder.FindQuery) -> List[Dict[str, Any]]:
    cursor = collection.find(query.filter, query.projection, sort=query.sort)
    return [to_jsonable(doc) for doc in await cursor.to_list(length=None)]


class PotionService:
    """
    Business logic layer for potion operations.

    Every public method translates PyMongoError into DatabaseError through
    _store_error(); application exceptions are never wrapped.
    """

    @staticmethod
    def _store_error(operation: str, exc: PyMongoError) -> DatabaseError:
        logger.error("Database error in %s: %s", operation, str(exc))
        return DatabaseError(context={"operation": operation, "error_type": type(exc).__name__})

    # ── Reads ─────────────────────────────────────────────────────────────
    async def list_potions(self, collection: AsyncCollection) -> List[Dict[str, Any]]:
        try:
            return await _find(collection, query_builder.FindQuery(filter={}, sort=[]))
        except PyMongoError as e:
            raise self._store_error("list_potions", e)

    async def list_names(self, collection: AsyncCollection) -> List[str]:
        try:
            cursor = collection.find({}, {"name": 1, "_id": 0})
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._store_error("list_names", e)
        return [doc["name"] for doc in docs if "name" in doc]

    async def find_in_price_range(
        self, collection: AsyncCollection, min_price: float, max_price: float
    ) -> List[Dict[str, Any]]:
        """Potions priced within [min_price, max_price], cheapest first."""
        try:
            potions = await _find(collection, query_builder.price_range_query(min_price, max_price))
        except PyMongoError as e:
            raise self._store_error("find_in_price_range", e)
        logger.debug("Price range [%s, %s] matched %d potions", min_price, max_price, len(potions))
        return potions

    async def get_potion(self, collection: AsyncCollection, potion_id: str) -> Dict[str, Any]:
        oid = _object_id(potion_id)
        try:
            doc = await collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise self._store_error("get_potion", e)
        if doc is None:
            raise NotFoundError(POTION_NOT_FOUND, resource="potion", resource_id=potion_id)
        return to_jsonable(doc)

    async def list_by_vendor(self, collection: AsyncCollection, vendor_id: str) -> List[Dict[str, Any]]:
        """
        Potions of one vendor, sorted by name.

        An empty result raises NotFoundError: an unknown vendor and a vendor
        without potions are reported the same way.
        """
        try:
            potions = await _find(collection, query_builder.vendor_query(vendor_id))
        except PyMongoError as e:
            raise self._store_error("list_by_vendor", e)
        if not potions:
            raise NotFoundError(VENDOR_EMPTY, resource="vendor", resource_id=vendor_id)
        return potions

    # ── Writes ────────────────────────────────────────────────────────────
    async def create_potion(self, collection: AsyncCollection, data: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(data)
        try:
            result = await collection.insert_one(document)
        except PyMongoError as e:
            raise self._store_error("create_potion", e)
        document["_id"] = result.inserted_id
        logger.info("Potion created: %s", result.inserted_id)
        return to_jsonable(document)

    async def update_potion(
        self, collection: AsyncCollection, potion_id: str, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Apply `changes` with $set and return the updated document."""
        if not changes:
            raise ValidationFailed([{"field": "body", "message": "Aucun champ à mettre à jour"}])
        oid = _object_id(potion_id)
        try:
            doc = await collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise self._store_error("update_potion", e)
        if doc is None:
            raise NotFoundError(POTION_NOT_FOUND, resource="potion", resource_id=potion_id)
        logger.info("Potion updated: %s (%s)", potion_id, ", ".join(sorted(changes)))
        return to_jsonable(doc)

    async def delete_potion(self, collection: AsyncCollection, potion_id: str) -> None:
        oid = _object_id(potion_id)
        try:
            result = await collection.delete_one({"_id": oid})
        except PyMongoError as e:
            raise self._store_error("delete_potion", e)
        if result.deleted_count == 0:
            raise NotFoundError(POTION_NOT_FOUND, resource="potion", resource_id=potion_id)
        logger.info("Potion deleted: %s", potion_id)

    # ── Analytics ─────────────────────────────────────────────────────────
    async def _aggregate(
        self, collection: AsyncCollection, pipeline: query_builder.Pipeline, operation: str
    ) -> List[Dict[str, Any]]:
        try:
            cursor = await collection.aggregate(pipeline)
            return [to_jsonable(doc) for doc in await cursor.to_list(length=None)]
        except PyMongoError as e:
            raise self._store_error(operation, e)

    async def count_distinct_categories(self, collection: AsyncCollection) -> Dict[str, int]:
        """Number of unique categories; {"count": 0} on an empty catalog."""
        results = await self._aggregate(
            collection, query_builder.distinct_categories_pipeline(), "count_distinct_categories"
        )
        if not results:
            return {"count": 0}
        return {"count": int(results[0].get("count", 0))}

    async def strength_flavor_ratios(self, collection: AsyncCollection) -> List[Dict[str, Any]]:
        return await self._aggregate(
            collection, query_builder.strength_flavor_ratio_pipeline(), "strength_flavor_ratios"
        )

    async def grouped_analytics(
        self,
        collection: AsyncCollection,
        group_by: GroupBy,
        metric: Metric,
        metric_field: Optional[MetricField] = None,
    ) -> List[Dict[str, Any]]:
        pipeline = query_builder.grouped_analytics_pipeline(group_by, metric, metric_field)
        return await self._aggregate(collection, pipeline, "grouped_analytics")


# ── Singleton Instance ────────────────────────────────────────────────────
potion_service = PotionService()
