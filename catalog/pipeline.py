from catalog.filters import Pagination, Predicate

# year first, _id breaks ties so pages stay stable across calls
SORT_ORDER = {"year": -1, "_id": -1}

NUMERIC_TYPES = ["double", "int", "long", "decimal"]


def _as_double(field: str) -> dict:
    """Stored value as a double, or null for booleans, non-numeric strings and other types."""
    raw = f"${field}"
    return {
        "$convert": {
            "input": {
                "$cond": [
                    {"$eq": [{"$type": raw}, "string"]},
                    {"$trim": {"input": raw}},
                    {"$cond": [{"$in": [{"$type": raw}, NUMERIC_TYPES]}, raw, None]},
                ]
            },
            "to": "double",
            "onError": None,
            "onNull": None,
        }
    }


# same rules as Movie.normalize_year / normalize_rating, applied in the store so
# that $match and $sort see the values the API returns
NORMALIZED_FIELDS = {
    "year": {
        "$let": {
            "vars": {"n": _as_double("year")},
            "in": {
                "$cond": [
                    {"$and": [{"$gt": ["$$n", 0]}, {"$eq": ["$$n", {"$trunc": "$$n"}]}]},
                    "$$n",
                    None,
                ]
            },
        }
    },
    "rating": {
        "$let": {
            "vars": {"n": _as_double("rating")},
            "in": {"$cond": [{"$gte": ["$$n", 0]}, "$$n", 0]},
        }
    },
}


def build_pipeline(predicate: Predicate, pagination: Pagination) -> list[dict]:
    """
    normalize(year, rating) -> filter -> sort -> facet(page slice, total count)

    The single output document looks like {"items": [...], "total": [{"count": n}]}.
    "total" is an empty list when nothing matched.
    """
    pipeline: list[dict] = [{"$addFields": dict(NORMALIZED_FIELDS)}]

    match = predicate.to_match()
    if match is not None:
        pipeline.append({"$match": match})

    pipeline.append({"$sort": dict(SORT_ORDER)})
    pipeline.append({
        "$facet": {
            "items": [
                {"$skip": pagination.skip},
                {"$limit": pagination.limit},
            ],
            "total": [
                {"$count": "count"},
            ],
        }
    })
    return pipeline


def unpack_facet(result: dict | None) -> tuple[list[dict], int]:
    if not result:
        return [], 0

    items = result.get("items") or []
    counts = result.get("total") or []
    total = counts[0].get("count", 0) if counts else 0
    return items, total
