import math
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100

# BSON integers are signed 64-bit
MAX_INT64 = 2**63 - 1
MAX_PAGE = MAX_INT64 // MAX_PAGE_SIZE

SEARCH_FIELDS = ("title", "genre", "description")


@dataclass(frozen=True)
class TextSearch:
    """Case-insensitive substring match on any of `fields`."""
    text: str
    fields: tuple[str, ...] = SEARCH_FIELDS

    def to_mongo(self) -> dict:
        pattern = re.escape(self.text)
        return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in self.fields]}


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def to_mongo(self) -> dict:
        return {self.field: self.value}


@dataclass(frozen=True)
class NotEquals:
    """Also matches documents where the field is missing."""
    field: str
    value: Any

    def to_mongo(self) -> dict:
        return {self.field: {"$ne": self.value}}


@dataclass(frozen=True)
class Range:
    """Inclusive bounds, either side optional."""
    field: str
    gte: float | None = None
    lte: float | None = None

    def to_mongo(self) -> dict:
        bounds = {}
        if self.gte is not None:
            bounds["$gte"] = self.gte
        if self.lte is not None:
            bounds["$lte"] = self.lte
        return {self.field: bounds}


@dataclass(frozen=True)
class Predicate:
    conditions: tuple = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not self.conditions

    def to_match(self) -> dict | None:
        """
        Fold the conditions into one conjunctive match document.
        An empty predicate returns None so callers can skip the stage instead of
        sending an empty $and.
        """
        if self.is_empty():
            return None
        return {"$and": [c.to_mongo() for c in self.conditions]}


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size)


def parse_number(value) -> float | int | None:
    """
    Parse a loosely typed number. Returns None for anything that is not a finite
    number; integral values come back as int.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(number):
        return None
    if number.is_integer() and abs(number) <= MAX_INT64:
        return int(number)
    return number


def parse_page(value) -> int:
    number = parse_number(value)
    if number is None:
        return DEFAULT_PAGE
    page = int(number)
    if page < 1:
        return DEFAULT_PAGE
    return min(page, MAX_PAGE)


def parse_page_size(value) -> int:
    number = parse_number(value)
    if number is None:
        return DEFAULT_PAGE_SIZE
    return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, int(number)))


def parse_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def build(raw_params: Mapping[str, Any]) -> tuple[Predicate, Pagination]:
    """
    Translate raw query parameters into (predicate, pagination).

    Never raises: malformed filter values are treated as if they were not sent.
    """
    conditions = []

    search = raw_params.get("search")
    if search is not None and str(search).strip():
        conditions.append(TextSearch(str(search).strip()))

    featured = raw_params.get("featured")
    if featured is not None:
        # normalized output shows a missing flag as false, so false means "not true"
        if parse_flag(featured):
            conditions.append(Equals("featured", True))
        else:
            conditions.append(NotEquals("featured", True))

    min_rating = parse_number(raw_params.get("minRating"))
    max_rating = parse_number(raw_params.get("maxRating"))
    if min_rating is not None or max_rating is not None:
        conditions.append(Range("rating", gte=min_rating, lte=max_rating))

    year = parse_number(raw_params.get("year"))
    if year is not None:
        conditions.append(Equals("year", year))

    pagination = Pagination(
        page=parse_page(raw_params.get("page")),
        page_size=parse_page_size(raw_params.get("pageSize")),
    )

    return Predicate(tuple(conditions)), pagination
