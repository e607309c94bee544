"""
Translates list-endpoint query strings into store-level directives.

Every filter fragment (equality, ranges, search, cross-entity constraints added
later by the caller) lands in one conjunctive clause list, so no fragment can
overwrite another.
"""
import datetime
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from brokerage_service.app.config import settings
from brokerage_service.app.service.exceptions import EntityValidationError

logger = logging.getLogger(__name__)

CONTROL_KEYS = ("page", "sort", "limit", "fields", "search")
DEFAULT_SORT = "-createdAt"
# Excluded from list payloads unless explicitly requested through "fields"
INTERNAL_FIELDS = ("version",)


def to_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class QueryConfig:
    """Per-entity description of what a list query string may contain."""
    search_fields: Tuple[str, ...] = ()
    # "<prefix>From" / "<prefix>To" -> stored datetime field
    date_ranges: Mapping[str, str] = field(default_factory=lambda: {"created": "createdAt", "updated": "updatedAt"})
    # "min<Suffix>" / "max<Suffix>" -> stored numeric field
    numeric_ranges: Mapping[str, str] = field(default_factory=dict)
    # keys the entity service resolves itself (cross-entity lookups, path-specific filters)
    derived_keys: Tuple[str, ...] = ()
    # sort keys evaluated in memory after enrichment
    virtual_sort_keys: Tuple[str, ...] = ()
    coercions: Mapping[str, Callable[[str], Any]] = field(default_factory=dict)
    hidden_fields: Tuple[str, ...] = ()

    def excluded_keys(self) -> set:
        keys = set(CONTROL_KEYS) | set(self.derived_keys)
        for prefix in self.date_ranges:
            keys.update({f"{prefix}From", f"{prefix}To"})
        for suffix in self.numeric_ranges:
            keys.update({f"min{suffix}", f"max{suffix}"})
        return keys


@dataclass
class QuerySpec:
    clauses: List[Dict[str, Any]] = field(default_factory=list)
    sort: List[Tuple[str, int]] = field(default_factory=list)
    virtual_sort: List[Tuple[str, int]] = field(default_factory=list)
    projection: Optional[Dict[str, int]] = None
    page: int = 1
    limit: int = 10
    derived: Dict[str, str] = field(default_factory=dict)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def filter(self) -> Dict[str, Any]:
        if not self.clauses:
            return {}
        if len(self.clauses) == 1:
            return dict(self.clauses[0])
        return {"$and": list(self.clauses)}

    def add_clause(self, clause: Dict[str, Any]) -> "QuerySpec":
        self.clauses.append(clause)
        return self

    def match_nothing(self) -> "QuerySpec":
        # An empty $in can never be satisfied
        return self.add_clause({"id": {"$in": []}})


# --- Parsing helpers ---

def parse_query_datetime(value: str, key: str) -> datetime.datetime:
    try:
        parsed = datetime.datetime.fromisoformat(value.strip())
    except ValueError:
        raise EntityValidationError.single(key, f"Invalid date value '{value}' for '{key}'")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.UTC).replace(tzinfo=None)
    return parsed

def parse_query_number(value: str, key: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise EntityValidationError.single(key, f"Invalid numeric value '{value}' for '{key}'")
    if math.isnan(number) or math.isinf(number):
        raise EntityValidationError.single(key, f"Invalid numeric value '{value}' for '{key}'")
    return number

def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default

def parse_pagination(params: Mapping[str, str]) -> Tuple[int, int]:
    page = _positive_int(params.get("page"), 1)
    limit = min(_positive_int(params.get("limit"), settings.DEFAULT_PAGE_LIMIT), settings.MAX_PAGE_LIMIT)
    return page, limit

def parse_sort(raw: Optional[str], virtual_keys: Tuple[str, ...] = ()) -> Tuple[List[Tuple[str, int]], List[Tuple[str, int]]]:
    """Splits "a,-b" into store-level and in-memory sort directives."""
    store_sort: List[Tuple[str, int]] = []
    virtual_sort: List[Tuple[str, int]] = []
    for token in (raw or "").split(","):
        token = token.strip()
        if not token or token == "-":
            continue
        direction = -1 if token.startswith("-") else 1
        name = token.lstrip("-+")
        if not name or name.startswith("$"):
            continue
        if name in virtual_keys:
            virtual_sort.append((name, direction))
        else:
            store_sort.append((name, direction))
    if not store_sort:
        store_sort = parse_sort(DEFAULT_SORT)[0]
    if not any(name == "id" for name, _ in store_sort):
        store_sort.append(("id", 1)) # deterministic order for equal keys
    return store_sort, virtual_sort

def parse_projection(raw: Optional[str], hidden_fields: Tuple[str, ...] = ()) -> Dict[str, int]:
    requested = [
        name for name in (f.strip() for f in (raw or "").split(","))
        if name and not name.startswith("$") and name not in hidden_fields
    ]
    if requested:
        projection = {name: 1 for name in requested}
        projection["id"] = 1
        return projection
    return {name: 0 for name in INTERNAL_FIELDS + tuple(hidden_fields)}

def search_clause(term: str, search_fields: Tuple[str, ...]) -> Optional[Dict[str, Any]]:
    """Case-insensitive literal substring match across the given fields."""
    term = term.strip()
    if not term or not search_fields:
        return None
    pattern = re.escape(term)
    return {"$or": [{name: {"$regex": pattern, "$options": "i"}} for name in search_fields]}

def substring_clause(name: str, term: str) -> Dict[str, Any]:
    return {name: {"$regex": re.escape(term.strip()), "$options": "i"}}


# --- Builder ---

def build_query(params: Mapping[str, str], config: QueryConfig) -> QuerySpec:
    """
    Builds the full QuerySpec for one list request.

    Unknown keys become equality filters; keys starting with "$" are dropped so
    callers cannot inject operators.
    """
    params = dict(params)
    excluded = config.excluded_keys()
    spec = QuerySpec()

    equality: Dict[str, Any] = {}
    for key, value in params.items():
        if key in excluded or key in config.hidden_fields:
            continue
        if key.startswith("$"):
            logger.warning(f"Dropping operator-like query key '{key}'.")
            continue
        coerce = config.coercions.get(key)
        equality[key] = coerce(value) if coerce else value
    if equality:
        spec.add_clause(equality)

    for prefix, stored_field in config.date_ranges.items():
        bounds: Dict[str, Any] = {}
        if params.get(f"{prefix}From"):
            bounds["$gte"] = parse_query_datetime(params[f"{prefix}From"], f"{prefix}From")
        if params.get(f"{prefix}To"):
            bounds["$lte"] = parse_query_datetime(params[f"{prefix}To"], f"{prefix}To")
        if bounds:
            spec.add_clause({stored_field: bounds})

    for suffix, stored_field in config.numeric_ranges.items():
        bounds = {}
        if params.get(f"min{suffix}"):
            bounds["$gte"] = parse_query_number(params[f"min{suffix}"], f"min{suffix}")
        if params.get(f"max{suffix}"):
            bounds["$lte"] = parse_query_number(params[f"max{suffix}"], f"max{suffix}")
        if bounds:
            spec.add_clause({stored_field: bounds})

    if params.get("search"):
        clause = search_clause(params["search"], config.search_fields)
        if clause:
            spec.add_clause(clause)

    spec.derived = {key: params[key] for key in config.derived_keys if params.get(key)}
    spec.sort, spec.virtual_sort = parse_sort(params.get("sort"), config.virtual_sort_keys)
    spec.projection = parse_projection(params.get("fields"), config.hidden_fields)
    spec.page, spec.limit = parse_pagination(params)
    return spec


# --- Pagination metadata ---

def pagination_metadata(total: int, page: int, limit: int) -> Dict[str, Any]:
    has_next = page * limit < total
    has_prev = page > 1
    metadata: Dict[str, Any] = {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "hasNextPage": has_next,
        "hasPrevPage": has_prev,
    }
    if has_next:
        metadata["next"] = {"page": page + 1, "limit": limit}
    if has_prev:
        metadata["prev"] = {"page": page - 1, "limit": limit}
    return metadata


# --- In-memory ordering for virtual sort keys ---

def client_display_name(record: Mapping[str, Any]) -> str:
    if record.get("clientType") == "Individual":
        parts = [record.get("firstName") or "", record.get("lastName") or ""]
        return " ".join(p for p in parts if p)
    return record.get("companyName") or ""

def _first_group_name(record: Mapping[str, Any]) -> str:
    groups = record.get("groups") or []
    if not groups:
        return ""
    return groups[0].get("groupName") or ""

VIRTUAL_SORT_KEYS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    "name": client_display_name,
    "group": _first_group_name,
}

def apply_virtual_sort(records: List[Dict[str, Any]], virtual_sort: List[Tuple[str, int]]) -> List[Dict[str, Any]]:
    """
    Stable in-memory sort for keys the store cannot order by. When sorting by
    name, individuals always precede corporates whatever the direction.
    """
    if not virtual_sort:
        return records
    for name, direction in reversed(virtual_sort):
        key_fn = VIRTUAL_SORT_KEYS[name]
        records.sort(key=lambda r: key_fn(r).lower(), reverse=direction < 0)
    if any(name == "name" for name, _ in virtual_sort):
        records.sort(key=lambda r: 0 if r.get("clientType") == "Individual" else 1)
    return records
