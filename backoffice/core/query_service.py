"""
Tabular Query Service

Every list screen (inventory, requirements, users) sends the same loose bag
of query-string parameters:

    filterColumn / filterValue   one column filter, by human-readable label
    search                       free text across a fixed set of columns
    sortColumn / sortDirection   one sort key, "asc" (default) or "desc"
    page / pageSize              1-based page number and page length

Each entity kind has a static table mapping column labels to a field and a
comparison kind. Bad input never fails the request: an unknown label, an
unparseable number or an out-of-set enum value simply drops that one
predicate. The total is counted from the very same filtered query the rows
come from, so paging controls always agree with the rows.
"""

import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import QueryConfig
from .errors import StorageUnavailable
from .money import parse_amount
from .view_cache import ListViewCache
from ..models.enums import InventoryStatus, RequirementStatus, RtmOffplan, RequirementCategory, Role, values
from ..models.sql_property import SQLInventory, SQLRequirement
from ..models.user import User

logger = logging.getLogger(__name__)

FUZZY_LOWER = Decimal("0.9")
FUZZY_UPPER = Decimal("1.1")

TRUE_WORDS = {"true", "yes", "1", "y", "t"}
FALSE_WORDS = {"false", "no", "0", "n", "f"}

# OFFSET is a signed 64-bit integer in every backend we run on
MAX_OFFSET = 2 ** 63 - 1

RECOGNIZED_PARAMS = ("filterColumn", "filterValue", "search", "sortColumn", "sortDirection", "page", "pageSize")


class Comparison(enum.Enum):
    TEXT_CONTAINS = "text_contains"
    ENUM_EQUALS = "enum_equals"
    NUMERIC_FUZZY_RANGE = "numeric_fuzzy_range"
    INTEGER_EQUALS = "integer_equals"
    BOOLEAN_EQUALS = "boolean_equals"
    # sortable only, never filtered on
    SORT_ONLY = "sort_only"


@dataclass(frozen=True)
class ColumnSpec:
    field: str
    comparison: Comparison
    choices: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EntityQueryMap:
    """Everything the service needs to know about one list screen."""

    kind: str
    model: Any
    columns: Mapping[str, ColumnSpec]
    search_fields: Tuple[str, ...]
    default_sort_field: str

    def column(self, label: Optional[str]) -> Optional[ColumnSpec]:
        if not label:
            return None
        return _casefolded(self.columns).get(label.strip().casefold())


def _casefolded(columns: Mapping[str, ColumnSpec]) -> Dict[str, ColumnSpec]:
    return {label.casefold(): spec for label, spec in columns.items()}


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]]
    total: int
    page: int
    page_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": self.rows, "total": self.total, "page": self.page, "pageSize": self.page_size}


@dataclass(frozen=True)
class ListParams:
    """Raw parameters after coercion; predicates are still unresolved."""

    filter_column: Optional[str] = None
    filter_value: Optional[str] = None
    search: Optional[str] = None
    sort_column: Optional[str] = None
    descending: bool = False
    page: int = 1
    page_size: int = 10
    extra: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# --- Per-entity column tables ---

TEXT = Comparison.TEXT_CONTAINS
FUZZY = Comparison.NUMERIC_FUZZY_RANGE

INVENTORY_QUERY_MAP = EntityQueryMap(
    kind="inventory",
    model=SQLInventory,
    columns={
        "Developer Name": ColumnSpec("developer_name", TEXT),
        "Project Name": ColumnSpec("project_name", TEXT),
        "Property Type": ColumnSpec("property_type", TEXT),
        "Location": ColumnSpec("location", TEXT),
        "Unit Number": ColumnSpec("unit_number", TEXT),
        "Remarks": ColumnSpec("remarks", TEXT),
        "Status": ColumnSpec("unit_status", Comparison.ENUM_EQUALS, tuple(values(InventoryStatus))),
        "Area (SQFT)": ColumnSpec("area_sqft", FUZZY),
        "Price (AED)": ColumnSpec("price_aed", FUZZY),
        "Selling Price (M AED)": ColumnSpec("selling_price_million_aed", FUZZY),
        "Price (M AED)": ColumnSpec("selling_price_million_aed", FUZZY),
        "INR (Cr)": ColumnSpec("inr_cr", FUZZY),
        "Rent (Approx)": ColumnSpec("rent_approx", FUZZY),
        "ROI (%)": ColumnSpec("roi_gross", FUZZY),
        "Markup": ColumnSpec("markup", FUZZY),
        "Brokerage": ColumnSpec("brokerage", FUZZY),
        "Bedrooms": ColumnSpec("bed_rooms", Comparison.INTEGER_EQUALS),
        "PHPP Eligible": ColumnSpec("phpp_eligible", Comparison.BOOLEAN_EQUALS),
        "Added": ColumnSpec("date_added", Comparison.SORT_ONLY),
    },
    search_fields=("developer_name", "project_name", "property_type", "location", "unit_number", "remarks"),
    default_sort_field="date_added",
)

REQUIREMENT_QUERY_MAP = EntityQueryMap(
    kind="requirement",
    model=SQLRequirement,
    columns={
        "Demand": ColumnSpec("demand", TEXT),
        "Property Type": ColumnSpec("preferred_type", TEXT),
        "Location": ColumnSpec("preferred_location", TEXT),
        "Description": ColumnSpec("description", TEXT),
        "Budget": ColumnSpec("budget", TEXT),
        "Status": ColumnSpec("status", Comparison.ENUM_EQUALS, tuple(values(RequirementStatus))),
        "RTM/Off-plan": ColumnSpec("rtm_offplan", Comparison.ENUM_EQUALS, tuple(values(RtmOffplan))),
        "Category": ColumnSpec("category", Comparison.ENUM_EQUALS, tuple(values(RequirementCategory))),
        "Area (SQFT)": ColumnSpec("preferred_square_footage", FUZZY),
        "ROI (%)": ColumnSpec("preferred_roi", FUZZY),
        "PHPP": ColumnSpec("phpp", Comparison.BOOLEAN_EQUALS),
        "Call": ColumnSpec("call", Comparison.BOOLEAN_EQUALS),
        "Viewing": ColumnSpec("viewing", Comparison.BOOLEAN_EQUALS),
        "Date Created": ColumnSpec("date_created", Comparison.SORT_ONLY),
    },
    search_fields=("preferred_type", "description", "demand", "preferred_location", "budget"),
    default_sort_field="date_created",
)

USER_QUERY_MAP = EntityQueryMap(
    kind="user",
    model=User,
    columns={
        "Name": ColumnSpec("name", TEXT),
        "Email": ColumnSpec("email", TEXT),
        "Role": ColumnSpec("role", Comparison.ENUM_EQUALS, tuple(values(Role))),
        "Disabled": ColumnSpec("is_disabled", Comparison.BOOLEAN_EQUALS),
        "Created": ColumnSpec("created_at", Comparison.SORT_ONLY),
        "Last Login": ColumnSpec("last_login", Comparison.SORT_ONLY),
    },
    search_fields=("name", "email"),
    default_sort_field="created_at",
)

QUERY_MAPS = {m.kind: m for m in (INVENTORY_QUERY_MAP, REQUIREMENT_QUERY_MAP, USER_QUERY_MAP)}


# --- Parameter coercion ---

def _first(raw: Mapping[str, Any], key: str) -> Optional[str]:
    """Query strings may repeat a key; the first value wins."""
    if hasattr(raw, "getlist"):
        found = raw.getlist(key)
        value = found[0] if found else None
    else:
        value = raw.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _positive_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        return default
    return number if number > 0 else default


def parse_params(raw: Optional[Mapping[str, Any]], config: QueryConfig) -> ListParams:
    raw = raw or {}
    page_size = min(_positive_int(_first(raw, "pageSize"), config.default_page_size), config.max_page_size)
    page = _positive_int(_first(raw, "page"), 1)
    if (page - 1) * page_size > MAX_OFFSET:
        page = 1
    direction = (_first(raw, "sortDirection") or "asc").lower()

    # anything beyond the recognized keys still has to separate cache entries
    extra = tuple(sorted(
        (key, _first(raw, key) or "") for key in raw if key not in RECOGNIZED_PARAMS
    ))

    return ListParams(
        filter_column=_first(raw, "filterColumn"),
        filter_value=_first(raw, "filterValue"),
        search=_first(raw, "search"),
        sort_column=_first(raw, "sortColumn"),
        descending=direction == "desc",
        page=page,
        page_size=page_size,
        extra=extra,
    )


# --- Predicate building ---

def build_column_predicate(model, spec: ColumnSpec, value: str):
    """
    Return the SQL predicate for one column filter, or None when the value
    does not fit the column and the filter should be dropped.
    """
    column = getattr(model, spec.field)

    if spec.comparison is Comparison.TEXT_CONTAINS:
        return column.ilike(f"%{value}%")

    if spec.comparison is Comparison.ENUM_EQUALS:
        if value not in spec.choices:
            return None
        return column == value

    if spec.comparison is Comparison.NUMERIC_FUZZY_RANGE:
        amount = parse_amount(value)
        if amount is None:
            return None
        lower, upper = amount * FUZZY_LOWER, amount * FUZZY_UPPER
        return column.between(lower, upper)

    if spec.comparison is Comparison.INTEGER_EQUALS:
        try:
            number = int(value)
        except ValueError:
            return None
        return column == number

    if spec.comparison is Comparison.BOOLEAN_EQUALS:
        word = value.lower()
        if word in TRUE_WORDS:
            return column.is_(True)
        if word in FALSE_WORDS:
            return column.is_(False)
        return None

    return None


def build_search_predicate(model, search_fields: Sequence[str], text: str):
    pattern = f"%{text}%"
    return or_(*(getattr(model, name).ilike(pattern) for name in search_fields))


def build_predicates(query_map: EntityQueryMap, params: ListParams) -> list:
    predicates = []

    if params.filter_column and params.filter_value:
        spec = query_map.column(params.filter_column)
        if spec is not None:
            predicate = build_column_predicate(query_map.model, spec, params.filter_value)
            if predicate is not None:
                predicates.append(predicate)
            else:
                logger.debug(
                    f"Dropped {query_map.kind} filter {params.filter_column!r}={params.filter_value!r}"
                )

    if params.search:
        predicates.append(build_search_predicate(query_map.model, query_map.search_fields, params.search))

    return predicates


def build_order_by(query_map: EntityQueryMap, params: ListParams):
    spec = query_map.column(params.sort_column)
    if spec is None:
        return getattr(query_map.model, query_map.default_sort_field).desc()

    column = getattr(query_map.model, spec.field)
    return column.desc() if params.descending else column.asc()


# --- The service ---

class TabularQueryService:
    """
    Builds filtered, sorted, paginated list pages for one session.

    Usage:
        service = TabularQueryService(db, QueryConfig(), cache)
        result = service.list("inventory", request.query_params)
    """

    def __init__(
        self,
        db: Session,
        config: Optional[QueryConfig] = None,
        cache: Optional[ListViewCache] = None,
        query_maps: Mapping[str, EntityQueryMap] = QUERY_MAPS,
    ):
        self.db = db
        self.config = config or QueryConfig()
        self.cache = cache
        self.query_maps = query_maps

    def list(
        self,
        entity_kind: str,
        raw_params: Optional[Mapping[str, Any]] = None,
        extra_criteria: Sequence[Any] = (),
        cache_key: Optional[str] = None,
    ) -> QueryResult:
        """
        Return one page of `entity_kind` rows plus the total across all pages.

        `extra_criteria` are fixed predicates from the caller (e.g. only
        available units); they constrain both rows and total. Callers that
        pass extra criteria must also pass a `cache_key` naming them, or the
        page is not cached. Cached results are shared, treat them as read-only.

        Raises:
            KeyError: unknown entity kind (programming error)
            StorageUnavailable: the database failed
        """
        query_map = self.query_maps[entity_kind]
        params = parse_params(raw_params, self.config)

        cacheable = self.cache is not None and (not extra_criteria or cache_key is not None)
        key = (params, cache_key)
        if cacheable:
            cached = self.cache.get(entity_kind, key)
            if cached is not None:
                return cached
            generation = self.cache.generation(entity_kind)

        predicates = build_predicates(query_map, params) + list(extra_criteria)

        try:
            query = self.db.query(query_map.model)
            for predicate in predicates:
                query = query.filter(predicate)

            # Same query object for both, so they can never disagree
            total = query.count()
            rows = (
                query.order_by(build_order_by(query_map, params))
                .offset(params.offset)
                .limit(params.page_size)
                .all()
            )
        except SQLAlchemyError as e:
            logger.exception(f"Error listing {entity_kind}: {e}")
            raise StorageUnavailable(f"Failed to fetch {entity_kind} list") from e

        result = QueryResult(
            rows=[row.to_dict() for row in rows],
            total=total,
            page=params.page,
            page_size=params.page_size,
        )
        if cacheable:
            self.cache.set(entity_kind, key, result, generation=generation)
        return result
