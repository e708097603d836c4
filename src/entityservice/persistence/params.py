"""
Query Parameter Mapping

Translates the flat parameters accepted by the entity service
(``filters``, ``fields``, ``sort``, ``start``, ``limit``, ``page``,
``pageSize``, ``populate``) into the store query format. Filters are
passed through untouched: interpreting them is the store's job.
"""

import copy
from typing import Any, Dict, List, Optional


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, dict):
        return list(value)
    return list(value)


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {name} parameter: {value!r}")


def transform_params_to_query(
    params: Optional[Dict[str, Any]],
    max_page_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Build a store query from entity service parameters.

    Args:
        params: Caller parameters, may be None
        max_page_size: Upper bound applied to ``limit`` and ``page_size``

    Returns:
        Store query dictionary; keys that were not supplied are omitted

    Raises:
        ValueError: If a numeric parameter cannot be parsed
    """
    params = params or {}
    query: Dict[str, Any] = {}

    if params.get("filters"):
        query["where"] = copy.deepcopy(params["filters"])

    if params.get("fields"):
        query["select"] = _as_list(params["fields"])

    if params.get("sort"):
        query["order_by"] = copy.deepcopy(params["sort"])

    if params.get("populate"):
        query["populate"] = _as_list(params["populate"])

    if params.get("start") is not None:
        query["offset"] = max(_as_int("start", params["start"]), 0)

    if params.get("limit") is not None:
        limit = _as_int("limit", params["limit"])
        # a negative limit means "no limit"
        if limit >= 0:
            query["limit"] = min(limit, max_page_size) if max_page_size else limit

    if params.get("page") is not None:
        query["page"] = max(_as_int("page", params["page"]), 1)

    page_size = params.get("page_size", params.get("pageSize"))
    if page_size is not None:
        page_size = max(_as_int("pageSize", page_size), 1)
        query["page_size"] = min(page_size, max_page_size) if max_page_size else page_size

    return query
