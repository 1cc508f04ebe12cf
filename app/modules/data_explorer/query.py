"""Filter and aggregation building for data explorer queries.

Filters arrive as ``{field, operator, value}``. Values may be placeholders
such as ``{today}`` or ``{webhook.objectiveId}``, which are resolved before
the value is coerced for the target column.
"""
import re
from calendar import monthrange
from datetime import date, datetime, timedelta, timezone
from typing import Any
from sqlalchemy import JSON, func, not_
from app.core.errors import BadRequestError
from app.modules.data_explorer.registry import columns

OPERATORS = (
    "equals", "not_equals", "contains", "not_contains", "starts_with", "ends_with",
    "is_null", "not_null", "in", "not_in",
    "greater_than", "less_than", "greater_than_or_equal", "less_than_or_equal",
)
JSON_OPERATORS = OPERATORS[:8]
AGGREGATIONS = ("count", "sum", "avg", "min", "max")

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2})?")
NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")

def _date_placeholders(today: date) -> dict[str, str]:
    month_end = today.replace(day=monthrange(today.year, today.month)[1])
    return {
        "currentMonthStart": today.replace(day=1).isoformat(),
        "currentMonthEnd": month_end.isoformat(),
        "today": today.isoformat(),
        "yesterday": (today - timedelta(days=1)).isoformat(),
    }

def process_dynamic_value(value: Any, context: dict | None = None, today: date | None = None) -> Any:
    if not (isinstance(value, str) and value.startswith("{") and value.endswith("}")):
        return value
    placeholder = value[1:-1]
    dates = _date_placeholders(today or datetime.now(timezone.utc).date())
    if placeholder in dates:
        return dates[placeholder]
    context = context or {}
    if placeholder in context:
        return context[placeholder]
    if "." in placeholder:
        current: Any = context
        for part in placeholder.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return value
        return current
    return value

def parse_filter_value(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if ISO_DATE_RE.match(value):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    if NUMERIC_RE.match(value):
        return float(value) if "." in value else int(value)
    if value == "true":
        return True
    if value == "false":
        return False
    return value

def build_condition(attr, operator: str, value: Any):
    parsed = parse_filter_value(value)
    if operator == "equals":
        return attr == parsed
    if operator == "not_equals":
        return attr != parsed
    if operator == "contains":
        return attr.ilike(f"%{parsed}%")
    if operator == "not_contains":
        return not_(attr.ilike(f"%{parsed}%"))
    if operator == "starts_with":
        return attr.ilike(f"{parsed}%")
    if operator == "ends_with":
        return attr.ilike(f"%{parsed}")
    if operator == "is_null":
        return attr.is_(None)
    if operator == "not_null":
        return attr.is_not(None)
    if operator in ("in", "not_in"):
        values = value if isinstance(value, list) else [value]
        return attr.in_(values) if operator == "in" else attr.not_in(values)
    if operator == "greater_than":
        return attr > parsed
    if operator == "less_than":
        return attr < parsed
    if operator == "greater_than_or_equal":
        return attr >= parsed
    if operator == "less_than_or_equal":
        return attr <= parsed
    raise BadRequestError(f"Unsupported operator: {operator}")

def build_json_condition(attr, path: list[str], operator: str, value: Any):
    if operator not in JSON_OPERATORS:
        raise BadRequestError(f"Operator '{operator}' not supported for JSON fields")
    element = (attr[path[0]] if len(path) == 1 else attr[tuple(path)]).as_string()
    text = "" if value is None else str(value)
    if operator == "equals":
        return element == text
    if operator == "not_equals":
        return element != text
    if operator == "contains":
        return element.ilike(f"%{text}%")
    if operator == "not_contains":
        return not_(element.ilike(f"%{text}%"))
    if operator == "starts_with":
        return element.ilike(f"{text}%")
    if operator == "ends_with":
        return element.ilike(f"%{text}")
    if operator == "is_null":
        return element.is_(None)
    return element.is_not(None)

def resolve_attr(model: type, field: str):
    visible = columns(model)
    if field not in visible:
        raise BadRequestError(f"Field '{field}' not found in table")
    return getattr(model, field), visible[field]

def build_filters(model: type, org_id, filters: list[dict], context: dict | None = None) -> list:
    conditions = []
    if hasattr(model, "org_id"):
        conditions.append(model.org_id == org_id)
    if hasattr(model, "deleted_at"):
        conditions.append(model.deleted_at.is_(None))
    for f in filters:
        field, operator = f.get("field") or "", f.get("operator") or ""
        if operator not in OPERATORS:
            raise BadRequestError(f"Unsupported operator: {operator}")
        value = process_dynamic_value(f.get("value"), context)
        if "." in field:
            column_name, *path = field.split(".")
            attr, column = resolve_attr(model, column_name)
            if not isinstance(column.type, JSON):
                raise BadRequestError(f"Field '{column_name}' is not a JSON column")
            conditions.append(build_json_condition(attr, path, operator, value))
        else:
            attr, _ = resolve_attr(model, field)
            conditions.append(build_condition(attr, operator, value))
    return conditions

def aggregate_expression(model: type, aggregation: str, aggregation_field: str | None):
    if aggregation not in AGGREGATIONS:
        raise BadRequestError(f"Unsupported aggregation: {aggregation}")
    if aggregation == "count":
        return func.count()
    if not aggregation_field:
        raise BadRequestError(f"Aggregation '{aggregation}' requires aggregation_field")
    attr, _ = resolve_attr(model, aggregation_field)
    return getattr(func, aggregation)(attr)

def format_result(aggregation: str, value: Any) -> Any:
    if aggregation == "count":
        return int(value or 0)
    if aggregation in ("sum", "avg"):
        if value is None:
            return "0"
        text = str(value)
        try:
            float(text)
        except ValueError:
            raise BadRequestError(f"{aggregation} produced non-numeric result '{text}'")
        return text
    return value
