"""
Potion API — Request Validation
================================

What:  Sanitizes and validates registration/login input and query parameters.
Why:   Turns raw client strings into values the services can trust, or into
       a ValidationFailed / InvalidQueryParameter the handlers map to 400.
How:   Plain functions. Query parameters are parsed into closed enums so the
       query builder never sees a free-form string.

Registration rules:
    name:     trimmed, HTML-escaped, required, 3–30 characters
    password: trimmed, HTML-escaped, required, at least 6 characters
    Every violation is collected before raising.
"""

import html
import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

from potion_api.exceptions import InvalidQueryParameter, ValidationFailed

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6


class GroupBy(str, Enum):
    VENDOR = "vendor"
    CATEGORY = "category"


class Metric(str, Enum):
    AVG = "avg"
    SUM = "sum"
    COUNT = "count"


class MetricField(str, Enum):
    SCORE = "score"
    PRICE = "price"
    RATINGS = "ratings"


def sanitize(value: Optional[str]) -> str:
    """Trim surrounding whitespace and HTML-escape the rest."""
    if value is None:
        return ""
    return html.escape(str(value).strip())


def validate_registration(name: Optional[str], password: Optional[str]) -> Tuple[str, str]:
    """
    Validate registration input and return the sanitized (name, password).

    Raises:
        ValidationFailed: with one entry per failed field check
    """
    clean_name = sanitize(name)
    clean_password = sanitize(password)
    errors: List[Dict[str, str]] = []

    if not clean_name:
        errors.append({"field": "name", "message": "Le nom d’utilisateur est requis."})
    elif not NAME_MIN_LENGTH <= len(clean_name) <= NAME_MAX_LENGTH:
        errors.append({"field": "name", "message": "Doit faire entre 3 et 30 caractères."})

    if not clean_password:
        errors.append({"field": "password", "message": "Le mot de passe est requis."})
    elif len(clean_password) < PASSWORD_MIN_LENGTH:
        errors.append({"field": "password", "message": "Minimum 6 caractères."})

    if errors:
        raise ValidationFailed(errors)
    return clean_name, clean_password


def normalize_login(name: Optional[str], password: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Apply the registration sanitizing to login input, without length checks.

    Returns None when either field is missing; the caller treats that as
    invalid credentials.
    """
    clean_name = sanitize(name)
    clean_password = sanitize(password)
    if not clean_name or not clean_password:
        return None
    return clean_name, clean_password


def _parse_finite(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def parse_price_bounds(raw_min: Optional[str], raw_max: Optional[str]) -> Tuple[float, float]:
    """Parse the `min` and `max` query parameters as finite numbers."""
    min_price = _parse_finite(raw_min)
    max_price = _parse_finite(raw_max)
    if min_price is None or max_price is None:
        raise InvalidQueryParameter(
            "Les prix doivent être des nombres valides",
            parameter="min" if min_price is None else "max",
        )
    return min_price, max_price


def parse_analytics_search(
    group_by: Optional[str],
    metric: Optional[str],
    field: Optional[str],
) -> Tuple[GroupBy, Metric, Optional[MetricField]]:
    """
    Parse the analytics search parameters into their enums.

    `field` is required for avg and sum. For count it may be omitted, but a
    given value must still belong to the enumeration.
    """
    try:
        parsed_metric = Metric(metric)
    except ValueError:
        raise InvalidQueryParameter("Métrique invalide", parameter="metric")

    try:
        parsed_group = GroupBy(group_by)
    except ValueError:
        raise InvalidQueryParameter("Regroupement invalide", parameter="groupBy")

    parsed_field: Optional[MetricField] = None
    if field is not None or parsed_metric is not Metric.COUNT:
        try:
            parsed_field = MetricField(field)
        except ValueError:
            raise InvalidQueryParameter("Champ invalide", parameter="field")

    return parsed_group, parsed_metric, parsed_field
