"""Label name and value sanitization for access-log fields."""

import re
from typing import Any, Tuple

from .models import display_string, parse_int

MAX_LABEL_VALUE_LENGTH = 80
ABSENT_VALUES = ("", "-")

CONTENT_TYPE_LABEL = "content_type"
HOSTNAME_LABEL = "hostname"
STATUS_LABEL = "status"

LABEL_NAME_OVERRIDES = {
    CONTENT_TYPE_LABEL: "content_type_bucket",
}

CONTENT_TYPE_BUCKETS = ("image", "html", "css", "javascript", "other")

VALID_HOSTNAME = re.compile(r"^[a-z0-9.-]+$")

VALID_STATUS_RANGES = (
    (100, 103),
    (200, 208),
    (300, 308),
    (400, 431),
    (499, 499),
    (500, 511),
)


def sanitize_label_name(label: str) -> str:
    """Return the metric label name used for a log field."""
    return LABEL_NAME_OVERRIDES.get(label, label)


def bucket_content_type(value: str) -> str:
    value = value.lower()
    if value in CONTENT_TYPE_BUCKETS:
        return value
    if value.startswith("image/"):
        return "image"
    if value.startswith("text/html"):
        return "html"
    if value.startswith("text/css"):
        return "css"
    if "javascript" in value:
        return "javascript"
    if not value:
        return ""
    return "other"


def sanitize_hostname(value: str) -> str:
    value = value.split(":", 1)[0].lower()
    return value if VALID_HOSTNAME.match(value) else ""


def sanitize_status(value: str) -> str:
    status = parse_int(value)
    if status is None:
        return ""
    for low, high in VALID_STATUS_RANGES:
        if low <= status <= high:
            return value
    return ""


FIELD_RULES = {
    CONTENT_TYPE_LABEL: bucket_content_type,
    HOSTNAME_LABEL: sanitize_hostname,
    STATUS_LABEL: sanitize_status,
}


def sanitize_label_value(label: str, value: Any) -> str:
    """Normalize a raw log field value for use as a label value.

    Args:
        label: Log field name the value was read from
        value: Raw decoded value, of any JSON type

    Returns:
        str: The sanitized value, empty when absent or invalid
    """
    if value is None or value in ABSENT_VALUES:
        return ""

    label_value = display_string(value).strip()
    if label_value in ABSENT_VALUES:
        return ""

    rule = FIELD_RULES.get(label)
    if rule:
        label_value = rule(label_value)

    return label_value[:MAX_LABEL_VALUE_LENGTH]


def sanitize(label: str, value: Any) -> Tuple[str, str]:
    """Return the (label name, label value) pair for a log field."""
    return sanitize_label_name(label), sanitize_label_value(label, value)
