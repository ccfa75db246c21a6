"""
Input boundary helpers for resource_hub.

File sizes are stored in megabytes only; the unit a user picks is converted
here on the way in (``to_megabytes``) and on the way out
(``split_file_size``). Rating and name checks return ``(is_valid, reason)``
tuples so callers can decide how to surface them.
"""

from collections.abc import Iterable

MIN_RATING = 1
MAX_RATING = 10

# Binary multiples, matching the unit picker of the catalog form.
SIZE_UNITS: dict[str, int] = {
    "MB": 1,
    "GB": 1024,
    "TB": 1024 * 1024,
}


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Rating")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def to_megabytes(value: float, unit: str = "MB") -> float:
    """Convert a user-entered size into megabytes.

    Raises:
        ValueError: If the unit is unknown or the value is negative.
    """
    factor = SIZE_UNITS.get(unit.strip().upper())
    if factor is None:
        raise ValueError(
            format_validation_error(
                "File size unit",
                f"must be one of {', '.join(SIZE_UNITS)} (got '{unit}')",
            )
        )
    if value < 0:
        raise ValueError(
            format_validation_error("File size", "cannot be negative")
        )
    return float(value) * factor


def split_file_size(megabytes: float) -> tuple[str, str]:
    """Pick the largest unit that keeps the value >= 1 for display.

    Returns:
        ``(value, unit)`` where value is formatted with two decimals for
        GB/TB and as-is for MB.
    """
    if megabytes >= SIZE_UNITS["TB"]:
        return f"{megabytes / SIZE_UNITS['TB']:.2f}", "TB"
    if megabytes >= SIZE_UNITS["GB"]:
        return f"{megabytes / SIZE_UNITS['GB']:.2f}", "GB"
    return f"{megabytes:g}", "MB"


def validate_rating(rating: int) -> tuple[bool, str]:
    """
    Validate a resource rating.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        return (
            False,
            format_validation_error("Rating", "must be an integer"),
        )
    if not (MIN_RATING <= rating <= MAX_RATING):
        return (
            False,
            format_validation_error(
                "Rating", f"must be between {MIN_RATING} and {MAX_RATING}"
            ),
        )
    return (True, "")


def validate_resource_name(name: str) -> tuple[bool, str]:
    """
    Validate a resource display name.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not name or not name.strip():
        return (
            False,
            format_validation_error("Resource name", "cannot be empty"),
        )
    return (True, "")


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags:
        cleaned = str(tag).strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result
