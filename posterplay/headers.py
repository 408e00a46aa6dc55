# posterplay/headers.py
"""
Rate limit header helpers.

Auth endpoints advertise their budget with the X-RateLimit-* family and, when
a request is rejected, a Retry-After value in whole seconds (RFC 6585).
"""

from typing import Any, Dict


def standardize_headers(headers: Dict[str, Any]) -> Dict[str, str]:
    """Convert all header values to strings and normalise casing."""
    standardized = {}
    for key, value in headers.items():
        # "x-ratelimit-limit" -> "X-Ratelimit-Limit"; fix the RateLimit token below
        standardized_key = "-".join(word.capitalize() for word in key.split("-"))
        standardized_key = standardized_key.replace("Ratelimit", "RateLimit")

        if isinstance(value, str):
            standardized_value = value
        elif isinstance(value, float) and value.is_integer():
            standardized_value = str(int(value))
        elif value is None:
            standardized_value = ""
        else:
            standardized_value = str(value)

        standardized[standardized_key] = standardized_value

    return standardized


def get_rate_limit_headers(limit: int, remaining: int, reset_at: float) -> Dict[str, str]:
    """Headers for every limited response; ``reset_at`` is epoch milliseconds."""
    return standardize_headers(
        {
            "x-ratelimit-limit": limit,
            "x-ratelimit-remaining": max(0, remaining),
            "x-ratelimit-reset": int(reset_at),
        }
    )


def get_retry_after_header(seconds: int) -> Dict[str, str]:
    """Get retry-after header for rate limited responses."""
    return standardize_headers({"retry-after": max(1, int(seconds))})
