"""
Input validation functions for oddmuse_sync.

Page names double as local file names (``<root>/<wiki>/<page>``), so they
are checked before any command is rendered or any file is written.
"""


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Page name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_page_name(page_name: str) -> tuple[bool, str]:
    """
    Validate a wiki page name.

    Args:
        page_name: The page name to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain '/' (one file per page, no subdirectories)
        - Cannot be '.' or '..'
        - Cannot contain NUL or line breaks
    """
    if not page_name or not page_name.strip():
        return (
            False,
            format_validation_error("Page name", "cannot be empty"),
        )

    if "/" in page_name:
        return (
            False,
            format_validation_error("Page name", "cannot contain '/'"),
        )

    if page_name in (".", ".."):
        return (
            False,
            format_validation_error("Page name", f"cannot be '{page_name}'"),
        )

    if any(ch in page_name for ch in ("\0", "\n", "\r")):
        return (
            False,
            format_validation_error(
                "Page name", "cannot contain NUL or line breaks"
            ),
        )

    return (True, "")


def validate_pattern(pattern: str) -> tuple[bool, str]:
    """
    Validate a search or match pattern.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not pattern or not pattern.strip():
        return (
            False,
            format_validation_error("Pattern", "cannot be empty"),
        )
    if "\n" in pattern:
        return (
            False,
            format_validation_error("Pattern", "cannot contain line breaks"),
        )
    return (True, "")
