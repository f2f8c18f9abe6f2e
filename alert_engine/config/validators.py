"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Check raw configuration for risky but valid values.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    dispatch = config_dict.get("dispatch", {})
    if isinstance(dispatch, dict):
        max_workers = dispatch.get("max_workers", 5)
        if isinstance(max_workers, int) and max_workers > 10:
            warning_messages.append(
                f"dispatch.max_workers ({max_workers}) exceeds typical email channel "
                "concurrency limits and may trigger provider throttling"
            )

        max_retries = dispatch.get("max_retries", 0)
        if isinstance(max_retries, int) and max_retries > 0:
            warning_messages.append(
                f"dispatch.max_retries ({max_retries}) re-sends failed alerts within a run; "
                "each failed attempt is recorded as a separate failed alert record"
            )

    backend = config_dict.get("backend", {})
    if isinstance(backend, dict):
        timeout = backend.get("request_timeout", 10)
        if isinstance(timeout, (int, float)) and timeout > 30:
            warning_messages.append(
                f"backend.request_timeout ({timeout}s) is long; one slow backend call "
                "delays the whole run"
            )

    matching = config_dict.get("matching", {})
    if isinstance(matching, dict):
        suffixes = matching.get("region_suffixes")
        if isinstance(suffixes, list) and not suffixes:
            warning_messages.append(
                "matching.region_suffixes is empty; areas like 'suburb, australia' "
                "will rely on fuzzy token matching only"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
