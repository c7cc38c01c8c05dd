"""structlog processors used by the agent_patch logging pipeline."""
from typing import Any

from .context import get_context


def inject_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Copy values bound with ``bind_context`` into the event.

    Explicit keyword arguments on the log call win over bound values.
    """
    for key, value in get_context().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def add_logger_name(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add a ``logger`` field naming the module that emitted the event."""
    record = event_dict.get("_record")
    if record is not None:
        event_dict["logger"] = record.name
    elif hasattr(logger, "name"):
        event_dict["logger"] = logger.name
    return event_dict


def truncate_long_values(max_length: int = 500) -> Any:
    """Create a processor that shortens oversized string values.

    Patch text and file contents can be arbitrarily large; events that carry
    them (for example a failing context block) are clipped so a single log
    line stays readable.

    Args:
        max_length: Maximum number of characters kept per string value.

    Returns:
        A structlog processor.
    """

    def processor(
        logger: Any,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        for key, value in event_dict.items():
            if key.startswith("_") or key == "event":
                continue
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}... ({len(value) - max_length} more chars)"
        return event_dict

    return processor
