import logging
import sys
from typing import Any, Dict, Literal, Optional

DEFAULT_TRACE_LEVEL_NUM = 5  # NOTE: MUST be lower than DEBUG which is 10

logger = logging.getLogger("component_slots")
actual_trace_level_num = -1


def setup_logging() -> None:
    # Reuse the "TRACE" level if something else already defined it.
    # See https://docs.python.org/3/howto/logging.html#custom-levels
    global actual_trace_level_num
    log_levels = _get_log_levels()

    if "TRACE" in log_levels:
        actual_trace_level_num = log_levels["TRACE"]
    else:
        actual_trace_level_num = DEFAULT_TRACE_LEVEL_NUM
        logging.addLevelName(actual_trace_level_num, "TRACE")


def _get_log_levels() -> Dict[str, int]:
    # Use official API if possible
    if sys.version_info >= (3, 11):
        return logging.getLevelNamesMapping()
    else:
        return logging._nameToLevel.copy()


def trace(message: str, *args: Any, **kwargs: Any) -> None:
    """
    TRACE level logger.

    To display TRACE logs, set the logging level to 5.

    Example:
    ```py
    LOGGING = {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "component_slots": {
                "level": 5,
                "handlers": ["console"],
            },
        },
    }
    ```
    """
    if actual_trace_level_num == -1:
        setup_logging()
    if logger.isEnabledFor(actual_trace_level_num):
        logger.log(actual_trace_level_num, message, *args, **kwargs)


def trace_slot_msg(
    action: Literal["DECLARE", "GET", "SET"],
    component_name: str,
    slot_name: str,
    msg: str = "",
    component_id: Optional[int] = None,
) -> None:
    """
    TRACE level logger with opinionated format for tracing slot declarations,
    reads and writes. Formats messages like so:

    `"SET     SLOT 'title' OF COMP Card ID 140212 collection=False"`
    """
    action_normalized = action.ljust(7, " ")
    component_id_str = f" ID {component_id}" if component_id is not None else ""
    full_msg = f"{action_normalized} SLOT '{slot_name}' OF COMP {component_name}{component_id_str} {msg}"

    # NOTE: When debugging tests during development, it may be easier to change
    # this to `print()`
    trace(full_msg.rstrip())
