import re
from typing import Any, List

from app.core.exceptions import BadRequestError

MAX_BATCH_IDS = 100

# ASCII digits only; int() alone would also take "1_000", " 7 " and non-ASCII digits
INTEGER_PARAM = re.compile(r"-?[0-9]+")


def parse_int_param(value: str, error: str, message: str) -> int:
    """Parse a numeric path parameter or fail with a 400 before any downstream call."""
    if not isinstance(value, str) or not INTEGER_PARAM.fullmatch(value):
        raise BadRequestError(message, error=error)
    return int(value)


def validate_batch_ids(ids: Any) -> List[int]:
    """Check a batch of work item ids; rules are applied in a fixed order."""
    if not isinstance(ids, list) or len(ids) == 0:
        raise BadRequestError("ids array is required and cannot be empty", error="Invalid request")
    if len(ids) > MAX_BATCH_IDS:
        raise BadRequestError(
            f"Maximum {MAX_BATCH_IDS} test case IDs allowed per request", error="Invalid request"
        )
    # bool is a subclass of int but never a valid id
    if not all(isinstance(i, int) and not isinstance(i, bool) and i > 0 for i in ids):
        raise BadRequestError("All IDs must be positive integers", error="Invalid request")
    return ids
