import inspect
import logging
from typing import Any

from order_schema import OrderSchema
from order_state import FormValues

logger = logging.getLogger(__name__)


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class ValidationEngine:
    """Async front for an ``OrderSchema``.

    The schema may answer synchronously or hand back an awaitable; callers
    always await. The engine holds nothing but the schema it was given.
    """

    def __init__(self, schema: OrderSchema):
        self.schema = schema

    async def validate_one(self, name: str, value: Any) -> str:
        """Return the error message for one field, or "" when it passes."""
        message = await _resolve(self.schema.validate_field(name, value))
        if message:
            logger.debug(f"Field {name} rejected: {message}")
        return message or ""

    async def validate_submittable(self, values: FormValues) -> bool:
        return bool(await _resolve(self.schema.validate_all(values)))
