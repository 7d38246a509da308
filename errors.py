"""Error types raised by the order form.

Field validation failures are not exceptions: they are plain messages shown
next to the field. Only the cases below leave a module as an exception.
"""

from typing import Any, Dict, Optional

__all__ = (
    "OrderFormError",
    "UnknownFieldError",
    "UnknownToppingError",
    "MenuError",
    "SubmissionError",
)


class OrderFormError(Exception):
    """Base for all order form errors."""

    default_message = "Order form error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(message or self.default_message)
        if cause is not None:
            self.__cause__ = cause


class UnknownFieldError(OrderFormError, KeyError):
    default_message = "Unknown form field"

    def __str__(self) -> str:
        # KeyError would repr() the message otherwise
        return self.message or self.default_message


class UnknownToppingError(UnknownFieldError):
    default_message = "Topping is not on the menu"


class MenuError(OrderFormError):
    default_message = "Menu file could not be loaded"


class SubmissionError(OrderFormError):
    """The order could not be delivered or the server rejected it.

    ``message`` is the reason reported by the server, or ``None`` when no
    reason is available (timeouts, connection errors, unreadable bodies).
    """

    default_message = "Order submission failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, context=context, cause=cause)
        self.status_code = status_code
