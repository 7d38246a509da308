"""Field rules for the order form.

The rules are pydantic types, so the same definitions drive both the
per-field checks used while the customer types and the whole-form check that
gates the submit button. Rules that need the topping catalog read it from the
pydantic validation context, which keeps the type definitions module-level
constants while each ``OrderSchema`` carries its own catalog.
"""

import re
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
)
from pydantic_core import PydanticCustomError

from order_state import DEFAULT_TOPPINGS, FormValues, ToppingCatalog, normalize_field_name

FULL_NAME_MIN = 3
FULL_NAME_MAX = 20
SIZES = ("S", "M", "L")
TOPPING_PATTERN = re.compile(r"^[1-5]$")

FULL_NAME_REQUIRED = "full name is required"
FULL_NAME_TOO_SHORT = f"full name must be at least {FULL_NAME_MIN} characters"
FULL_NAME_TOO_LONG = f"full name must be at most {FULL_NAME_MAX} characters"
SIZE_REQUIRED = "size is required"
SIZE_INCORRECT = "size must be S or M or L"
INVALID_TOPPING = "Invalid topping ID"


def _required(message: str):
    def check(value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("required", message)
        return value
    return check


def _check_full_name(value: str) -> str:
    if len(value) < FULL_NAME_MIN:
        raise PydanticCustomError("full_name_too_short", FULL_NAME_TOO_SHORT)
    if len(value) > FULL_NAME_MAX:
        raise PydanticCustomError("full_name_too_long", FULL_NAME_TOO_LONG)
    return value


def _check_size(value: str) -> str:
    if value not in SIZES:
        raise PydanticCustomError("size_incorrect", SIZE_INCORRECT)
    return value


def _topping_is_text(value: Any) -> Any:
    if not isinstance(value, str):
        raise PydanticCustomError("invalid_topping", INVALID_TOPPING)
    return value


def _check_topping(value: str, info: ValidationInfo) -> str:
    catalog = (info.context or {}).get("catalog")
    if catalog is not None and value not in catalog:
        raise PydanticCustomError("invalid_topping", INVALID_TOPPING)
    if not TOPPING_PATTERN.fullmatch(value):
        raise PydanticCustomError("invalid_topping", INVALID_TOPPING)
    return value


FullName = Annotated[str, BeforeValidator(_required(FULL_NAME_REQUIRED)), AfterValidator(_check_full_name)]
Size = Annotated[str, BeforeValidator(_required(SIZE_REQUIRED)), AfterValidator(_check_size)]
ToppingId = Annotated[str, BeforeValidator(_topping_is_text), AfterValidator(_check_topping)]
Toppings = Optional[List[ToppingId]]


class OrderForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    full_name: FullName = Field(alias="fullName")
    size: Size
    toppings: Toppings = None


_FIELD_ADAPTERS: Dict[str, TypeAdapter] = {
    "full_name": TypeAdapter(FullName),
    "size": TypeAdapter(Size),
    "toppings": TypeAdapter(Toppings),
}


class OrderSchema:
    """The rule set of one form. Build it once and share it read-only."""

    __slots__ = ("_catalog",)

    def __init__(self, catalog: ToppingCatalog = DEFAULT_TOPPINGS):
        self._catalog = catalog

    @property
    def catalog(self) -> ToppingCatalog:
        return self._catalog

    def _context(self) -> Dict[str, Any]:
        return {"catalog": self._catalog}

    def validate_field(self, name: str, value: Any) -> Optional[str]:
        """Check one field. Returns ``None`` if it passes, otherwise the
        message of the first rule it breaks.

        Raises ``UnknownFieldError`` for a name that is not a form field.
        """
        name = normalize_field_name(name)
        if name == "toppings" and isinstance(value, (set, frozenset)):
            value = sorted(value)
        try:
            _FIELD_ADAPTERS[name].validate_python(value, context=self._context())
        except ValidationError as e:
            return e.errors()[0]["msg"]
        return None

    def validate_all(self, values: FormValues) -> bool:
        try:
            OrderForm.model_validate(values.to_payload(), context=self._context())
        except ValidationError:
            return False
        return True
