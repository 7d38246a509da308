import json
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterator, List, Tuple

from errors import MenuError, UnknownFieldError

FIELD_NAMES = ("full_name", "size", "toppings")

# markup / wire names -> attribute names
_FIELD_ALIASES = {"fullName": "full_name"}

SIZE_CHOICES: Tuple[Tuple[str, str], ...] = (
    ("S", "Small"),
    ("M", "Medium"),
    ("L", "Large"),
)


def normalize_field_name(name: str) -> str:
    name = _FIELD_ALIASES.get(name, name)
    if name not in FIELD_NAMES:
        raise UnknownFieldError(f"Unknown form field: {name!r}")
    return name


@dataclass(frozen=True)
class Topping:
    topping_id: str
    text: str


@dataclass(frozen=True)
class ToppingCatalog:
    """Ordered list of toppings offered on the form."""

    toppings: Tuple[Topping, ...]

    def __iter__(self) -> Iterator[Topping]:
        return iter(self.toppings)

    def __len__(self) -> int:
        return len(self.toppings)

    def __contains__(self, topping_id: object) -> bool:
        return any(t.topping_id == topping_id for t in self.toppings)

    def ids(self) -> List[str]:
        return [t.topping_id for t in self.toppings]

    def label(self, topping_id: str) -> str:
        for t in self.toppings:
            if t.topping_id == topping_id:
                return t.text
        raise KeyError(topping_id)


DEFAULT_TOPPINGS = ToppingCatalog((
    Topping("1", "Pepperoni"),
    Topping("2", "Green Peppers"),
    Topping("3", "Pineapple"),
    Topping("4", "Mushrooms"),
    Topping("5", "Ham"),
))


def load_menu(path: str) -> ToppingCatalog:
    """Read the topping list from a JSON menu file."""
    try:
        with open(path, 'r') as f:
            menu = json.load(f)
    except (OSError, ValueError) as e:
        raise MenuError(f"Could not read menu {path}: {e}", cause=e)
    try:
        toppings = tuple(
            Topping(str(t['topping_id']), t['text']) for t in menu['toppings']
        )
    except (KeyError, TypeError) as e:
        raise MenuError(f"Malformed menu {path}: missing {e}", cause=e)
    return ToppingCatalog(toppings)


@dataclass(frozen=True)
class FormValues:
    full_name: str = ""
    size: str = ""
    toppings: FrozenSet[str] = field(default_factory=frozenset)

    def with_field(self, name: str, value: str) -> "FormValues":
        name = normalize_field_name(name)
        if name == "toppings":
            raise UnknownFieldError("toppings are changed one at a time with with_topping()")
        return replace(self, **{name: value})

    def with_topping(self, topping_id: str, checked: bool) -> "FormValues":
        if checked:
            toppings = self.toppings | {topping_id}
        else:
            toppings = self.toppings - {topping_id}
        return replace(self, toppings=frozenset(toppings))

    def to_payload(self) -> Dict[str, object]:
        return {
            "fullName": self.full_name,
            "size": self.size,
            "toppings": sorted(self.toppings),
        }
