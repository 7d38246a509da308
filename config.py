import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from order_form import FormController
from order_schema import OrderSchema
from order_state import DEFAULT_TOPPINGS, ToppingCatalog, load_menu
from transport import HTTPXOrderTransport, OrderTransport
from validation import ValidationEngine

DEFAULT_ENDPOINT = "http://localhost:9009/api/order"


@dataclass(frozen=True)
class Settings:
    order_endpoint: str = DEFAULT_ENDPOINT
    order_timeout: float = 10.0
    menu_path: Optional[str] = None


def load_settings() -> Settings:
    """Read settings from the environment, after loading a ``.env`` file if present."""
    load_dotenv()
    return Settings(
        order_endpoint=os.getenv("ORDER_ENDPOINT", DEFAULT_ENDPOINT),
        order_timeout=float(os.getenv("ORDER_TIMEOUT", "10")),
        menu_path=os.getenv("MENU_PATH") or None,
    )


def load_catalog(settings: Settings) -> ToppingCatalog:
    if settings.menu_path:
        return load_menu(settings.menu_path)
    return DEFAULT_TOPPINGS


def build_controller(
    settings: Optional[Settings] = None,
    transport: Optional[OrderTransport] = None,
) -> FormController:
    settings = settings or load_settings()
    schema = OrderSchema(load_catalog(settings))
    if transport is None:
        transport = HTTPXOrderTransport(settings.order_endpoint, timeout_s=settings.order_timeout)
    return FormController(ValidationEngine(schema), transport)
