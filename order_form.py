import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

import anyio

from errors import SubmissionError, UnknownToppingError
from order_state import FIELD_NAMES, SIZE_CHOICES, FormValues, normalize_field_name
from transport import OrderTransport
from validation import ValidationEngine

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong."

FieldErrors = Dict[str, str]


class FormState(Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILURE = "failure"


def apply_field_error(errors: FieldErrors, name: str, message: str) -> FieldErrors:
    """Return a new error map with ``name`` set to ``message``."""
    return {**errors, name: message}


@dataclass(frozen=True)
class ToppingChoice:
    topping_id: str
    text: str
    checked: bool


@dataclass(frozen=True)
class FormView:
    """Everything a renderer needs to draw the form."""
    values: FormValues
    errors: FieldErrors
    submit_enabled: bool
    success_message: str
    failure_message: str
    state: FormState
    sizes: Tuple[Tuple[str, str], ...]
    toppings: Tuple[ToppingChoice, ...]


class FormController:
    """Owns the values of one order form and drives its submission.

    Every change replaces ``values`` before the first await, so input handlers
    can run concurrently. Validation results are tagged with a sequence number
    when the change is committed and are dropped if a newer change to the same
    field (or, for the submit flag, to any field) has been committed by the
    time they resolve.
    """

    def __init__(self, engine: ValidationEngine, transport: OrderTransport):
        self.engine = engine
        self.transport = transport
        self.values = FormValues()
        self.errors: FieldErrors = {}
        self.submit_enabled = False
        self.success_message = ""
        self.failure_message = ""
        self.state = FormState.EDITING
        self.last_outcome: Optional[FormState] = None
        self._field_seq = {name: 0 for name in FIELD_NAMES}
        self._form_seq = 0

    async def on_field_change(self, name: str, value: str) -> None:
        """Handle a change of the name input or the size select."""
        name = normalize_field_name(name)
        await self._commit(self.values.with_field(name, value), name)

    async def on_topping_toggle(self, topping_id: str, checked: bool) -> None:
        if checked and topping_id not in self.engine.schema.catalog:
            raise UnknownToppingError(f"Unknown topping: {topping_id!r}")
        await self._commit(self.values.with_topping(topping_id, checked), "toppings")

    async def _commit(self, values: FormValues, name: str) -> None:
        self.values = values
        self._field_seq[name] += 1
        self._form_seq += 1
        # the old verdict does not cover the new values
        self.submit_enabled = False
        field_ticket = self._field_seq[name]
        form_ticket = self._form_seq

        async with anyio.create_task_group() as tg:
            tg.start_soon(self._refresh_error, name, getattr(values, name), field_ticket)
            tg.start_soon(self._refresh_submit_enabled, values, form_ticket)

    async def _refresh_error(self, name: str, value, ticket: int) -> None:
        message = await self.engine.validate_one(name, value)
        if self._field_seq[name] != ticket:
            logger.debug(f"Dropping stale validation of {name} (#{ticket})")
            return
        # read self.errors only now; other fields may have changed meanwhile
        self.errors = apply_field_error(self.errors, name, message)

    async def _refresh_submit_enabled(self, values: FormValues, ticket: int) -> None:
        submittable = await self.engine.validate_submittable(values)
        if self._form_seq != ticket:
            return
        self.submit_enabled = submittable

    async def on_submit(self) -> bool:
        """Send the order if the form allows it.

        Returns ``False`` without doing anything when submit is disabled, a
        submission is already running, or the current values no longer pass.
        """
        if not self.submit_enabled or self.state is FormState.SUBMITTING:
            return False

        self.state = FormState.SUBMITTING
        values = self.values
        try:
            if not await self.engine.validate_submittable(values):
                logger.debug("Submit refused, values changed since the last check")
                return False
            logger.info(f"Submitting order for {values.full_name!r}")
            message = await self.transport.submit_order(values)
        except SubmissionError as e:
            logger.warning(f"Order submission failed: {e}")
            self._fail(e.message)
        except Exception:
            logger.exception("Order transport raised an unexpected error")
            self._fail(None)
        else:
            self.success_message = message
            self.failure_message = ""
            self.last_outcome = FormState.SUCCESS
            await self._reset()
        finally:
            self.state = FormState.EDITING
        return True

    def _fail(self, reason: Optional[str]) -> None:
        self.success_message = ""
        self.failure_message = reason or GENERIC_FAILURE
        self.last_outcome = FormState.FAILURE

    async def _reset(self) -> None:
        self.values = FormValues()
        self.errors = {}
        # invalidate validations still running for the old values
        for name in self._field_seq:
            self._field_seq[name] += 1
        self._form_seq += 1
        await self._refresh_submit_enabled(self.values, self._form_seq)

    def snapshot(self) -> FormView:
        catalog = self.engine.schema.catalog
        return FormView(
            values=self.values,
            errors=dict(self.errors),
            submit_enabled=self.submit_enabled,
            success_message=self.success_message,
            failure_message=self.failure_message,
            state=self.state,
            sizes=SIZE_CHOICES,
            toppings=tuple(
                ToppingChoice(t.topping_id, t.text, t.topping_id in self.values.toppings)
                for t in catalog
            ),
        )
