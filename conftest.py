import anyio
import pytest

from errors import SubmissionError
from order_form import FormController
from order_schema import OrderSchema
from validation import ValidationEngine

pytest_plugins = ("anyio",)


@pytest.fixture(scope="session")
def anyio_backend():
    """Run async tests on asyncio only."""
    return "asyncio"


class FakeTransport:
    """Records submitted orders and answers with a canned outcome."""

    def __init__(self, message="Thank you for your order!", error=None):
        self.message = message
        self.error = error
        self.sent = []
        self.gate = None

    async def submit_order(self, values):
        self.sent.append(values)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.message


class GatedSchema(OrderSchema):
    """Schema whose field checks only finish when the test releases them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.started = {}
        self.gates = {}

    def _event(self, table, key):
        return table.setdefault(key, anyio.Event())

    def validate_field(self, name, value):
        result = super().validate_field(name, value)
        started = self._event(self.started, (name, value))
        gate = self._event(self.gates, (name, value))

        async def wait():
            started.set()
            await gate.wait()
            return result
        return wait()

    async def wait_started(self, name, value):
        await self._event(self.started, (name, value)).wait()

    def release(self, name, value):
        self._event(self.gates, (name, value)).set()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def form(transport):
    return FormController(ValidationEngine(OrderSchema()), transport)


@pytest.fixture
def gated_schema():
    return GatedSchema()


@pytest.fixture
def gated_form(gated_schema, transport):
    return FormController(ValidationEngine(gated_schema), transport)


@pytest.fixture
def rejecting_transport():
    return FakeTransport(error=SubmissionError("Size must be one of S, M, L"))
