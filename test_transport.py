import json

import httpx
import pytest

from errors import SubmissionError
from order_state import FormValues
from transport import HTTPXOrderTransport

ENDPOINT = "http://localhost:9009/api/order"
ORDER = FormValues("Alice Smith", "M", frozenset({"3", "1"}))


def make_transport(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HTTPXOrderTransport(ENDPOINT, client=client)


@pytest.mark.anyio
async def test_posts_order_as_json():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(201, json={"message": "Thank you for your order, Alice Smith!"})

    transport = make_transport(handler)
    message = await transport.submit_order(ORDER)

    assert message == "Thank you for your order, Alice Smith!"
    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert str(requests[0].url) == ENDPOINT
    assert json.loads(requests[0].content) == {
        "fullName": "Alice Smith",
        "size": "M",
        "toppings": ["1", "3"],
    }


@pytest.mark.anyio
async def test_rejection_carries_server_message():
    def handler(request):
        return httpx.Response(422, json={"message": "size must be S or M or L"})

    with pytest.raises(SubmissionError) as exc_info:
        await make_transport(handler).submit_order(ORDER)
    assert exc_info.value.message == "size must be S or M or L"
    assert exc_info.value.status_code == 422


@pytest.mark.anyio
@pytest.mark.parametrize("response", [
    httpx.Response(500),
    httpx.Response(503, text="<html>down</html>"),
    httpx.Response(400, json=["not", "an", "object"]),
])
async def test_rejection_without_message(response):
    with pytest.raises(SubmissionError) as exc_info:
        await make_transport(lambda request: response).submit_order(ORDER)
    assert exc_info.value.message is None
    assert exc_info.value.status_code == response.status_code


@pytest.mark.anyio
async def test_success_without_message_is_a_failure():
    def handler(request):
        return httpx.Response(200, text="ok")

    with pytest.raises(SubmissionError) as exc_info:
        await make_transport(handler).submit_order(ORDER)
    assert exc_info.value.message is None


@pytest.mark.anyio
async def test_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SubmissionError) as exc_info:
        await make_transport(handler).submit_order(ORDER)
    assert exc_info.value.message is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.anyio
async def test_malformed_endpoint():
    def handler(request):
        raise httpx.InvalidURL("Invalid port: 'abc'")

    with pytest.raises(SubmissionError) as exc_info:
        await make_transport(handler).submit_order(ORDER)
    assert exc_info.value.message is None
    assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)


@pytest.mark.anyio
async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(SubmissionError) as exc_info:
        await make_transport(handler).submit_order(ORDER)
    assert exc_info.value.context["timeout_s"] == 10.0


@pytest.mark.anyio
async def test_injected_client_is_left_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
    async with HTTPXOrderTransport(ENDPOINT, client=client):
        pass
    assert not client.is_closed
    await client.aclose()
