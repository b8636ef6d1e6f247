"""Тесты клиента ЮKassa"""

import json

import httpx
import pytest

from services.exceptions import ExternalServiceError, ValidationError
from services.payment_service import YooKassaGateway, build_description

API_URL = "https://api.yookassa.test/v3/payments"


def make_gateway(handler, shop_id="shop", secret_key="secret"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YooKassaGateway(
        shop_id,
        secret_key,
        api_url=API_URL,
        return_url="https://club.example/paid",
        http=http,
    )


class TestBuildDescription:
    @pytest.mark.unit
    def test_format(self):
        text = build_description("Корт 1", "2025-03-03", "10:00", "11:00", "Иванов")
        assert text == "Бронь корта: Корт 1, 2025-03-03 10:00–11:00. Иванов"

    @pytest.mark.unit
    def test_truncated(self):
        text = build_description("Корт 1", "2025-03-03", "10:00", "11:00", "x" * 300)
        assert len(text) == 128


class TestCreatePaymentLink:
    """Создание платежа"""

    @pytest.mark.asyncio
    async def test_success(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(
                200,
                json={
                    "id": "pay-1",
                    "status": "pending",
                    "confirmation": {
                        "type": "redirect",
                        "confirmation_url": "https://yoomoney.test/checkout/pay-1",
                    },
                },
            )

        gateway = make_gateway(handler)
        url = await gateway.create_payment_link(1500, "Бронь корта")
        await gateway.aclose()

        assert url == "https://yoomoney.test/checkout/pay-1"
        request = captured["request"]
        assert str(request.url) == API_URL
        assert request.headers["Idempotence-Key"]
        assert request.headers["Authorization"].startswith("Basic ")
        body = json.loads(request.content)
        assert body["amount"] == {"value": "1500.00", "currency": "RUB"}
        assert body["capture"] is True
        assert body["confirmation"] == {
            "type": "redirect",
            "return_url": "https://club.example/paid",
        }
        assert body["description"] == "Бронь корта"

    @pytest.mark.asyncio
    async def test_custom_return_url(self):
        captured = {}

        def handler(request):
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"confirmation": {"confirmation_url": "u"}})

        gateway = make_gateway(handler)
        await gateway.create_payment_link(100, "x", return_url="https://other.example")

        assert captured["body"]["confirmation"]["return_url"] == "https://other.example"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100, 10.5, True])
    async def test_invalid_amount(self, amount):
        def handler(request):
            raise AssertionError("request must not be sent")

        with pytest.raises(ValidationError):
            await make_gateway(handler).create_payment_link(amount, "x")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        def handler(request):
            raise AssertionError("request must not be sent")

        gateway = make_gateway(handler, shop_id=None, secret_key=None)

        assert gateway.is_configured is False
        with pytest.raises(ExternalServiceError):
            await gateway.create_payment_link(100, "x")

    @pytest.mark.asyncio
    async def test_provider_error_status(self):
        gateway = make_gateway(lambda request: httpx.Response(401, json={"type": "error"}))

        with pytest.raises(ExternalServiceError):
            await gateway.create_payment_link(100, "x")

    @pytest.mark.asyncio
    async def test_missing_confirmation_url(self):
        gateway = make_gateway(lambda request: httpx.Response(200, json={"id": "pay-1"}))

        with pytest.raises(ExternalServiceError):
            await gateway.create_payment_link(100, "x")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        gateway = make_gateway(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(ExternalServiceError):
            await gateway.create_payment_link(100, "x")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError):
            await make_gateway(handler).create_payment_link(100, "x")
