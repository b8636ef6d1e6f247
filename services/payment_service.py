"""Ссылки на оплату брони через ЮKassa"""

import logging
import uuid
from typing import Optional

import httpx

from services.exceptions import ExternalServiceError, ValidationError

DESCRIPTION_MAX_LENGTH = 128
DEFAULT_DESCRIPTION = "Оплата бронирования"


def build_description(
    court_name: str, date_str: str, start_time: str, end_time: str, comment: str = ""
) -> str:
    """Назначение платежа (не длиннее 128 символов)"""
    text = f"Бронь корта: {court_name}, {date_str} {start_time}–{end_time}. {comment}"
    return text[:DESCRIPTION_MAX_LENGTH]


class YooKassaGateway:
    """Создание платежа в ЮKassa и получение confirmation_url"""

    def __init__(
        self,
        shop_id: Optional[str],
        secret_key: Optional[str],
        api_url: str = "https://api.yookassa.ru/v3/payments",
        return_url: str = "https://example.com",
        timeout: float = 10.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.shop_id = shop_id
        self.secret_key = secret_key
        self.api_url = api_url
        self.return_url = return_url
        self.http = http or httpx.AsyncClient(timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.shop_id and self.secret_key)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def create_payment_link(
        self, amount: int, description: str, return_url: Optional[str] = None
    ) -> str:
        """Создать платёж и вернуть ссылку на оплату

        Args:
            amount: сумма в рублях (целое, > 0)
            description: назначение платежа
            return_url: куда вернуть клиента после оплаты

        Raises:
            ValidationError: если сумма не положительная
            ExternalServiceError: если ЮKassa не настроена, отклонила платёж
                или не вернула ссылку
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("Payment amount must be a positive integer")
        if not self.is_configured:
            raise ExternalServiceError("YOOKASSA_SHOP_ID and YOOKASSA_SECRET_KEY are not set")

        payload = {
            "amount": {"value": f"{amount}.00", "currency": "RUB"},
            "capture": True,
            "confirmation": {
                "type": "redirect",
                "return_url": return_url or self.return_url,
            },
            "description": (description or DEFAULT_DESCRIPTION)[:DESCRIPTION_MAX_LENGTH],
        }
        headers = {"Idempotence-Key": str(uuid.uuid4())}

        try:
            response = await self.http.post(
                self.api_url,
                json=payload,
                headers=headers,
                auth=(self.shop_id, self.secret_key),
            )
        except httpx.HTTPError as e:
            logging.error(f"YooKassa request failed: {e}")
            raise ExternalServiceError("Payment provider is unavailable") from e

        if response.status_code >= 400:
            logging.error(f"YooKassa error: {response.status_code} {response.text}")
            raise ExternalServiceError("Payment provider rejected the request")

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError("Payment provider returned invalid JSON") from e

        confirmation_url = (data.get("confirmation") or {}).get("confirmation_url")
        if not confirmation_url:
            raise ExternalServiceError("Payment provider returned no confirmation URL")

        logging.info(f"Payment {data.get('id')} created for {amount} RUB")
        return confirmation_url
