# storefront/services/upi_service.py
import base64
from decimal import Decimal
from io import BytesIO
from urllib.parse import quote

import qrcode
import qrcode.image.svg
from ulid import ULID

from storefront.domain.errors import ValidationFailed
from storefront.services.pricing import money
from storefront.utils.time import utc_now


def transaction_id_for(order_id: int) -> str:
    return f"TXN_{ULID()}_{order_id}"


def _amount_string(amount: Decimal) -> str:
    #550.00 -> 550, 99.50 -> 99.50
    text = f"{money(amount):.2f}"
    return text[:-3] if text.endswith(".00") else text


class UpiService:
    """UPI deep links and QR codes. No gateway: payment is confirmed separately."""

    def __init__(self, settings):
        self.settings = settings

    def build_link(self, amount: Decimal, transaction_id: str, description: str) -> str:
        if amount is None or amount <= 0:
            raise ValidationFailed("Invalid amount for UPI payment link")
        return (
            f"upi://pay?pa={self.settings.merchant_upi_id}"
            f"&pn={quote(self.settings.merchant_name)}"
            f"&am={_amount_string(amount)}"
            f"&tn={quote(description)}"
            f"&tr={transaction_id}"
            f"&cu={self.settings.currency}"
        )

    @staticmethod
    def qr_data_url(text: str) -> str:
        image = qrcode.make(text, image_factory=qrcode.image.svg.SvgPathImage, border=2)
        buffer = BytesIO()
        image.save(buffer)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/svg+xml;base64,{encoded}"

    def fee_split(self, amount: Decimal) -> tuple[Decimal, Decimal]:
        fee = money(amount * self.settings.upi_service_fee_rate)
        return fee, money(amount - fee)

    def payment_request(self, order, transaction_id: str, description: str | None = None) -> dict:
        description = description or f"Payment for Order #{order.order_number}"
        link = self.build_link(order.total, transaction_id, description)
        fee, merchant_amount = self.fee_split(order.total)
        return {
            "transaction_id": transaction_id,
            "total_amount": money(order.total),
            "merchant_amount": merchant_amount,
            "service_fee": fee,
            "upi_link": link,
            "qr_code": self.qr_data_url(link),
            "merchant_upi": self.settings.merchant_upi_id,
            "merchant_name": self.settings.merchant_name,
            "timestamp": utc_now(),
            "order_id": order.id,
            "description": description,
        }

    def collect(self, order, customer_upi_id: str | None = None) -> dict:
        link = self.build_link(order.total, order.transaction_id, f"Payment for Order #{order.order_number}")
        return {
            "qr_code": self.qr_data_url(link),
            "upi_url": link,
            "merchant_upi": self.settings.merchant_upi_id,
            "amount": money(order.total),
            "customer_upi_id": customer_upi_id,
        }
