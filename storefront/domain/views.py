# storefront/domain/views.py
# ORM -> response dicts shared by several services
from decimal import Decimal

from storefront.data.models.order import OrderModel
from storefront.data.models.product import ProductModel


def product_brief(product: ProductModel | None) -> dict | None:
    if product is None:
        return None
    return {
        "id": product.id,
        "title": product.title,
        "image": product.primary_image,
        "price": product.price,
        "discount_price": product.discount_price,
        "final_price": product.final_price,
        "stock": product.stock,
        "category_id": product.category_id,
    }


def payment_view(order: OrderModel) -> dict:
    return {
        "method": order.payment_method,
        "status": order.payment_status,
        "transaction_id": order.transaction_id,
        "upi_transaction_id": order.upi_transaction_id,
        "upi_id": order.upi_id,
        "upi_provider": order.upi_provider,
        "paid_at": order.paid_at,
    }


def shipping_view(order: OrderModel) -> dict:
    return {
        "method": order.shipping_method,
        "address": order.shipping_address,
        "tracking_number": order.tracking_number,
        "estimated_delivery": order.estimated_delivery,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
    }


def history_view(order: OrderModel) -> list[dict]:
    return [
        {"status": h.status, "updated_at": h.updated_at, "updated_by": h.updated_by, "note": h.note}
        for h in order.status_history
    ]


def order_brief(order: OrderModel) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "amount": order.total,
    }


def serialize_order(order: OrderModel) -> dict:
    """Full order with product and customer references resolved for display."""
    customer = order.customer
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_id": order.customer_id,
        "customer": (
            {"id": customer.id, "name": customer.name, "email": customer.email} if customer else None
        ),
        "customer_info": {
            "name": order.customer_name,
            "email": order.customer_email,
            "phone": order.customer_phone,
            "company": order.customer_company,
            "address": order.customer_address,
        },
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_info": {
                    "title": item.product_title,
                    "price": item.product_price,
                    "image": item.product_image,
                },
                "product": (
                    {"id": item.product.id, "title": item.product.title, "images": item.product.images}
                    if item.product is not None
                    else None
                ),
                "quantity": item.quantity,
                "price": item.price,
                "size": item.size,
                "variants": item.variants or [],
            }
            for item in order.items
        ],
        "pricing": {
            "subtotal": order.subtotal,
            "tax": order.tax,
            "shipping": order.shipping_fee,
            "discount": order.discount,
            "total": order.total,
        },
        "payment": payment_view(order),
        "status": order.status,
        "shipping": shipping_view(order),
        "notes": order.notes,
        "admin_notes": order.admin_notes,
        "stock_reserved": order.stock_reserved,
        "status_history": history_view(order),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def line_summary(order: OrderModel) -> dict:
    items = [
        {
            "product_id": item.product_id,
            "title": item.product_title,
            "quantity": item.quantity,
            "price": item.price,
            "total": item.price * item.quantity,
            "size": item.size,
            "variants": item.variants or [],
        }
        for item in order.items
    ]
    return {
        "item_count": sum(i["quantity"] for i in items),
        "subtotal": sum((i["total"] for i in items), Decimal("0.00")),
        "total": order.total,
        "payment_status": order.payment_status,
        "status": order.status,
        "items": items,
    }
