from datetime import datetime, timezone
from typing import Any, Optional

from models.order import Order
from schemas.order import (
    AddressOut,
    AIFeedbackOut,
    CustomerOut,
    LineItemOut,
    OrderOut,
    RiskAnalysisOut,
)


STATUS_LABELS = {
    "on_hold": "On Hold",
    "pending": "Pending Review",
    "declined": "Declined",
    "approved": "Approved",
}


def _num(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _text(value: Any, default: Optional[str] = "") -> Optional[str]:
    """Payload value as text; Shopify sends some of these as numbers (zip, phone)."""
    if value is None or value == "":
        return default
    return str(value)


def _parse_date(value: Any) -> datetime:
    """Shopify created_at -> aware UTC datetime (now() when missing / unparsable)."""
    if isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return dt.astimezone(timezone.utc)
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def _address(raw: Any) -> Optional[dict]:
    if not isinstance(raw, dict) or not raw:
        return None
    return {
        "address1": _text(raw.get("address1")),
        "address2": _text(raw.get("address2")),
        "city": _text(raw.get("city")),
        "province": _text(raw.get("province")),
        "zip": _text(raw.get("zip")),
        "country": _text(raw.get("country")),
    }


def map_order_payload(payload: dict, shop_id: str) -> dict:
    """
    Shopify order webhook body -> column values for models.order.Order.
    Line items come back under "items" (list of OrderItem kwargs).
    """
    customer = payload.get("customer") if isinstance(payload.get("customer"), dict) else {}

    order_number = payload.get("order_number")
    if order_number is not None:
        order_number = str(order_number)
    else:
        order_number = str(payload.get("name") or "").replace("#", "")

    items = []
    for it in payload.get("line_items") or []:
        if not isinstance(it, dict):
            continue
        items.append(
            {
                "line_item_id": _str_id(it.get("id")),
                "title": _text(it.get("title"), "Unknown Product"),
                "quantity": _int(it.get("quantity"), 1) or 1,
                "price": _num(it.get("price")),
                "sku": _text(it.get("sku"), None),
            }
        )

    return {
        "shop_id": shop_id,
        "order_id": str(payload.get("id")),
        "order_number": order_number,
        "date": _parse_date(payload.get("created_at")),
        "currency": _text(payload.get("currency"), "USD"),
        "total_price": _num(payload.get("total_price") or 0),
        "financial_status": _text(payload.get("financial_status"), "unknown"),
        "fulfillment_status": _text(payload.get("fulfillment_status"), "unfulfilled"),
        "customer_id": _str_id(customer.get("id")),
        "customer_first_name": _text(customer.get("first_name"), "Guest"),
        "customer_last_name": _text(customer.get("last_name"), "Customer"),
        "customer_email": _text(customer.get("email")),
        "customer_phone": _text(customer.get("phone"), None),
        "customer_total_orders": _int(customer.get("orders_count")),
        "customer_total_spent": _num(customer.get("total_spent"), None),
        "shipping_address": _address(payload.get("shipping_address")),
        "billing_address": _address(payload.get("billing_address")),
        "items": items,
    }


def order_to_out(order: Order) -> OrderOut:
    """ORM row -> API schema. Call while the session is still open."""
    risk_out = None
    r = order.risk
    if r is not None:
        feedback = None
        if r.feedback_user_feedback:
            feedback = AIFeedbackOut(
                original_score=r.feedback_original_score if r.feedback_original_score is not None else r.score,
                user_feedback=r.feedback_user_feedback,
                user_assigned_level=r.feedback_user_assigned_level,
                feedback_date=r.feedback_date,
            )
        risk_out = RiskAnalysisOut(
            score=r.score,
            level=r.risk_level,
            factors=r.factors if isinstance(r.factors, list) else [],
            status=r.status,
            reviewed=bool(r.reviewed),
            ip_address=r.ip_address,
            checkout_speed=r.checkout_speed,
            ai_feedback=feedback,
        )

    # rows stored before values were normalised can still hold numbers
    shipping = _address(order.shipping_address)
    billing = _address(order.billing_address)

    return OrderOut(
        shop_id=order.shop_id,
        order_id=order.order_id,
        order_number=order.order_number or "",
        date=order.date,
        currency=order.currency or "USD",
        total_price=float(order.total_price or 0.0),
        financial_status=order.financial_status,
        fulfillment_status=order.fulfillment_status,
        customer=CustomerOut(
            id=order.customer_id,
            first_name=order.customer_first_name or "Guest",
            last_name=order.customer_last_name or "Customer",
            email=order.customer_email or "",
            phone=order.customer_phone,
            total_orders=order.customer_total_orders,
            total_spent=order.customer_total_spent,
        ),
        items=[
            LineItemOut(
                id=i.line_item_id,
                title=i.title,
                quantity=i.quantity or 1,
                price=float(i.price or 0.0),
                sku=i.sku,
            )
            for i in (order.items or [])
        ],
        shipping_address=AddressOut(**shipping) if shipping else None,
        billing_address=AddressOut(**billing) if billing else None,
        risk=risk_out,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def dashboard_row(order: OrderOut) -> dict:
    """Compact row used by the dashboard table and the realtime new_order event."""
    risk = order.risk
    return {
        "id": f"#{order.order_number}",
        "date": order.date.date().isoformat() if order.date else None,
        "customer": f"{order.customer.first_name} {order.customer.last_name}",
        "total": f"${order.total_price:.2f}",
        "risk_score": risk.score if risk else 0,
        "risk_level": risk.level if risk else None,
        "risk_reasons": ", ".join(risk.factors) if risk else "",
        "status": STATUS_LABELS.get(risk.status, "Approved") if risk else "Approved",
    }
