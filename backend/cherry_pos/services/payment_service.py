# Overview: Service-layer operations for payments taken against orders.

"""
Payments

An order is paid by one or more payments (split tender). The POS checkout
records a single payment for the full total when the order is placed;
further payments settle any balance left on an order.

- amount must be positive and may not exceed the outstanding balance
- cancelled orders take no payments
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..extensions import db
from ..models import Order, Payment
from .concurrency import lock_for_update


class PaymentError(Exception):
    """Raised for payment operation errors."""
    pass


METHOD_CASH = "cash"
METHOD_CARD = "card"
METHOD_BANK_TRANSFER = "bank_transfer"
METHOD_MOBILE_MONEY = "mobile_money"
PAYMENT_METHODS = (METHOD_CASH, METHOD_CARD, METHOD_BANK_TRANSFER, METHOD_MOBILE_MONEY)

PAYMENT_COMPLETED = "completed"

PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PARTIAL = "partial"
PAYMENT_STATUS_PAID = "paid"


def amount_paid(order: Order) -> Decimal:
    return sum(
        (Decimal(str(p.amount)) for p in order.payments if p.status == PAYMENT_COMPLETED),
        Decimal("0"),
    )


def balance_due(order: Order) -> Decimal:
    return max(Decimal("0"), Decimal(str(order.total_amount or 0)) - amount_paid(order))


def payment_status(order: Order) -> str:
    paid = amount_paid(order)
    if paid <= 0:
        return PAYMENT_STATUS_UNPAID
    if paid < Decimal(str(order.total_amount or 0)):
        return PAYMENT_STATUS_PARTIAL
    return PAYMENT_STATUS_PAID


def _amount(value) -> Decimal:
    if isinstance(value, bool):
        raise PaymentError("amount must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise PaymentError("amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise PaymentError("Payment amount must be positive")
    return amount.quantize(Decimal("0.01"))


def record_payment(
    order: Order,
    payment_method: str,
    amount: Decimal,
    reference: str | None = None,
    created_by: int | None = None,
) -> Payment:
    """Attach a completed payment to order. The caller commits."""
    if payment_method not in PAYMENT_METHODS:
        raise PaymentError(f"Invalid payment method: {payment_method}")

    payment = Payment(
        payment_method=payment_method,
        amount=amount,
        status=PAYMENT_COMPLETED,
        reference=reference,
        created_by=created_by,
    )
    order.payments.append(payment)
    return payment


def add_payment(
    order_id: int,
    payment_method: str,
    amount=None,
    reference: str | None = None,
    created_by: int | None = None,
) -> Payment:
    """
    Take a payment against an existing order. amount defaults to the
    outstanding balance.

    Raises:
        PaymentError: unknown order, cancelled or fully paid order, invalid
            method, or an amount that is not positive or exceeds the balance
    """
    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if not order:
        raise PaymentError("Order not found")
    if order.status == "cancelled":
        raise PaymentError("Cannot add payment to a cancelled order")

    balance = balance_due(order)
    if balance <= 0:
        raise PaymentError("Order is already paid")

    value = balance if amount is None else _amount(amount)
    if value > balance:
        raise PaymentError(f"Payment exceeds balance due ({float(balance):.2f})")

    payment = record_payment(order, payment_method, value, reference=reference, created_by=created_by)
    db.session.commit()
    return payment
