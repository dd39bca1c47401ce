"""Shipping and tax policies.

A policy is any callable ``(subtotal, lines) -> Decimal``. The active ones are
named by dotted path in ``SHOP_SHIPPING_POLICY`` / ``SHOP_TAX_POLICY``.
"""
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string

ZERO = Decimal("0.00")


def zero_shipping(subtotal, lines):
    return ZERO


def zero_tax(subtotal, lines):
    return ZERO


def get_shipping_policy():
    return import_string(settings.SHOP_SHIPPING_POLICY)


def get_tax_policy():
    return import_string(settings.SHOP_TAX_POLICY)


def quantize(amount) -> Decimal:
    return Decimal(amount).quantize(Decimal("0.01"))
