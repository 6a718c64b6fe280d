"""
Scheduling Gateways
"""

from .http_payment_gateway import HttpPaymentGateway

__all__ = ["HttpPaymentGateway"]
