"""
Credit Module

Consumer credit loans against a customer's credit line: loan creation,
equal-installment schedules, and payment allocation with early-payment
discounts and late-payment penalties. All financial math uses Decimal.
"""

__version__ = "1.0.0"
