"""
Recipients app.

Earnings accounts for the three parties an order payment is split between:
restaurants, delivery riders and the platform itself.
"""
