"""
Payouts app.

Splits completed order payments between restaurant, rider and platform,
pays recipients out through the RazorpayX payout gateway, and reconciles
payout outcomes from signed gateway webhooks.
"""
