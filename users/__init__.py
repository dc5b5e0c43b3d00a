"""
Users app package for the JETZZ backend.

Holds the `UserProfile` (billing address, creator earnings) and the KYC
flow that verifies creators through Stripe Identity once their lifetime
earnings pass the configured threshold.
"""
