"""
Entitlements package - the subscription billing and feature-entitlement ledger.

Tracks which product features an organization has purchased (invoices and
their feature line items), what it owes and has paid, and whether its paid
account is currently active. Renewal invoices are threaded into chains that
start at the organization's original purchase.

Every committed invoice change publishes an organization refresh message;
the organizations package consumes it.
"""
