"""Organizations: the identity invoices belong to, and its cached paid entitlements."""
