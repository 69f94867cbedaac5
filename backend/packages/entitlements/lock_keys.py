"""Lock key generators for entitlements package."""


# Max time to wait acquiring the scan lock before giving up (seconds)
RENEWAL_SCAN_LOCK_ACQUIRE_TIMEOUT = 2.0


def renewal_scan_lock_key() -> str:
    """Generate lock key for the daily renewal scan.

    Only one scan may walk the due invoices at a time. Per-invoice
    renewal creation is idempotent, so a stale lock expiring mid-run is
    harmless.
    """
    return "entitlements:renewal_scan"
