"""Entitlement slug allow-list and ledger constants."""

# Slugs checked by product code. Only these can be stored on a feature;
# anything else is dropped on write.
REG_FIELDS = (
    "reg_affiliation",
    "reg_secondary_serial",
    "reg_phone",
    "reg_address",
)

EXPECTED_SLUGS = (
    "csv_exports",
    "messages",
    "geolocated_messages",
    "abandoned_bike_messages",
    "avery_export",
    "bike_search",
    "show_bulk_import",
    "show_recoveries",
    "show_partial_registrations",
    "show_multi_serial",
    "skip_ownership_email",
    "unstolen_notifications",
    "bike_codes",
    "impound_bikes",
    "passwordless_users",
    "regional_bike_counts",
    "regional_stickers",
) + REG_FIELDS

DEFAULT_CURRENCY = "USD"
