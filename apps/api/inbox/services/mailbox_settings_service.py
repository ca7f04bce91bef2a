"""Per-deployment mailbox settings that shape conversation search."""

from __future__ import annotations

from inbox.core.config import settings
from inbox.db.models import PlatformCustomer
from inbox.services.conversation_filters import to_minor_units


def get_vip_threshold() -> int | None:
    """VIP threshold in whole dollars, or None when VIP tagging is off."""
    return settings.VIP_THRESHOLD


def is_customer_value_metadata_enabled() -> bool:
    """True when a customer metadata source feeds platform customer values."""
    return bool(settings.CUSTOMER_METADATA_API_URL.strip())


def is_vip_customer(customer: PlatformCustomer | None, threshold: int | None) -> bool:
    if customer is None or customer.value is None or threshold is None:
        return False
    return customer.value >= to_minor_units(threshold)
