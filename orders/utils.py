import secrets
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

KOBO_PER_NAIRA = 100


def gen_order_id():
    return secrets.token_hex(10)


def gen_order_number():
    # e.g., GAB251019123456
    now = timezone.now()
    millis = int(now.timestamp() * 1000)
    return f"GAB{now.strftime('%y%m%d')}{str(millis)[-6:]}"


def naira_to_kobo(naira) -> int:
    q = (Decimal(str(naira)) * KOBO_PER_NAIRA).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(q)


def kobo_to_naira(kobo) -> Decimal:
    return Decimal(int(kobo or 0)) / KOBO_PER_NAIRA


def format_naira(kobo) -> str:
    """Render a kobo amount for customers, e.g. ``₦1,500`` or ``₦1,234.50``."""
    naira = kobo_to_naira(kobo)
    s = f"{naira:,.2f}"
    if s.endswith(".00"):
        s = s[:-3]
    return f"₦{s}"
