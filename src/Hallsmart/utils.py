from typing import Union

from Hallsmart.data.repos.settings_repo import get_setting

# -------------------- Currency helpers --------------------
# Amounts are stored in toman; the currency_unit setting picks the display unit.

def _currency_is_rial() -> bool:
    """Accepts 'rial' / 'toman' as well as legacy '1' / '0' (1 => rial)."""
    u = str(get_setting("currency_unit", "toman") or "toman").strip().lower()
    return u in {"1", "rial"}


def currency_label() -> str:
    return "rial" if _currency_is_rial() else "toman"


def format_currency(amount: Union[int, float, None]) -> str:
    if amount is None:
        amount = 0
    disp = float(amount) * 10 if _currency_is_rial() else float(amount)
    return f"{int(round(disp)):,} {currency_label()}"


def parse_amount(text) -> float:
    """Parse a user-entered amount in the display unit and return toman."""
    if text is None:
        return 0.0
    s = str(text).replace(",", "").strip()
    if not s:
        return 0.0
    val = float(s)
    if val < 0:
        raise ValueError("amount must be non-negative")
    if _currency_is_rial():
        val = val / 10.0
    return val
