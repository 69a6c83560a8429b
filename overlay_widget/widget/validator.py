from __future__ import annotations

import re
from dataclasses import dataclass, fields

# local-part @ domain . label; deliberately loose.
_EMAIL_SHAPE = re.compile(r".+@.+\..+")

NAME_MESSAGE = "Please enter your name"
EMAIL_MESSAGE = "Please enter a valid email"


@dataclass
class CheckoutForm:
    buyer_name: str = ""
    buyer_email: str = ""
    recipient_email: str = ""

    def normalized(self) -> CheckoutForm:
        return CheckoutForm(
            buyer_name=(self.buyer_name or "").strip(),
            buyer_email=(self.buyer_email or "").strip(),
            recipient_email=(self.recipient_email or "").strip(),
        )


FORM_FIELDS = frozenset(f.name for f in fields(CheckoutForm))


def is_valid_name(name: str | None) -> bool:
    return bool((name or "").strip())


def is_valid_email(email: str | None) -> bool:
    return bool(_EMAIL_SHAPE.search((email or "").strip()))


def validate_checkout(form: CheckoutForm) -> dict[str, str]:
    """Check every field and return a message per failing field (empty when valid)."""
    errors: dict[str, str] = {}
    if not is_valid_name(form.buyer_name):
        errors["buyer_name"] = NAME_MESSAGE
    if not is_valid_email(form.buyer_email):
        errors["buyer_email"] = EMAIL_MESSAGE
    if not is_valid_email(form.recipient_email):
        errors["recipient_email"] = EMAIL_MESSAGE
    return errors


__all__ = [
    "CheckoutForm",
    "FORM_FIELDS",
    "NAME_MESSAGE",
    "EMAIL_MESSAGE",
    "is_valid_name",
    "is_valid_email",
    "validate_checkout",
]
