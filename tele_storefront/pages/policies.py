"""Store policy pages."""

from __future__ import annotations

import html

from .. import config, view
from ..handlers.common import reply_html

POLICIES: dict[str, tuple[str, tuple[str, ...]]] = {
    "warranty": (
        "Warranty Policy",
        (
            "New products carry the manufacturer's warranty stated on the product page.",
            "Warranty covers manufacturing defects, not physical or liquid damage.",
            "Keep your order number; it is your proof of purchase.",
        ),
    ),
    "payment": (
        "Payment Policy",
        (
            "We accept Mobile Money, bank transfer and card payments.",
            "Online orders are paid in full before delivery.",
            "We never ask for your PIN or card details over chat.",
        ),
    ),
    "delivery": (
        "Delivery Policy",
        (
            "We deliver nationwide through trusted logistics partners.",
            "Most orders arrive within 8-24 hours of confirmation.",
            "Delivery is free for most orders; remote areas may pay a small fee.",
        ),
    ),
    "returns": (
        "Return & Refund Policy",
        (
            "Report issues within 5 days of receiving your order.",
            "Items must be unused and in original packaging.",
            "After 5 days, returns are only accepted for warranty-related claims.",
        ),
    ),
    "privacy": (
        "Privacy Policy",
        (
            "We store your chat id, cart and orders to serve you.",
            "We do not sell your data to third parties.",
            "Ask /support to delete your data at any time.",
        ),
    ),
    "terms": (
        "Terms of Use",
        (
            "Prices and availability may change without notice.",
            "Orders are confirmed only after our team verifies them.",
            "By ordering you agree to the payment, delivery and return policies.",
        ),
    ),
}


def render_policy(key: str) -> str:
    title, points = POLICIES[key]
    lines = [view.bold(f"{config.STORE_NAME} {title}")]
    lines.extend(f"• {html.escape(p)}" for p in points)
    lines.append("")
    lines.append(view.link(config.redirect_url(f"/{key}"), "Full policy on the website"))
    return "\n".join(lines)


def _policy_page(key: str):
    async def page(update, context) -> None:
        await reply_html(update, render_policy(key))

    page.__name__ = key
    return page


warranty = _policy_page("warranty")
payment = _policy_page("payment")
delivery = _policy_page("delivery")
returns = _policy_page("returns")
privacy = _policy_page("privacy")
terms = _policy_page("terms")
