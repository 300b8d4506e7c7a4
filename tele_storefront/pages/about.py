"""About, support and FAQ pages."""

from __future__ import annotations

import html

from .. import config, view
from ..handlers.common import reply_html

FAQ: tuple[tuple[str, str], ...] = (
    (
        "How do I place an order?",
        "Add products with /add <id>, review them with /cart, then send /checkout.",
    ),
    (
        "Can I order without creating an account?",
        "Yes. Your Telegram chat is your account here; orders show up in /account.",
    ),
    (
        "How do I know my order was successful?",
        "You get an order number right after /checkout and our team contacts you "
        "to confirm before delivery.",
    ),
    (
        "What payment methods do you accept?",
        "Mobile Money, bank transfer and card payments. See /payment.",
    ),
    (
        "Is payment required before delivery?",
        "Yes, online orders are paid in full before delivery. See /payment.",
    ),
    (
        "Do you offer nationwide delivery?",
        "Yes, through trusted logistics partners. Most orders arrive within 8-24 hours. "
        "See /delivery.",
    ),
    ("Do you provide warranty on products?", "Yes, see /warranty for the terms."),
    (
        "Can I return or exchange a product?",
        "Within 5 days of receiving your order, subject to /returns.",
    ),
    ("How do I contact customer support?", "Use /support."),
)


async def render(update, context) -> None:
    name = config.STORE_NAME
    text = (
        f"{view.bold(name)}\n\n"
        f"{html.escape(name)} sells quality computers, accessories and electronics "
        "with warranty-backed products and nationwide delivery.\n\n"
        f"Shop on Telegram with /products or visit "
        f"{view.link(config.redirect_url('/'), 'our website')}."
    )
    await reply_html(update, text)


async def support(update, context) -> None:
    contact = config.settings.SUPPORT_CONTACT
    text = (
        f"{view.bold('Customer support')}\n"
        f"Contact: {view.code(contact)}\n"
        "Hours: Monday to Saturday, 8am to 6pm\n\n"
        "Please include your order number from /account when you write."
    )
    await reply_html(update, text)


def search_faq(query: str) -> list[tuple[str, str]]:
    words = [w for w in query.lower().split() if w]
    if not words:
        return list(FAQ)
    return [
        (q, a) for q, a in FAQ if all(w in f"{q} {a}".lower() for w in words)
    ]


async def faq(update, context) -> None:
    query = " ".join(context.args or [])
    matches = search_faq(query)
    if not matches:
        await update.message.reply_text(
            "No answers matched. Ask us directly via /support."
        )
        return
    lines = [view.bold("Frequently asked questions")]
    for question, answer in matches:
        lines.extend(["", view.bold(question), html.escape(answer)])
    await reply_html(update, "\n".join(lines))
