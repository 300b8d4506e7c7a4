"""View layer for formatting Telegram messages (HTML)."""

from __future__ import annotations

import html
import math
import re
import time
from typing import Any, Iterable

from .loader import LoadAttempt, LoadStatus

_STATUS_ICON = {
    LoadStatus.PENDING: "⚪",
    LoadStatus.LOADING: "⏳",
    LoadStatus.SUCCESS: "✅",
    LoadStatus.ERROR: "❌",
}


def bold(text: str) -> str:
    return f"<b>{html.escape(str(text))}</b>"


def code(text: str) -> str:
    return f"<code>{html.escape(str(text))}</code>"


def italic(text: str) -> str:
    return f"<i>{html.escape(str(text))}</i>"


def chunk(msg: str, size: int = 4000) -> list[str]:
    """Split message into chunks ensuring no chunk exceeds size limit."""
    if len(msg) <= size:
        return [msg]

    lines = msg.splitlines()
    chunks: list[str] = []
    current = ""
    for line in lines:
        if len(line) > size:
            if current:
                chunks.append(current)
                current = ""
            start = 0
            while start < len(line):
                chunks.append(line[start : start + size])
                start += size
            continue
        added_length = len(line) + (1 if current else 0)
        if len(current) + added_length > size and current:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line
    if current:
        chunks.append(current)
    return chunks


def format_price(amount: Any, currency: str = "GHS") -> str:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return "n/a"
    return f"{currency} {value:,.2f}"


def _stock_label(product: dict[str, Any]) -> str:
    stock = product.get("stock_quantity")
    if stock is None:
        return ""
    try:
        stock = int(stock)
    except (TypeError, ValueError):
        return ""
    if stock <= 0:
        return " • <i>out of stock</i>"
    if stock <= 5:
        return f" • <i>only {stock} left</i>"
    return ""


def render_product_list(
    title: str, products: list[dict[str, Any]], currency: str = "GHS"
) -> str:
    if not products:
        return "<i>No products found.</i>"
    lines = [bold(title)]
    for idx, p in enumerate(products, start=1):
        name = html.escape(str(p.get("name") or "Unnamed"))
        price = html.escape(format_price(p.get("price"), currency))
        lines.append(f"{idx}. {name} - {price}{_stock_label(p)}")
        lines.append(f"   /product {html.escape(str(p.get('id', '')))}")
    return "\n".join(lines)


def render_product(
    product: dict[str, Any], currency: str = "GHS", url: str | None = None
) -> str:
    pid = str(product.get("id", ""))
    lines = [bold(product.get("name") or "Unnamed")]
    price = format_price(product.get("price"), currency)
    original = product.get("original_price")
    if original and original != product.get("price"):
        lines.append(f"{html.escape(price)} <s>{html.escape(format_price(original, currency))}</s>")
    else:
        lines.append(html.escape(price))
    if product.get("category"):
        lines.append(f"Category: {html.escape(str(product['category']))}")
    stock = _stock_label(product)
    if stock:
        lines.append(stock.removeprefix(" • "))
    description = str(product.get("description") or "").strip()
    if description:
        lines.extend(["", html.escape(description[:800])])
    lines.extend(
        [
            "",
            f"Add to cart: /add {html.escape(pid)}",
            f"Save: /wish {html.escape(pid)}",
            f"Compare: /compare {html.escape(pid)}",
        ]
    )
    if url:
        lines.append(link(url, "View on website"))
    return "\n".join(lines)


_SPEC_PATTERNS = (
    ("RAM", re.compile(r"(\d+\s*GB)\s*RAM", re.IGNORECASE)),
    ("Storage", re.compile(r"(\d+\s*(?:GB|TB))\s*(?:SSD|HDD|storage)", re.IGNORECASE)),
    ("Processor", re.compile(r"((?:Intel|AMD)\s[\w -]+?)(?=[,.;]|$)", re.IGNORECASE)),
)


def parse_specifications(product: dict[str, Any]) -> dict[str, str]:
    """Extract `key: value` pairs, falling back to hints in the description."""
    specs: dict[str, str] = {}
    raw = product.get("specifications")
    if isinstance(raw, dict):
        specs.update({str(k).strip(): str(v).strip() for k, v in raw.items()})
    elif isinstance(raw, str):
        for pair in raw.split(","):
            key, sep, value = pair.partition(":")
            if sep and key.strip() and value.strip():
                specs[key.strip()] = value.strip()
    description = str(product.get("description") or "")
    known = {key.lower() for key in specs}
    for label, pattern in _SPEC_PATTERNS:
        if label.lower() in known:
            continue
        match = pattern.search(description)
        if match:
            specs[label] = match.group(1).strip()
    return specs


def _stock_text(product: dict[str, Any]) -> str:
    try:
        stock = int(product.get("stock_quantity"))
    except (TypeError, ValueError):
        return "n/a"
    return f"{stock} in stock" if stock > 0 else "out of stock"


def render_comparison(products: list[dict[str, Any]], currency: str = "GHS") -> str:
    lines = [bold(f"Comparing {len(products)} products:")]
    for idx, p in enumerate(products, start=1):
        lines.append(
            f"{idx}. {html.escape(str(p.get('name') or 'Unnamed'))} "
            f"{code(p.get('id', ''))}"
        )

    rows: list[tuple[str, list[str]]] = [
        ("Price", [format_price(p.get("price"), currency) for p in products]),
        ("Category", [str(p.get("category") or "-") for p in products]),
        ("Stock", [_stock_text(p) for p in products]),
        ("Warranty", [str(p.get("warranty") or "-") for p in products]),
    ]
    specs = [parse_specifications(p) for p in products]
    spec_keys: list[str] = []
    for entry in specs:
        for key in entry:
            if key not in spec_keys:
                spec_keys.append(key)
    rows.extend((key, [entry.get(key, "-") for entry in specs]) for key in spec_keys)

    for label, values in rows:
        lines.append("")
        lines.append(bold(label))
        for idx, value in enumerate(values, start=1):
            lines.append(f"{idx}. {html.escape(value)}")

    priced = []
    for p in products:
        try:
            priced.append((float(p.get("price")), p))
        except (TypeError, ValueError):
            continue
    if len(priced) > 1:
        cheapest = min(priced, key=lambda pair: pair[0])[1]
        lines.append("")
        lines.append(f"💰 Best price: {html.escape(str(cheapest.get('name') or 'Unnamed'))}")
    lines.append("")
    lines.append("Clear the list: /compare clear")
    return "\n".join(lines)


def render_cart(cart, currency: str = "GHS") -> str:
    if cart.is_empty():
        return "🛒 Your cart is empty. Browse with /products"
    lines = [bold(f"Your cart ({cart.count} item{'s' if cart.count != 1 else ''}):")]
    for item in cart.items.values():
        lines.append(
            f"• {html.escape(item.name)} × {item.quantity} - "
            f"{html.escape(format_price(item.subtotal, currency))} "
            f"{code(item.product_id)}"
        )
    lines.append(f"{bold('Total:')} {html.escape(format_price(cart.total, currency))}")
    lines.append("")
    lines.append("Checkout: /checkout • Empty: /clearcart")
    return "\n".join(lines)


def render_order_confirmation(order: dict[str, Any], currency: str = "GHS") -> str:
    lines = [
        "🎉 " + bold("Thank you for your order!"),
        f"Order: {code(order.get('id', 'pending'))}",
        f"Total: {html.escape(format_price(order.get('total_amount'), currency))}",
        f"Status: {html.escape(str(order.get('status') or 'pending'))}",
    ]
    if order.get("affiliate_code"):
        lines.append(f"Referral: {code(order['affiliate_code'])}")
    lines.extend(["", "We will contact you to confirm delivery."])
    return "\n".join(lines)


def render_orders(title: str, orders: list[dict[str, Any]], currency: str = "GHS") -> str:
    if not orders:
        return "<i>No orders yet.</i>"
    lines = [bold(title)]
    for o in orders:
        created = html.escape(str(o.get("created_at") or "")[:16].replace("T", " "))
        lines.append(
            f"{code(o.get('id', '?'))} {html.escape(str(o.get('status') or 'pending'))} "
            f"{html.escape(format_price(o.get('total_amount'), currency))} {created}".rstrip()
        )
    return "\n".join(lines)


def _format_timestamp(ts: float | None) -> str:
    if not ts:
        return "never"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts))


def _p95(samples: list[float]) -> float:
    if not samples:
        return 0.0
    ordered = sorted(samples)
    idx = max(0, math.ceil(0.95 * len(ordered)) - 1)
    return ordered[idx]


def render_page_metrics(metrics: dict) -> str:
    if not metrics:
        return "<i>No page metrics recorded yet.</i>"

    lines = [bold("Page Metrics:")]
    for name in sorted(metrics.keys()):
        entry = metrics[name]
        p95 = _p95(entry.latencies_s)
        last_run = _format_timestamp(entry.last_run_ts)
        line = (
            f"{code(name)} runs {entry.count} ok {entry.success} err {entry.error} "
            f"load-fail {entry.load_failures} rl {entry.rate_limited} "
            f"avg {entry.avg_latency_s * 1000:.1f}ms p95 {p95 * 1000:.1f}ms "
            f"max {entry.max_latency_s * 1000:.1f}ms last {html.escape(last_run)}"
        )
        lines.append(line)
    return "\n".join(lines)


def render_load_snapshot(
    snapshot: dict[str, LoadAttempt], now: float | None = None
) -> str:
    """Render per-page loader state for diagnostics."""
    if not snapshot:
        return "<i>No deferred pages registered.</i>"
    now = time.monotonic() if now is None else now
    counts: dict[LoadStatus, int] = {s: 0 for s in LoadStatus}
    lines = []
    for name in sorted(snapshot):
        attempt = snapshot[name]
        counts[attempt.status] += 1
        parts = [
            f"{_STATUS_ICON[attempt.status]} {code(name)} {attempt.status.value}",
            f"retries {attempt.retry_count}/{attempt.max_retries}",
        ]
        if attempt.started_at is not None:
            end = attempt.finished_at if attempt.finished_at is not None else now
            parts.append(f"{(end - attempt.started_at) * 1000:.0f}ms")
        if attempt.error is not None:
            parts.append(f"error: {code(attempt.error)}")
        lines.append(" ".join(parts))
    summary = " ".join(
        f"{status.value} {counts[status]}" for status in LoadStatus if counts[status]
    )
    return "\n".join([bold("Page loaders:") + f" <i>{summary}</i>", *lines])


def render_debug(entries: dict[str, Iterable]) -> str:
    if not entries:
        return "<i>No recent errors.</i>"
    lines = [bold("Recent errors:")]
    for page in sorted(entries):
        for entry in entries[page]:
            stamp = _format_timestamp(entry.timestamp)
            ident = f" {code(entry.error_id)}" if entry.error_id else ""
            lines.append(f"{code(page)}{ident} {html.escape(stamp)} {html.escape(entry.message)}")
            if entry.details:
                lines.append(f"  <i>{html.escape(entry.details[:300])}</i>")
    return "\n".join(lines)


def render_page_unavailable(page: str, error_id: str) -> str:
    return (
        f"⚠️ {bold(f'The {page} page is unavailable right now.')}\n"
        f"Try again with /retry {html.escape(page)}\n"
        f"<i>Reference: {html.escape(error_id)}</i>"
    )


def link(url: str, text: str) -> str:
    return f'<a href="{html.escape(url, quote=True)}">{html.escape(text)}</a>'
