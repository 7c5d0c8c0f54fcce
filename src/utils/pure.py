from collections import Counter
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from api.models import NO_OPTION, CartItem, Order, OrderLine


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


# ---------------------------
# Cart arithmetic
# ---------------------------


def cart_total(items: Iterable[CartItem]) -> float:
    """Sum of price x quantity, rounded to cents."""
    total = sum((Decimal(str(i.product.price)) * i.quantity for i in items), Decimal(0))
    return float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_minor_units(amount: float) -> int:
    """Dollars to integer cents, half-up."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def resolve_option(selected: Optional[str], options: Sequence[str]) -> str:
    """The chosen option, else the first declared one, else "none"."""
    if selected:
        return selected
    if options:
        return options[0]
    return NO_OPTION


def order_lines(items: Iterable[CartItem]) -> List[OrderLine]:
    """Snapshot cart items for order creation, with size/color fallbacks applied."""
    return [
        OrderLine(
            product_id=item.product.id,
            quantity=item.quantity,
            size=resolve_option(item.size, item.product.sizes),
            color=resolve_option(item.color, item.product.colors),
            product=item.product,
        )
        for item in items
    ]


def parse_option_list(text: str) -> Tuple[str, ...]:
    """Split "S, M ,L" into ("S", "M", "L"); blanks and duplicates dropped."""
    seen: Dict[str, None] = {}
    for part in text.split(","):
        part = part.strip()
        if part:
            seen.setdefault(part, None)
    return tuple(seen)


# ---------------------------
# Sales aggregation
# ---------------------------


def _period_key(when: datetime, period: str) -> str:
    if period == "daily":
        return when.strftime("%Y-%m-%d")
    if period == "weekly":
        year, week, _ = when.isocalendar()
        return f"{year}-W{week:02d}"
    return when.strftime("%Y-%m")


def group_revenue(
    sales: Iterable[Order],
    period: Literal["daily", "weekly", "monthly"] = "monthly",
) -> List[Tuple[str, float]]:
    """
    Revenue per period, oldest first. Orders without a timestamp are skipped.
    """
    buckets: Dict[str, float] = {}
    for sale in sales:
        if sale.created_at is None:
            continue
        key = _period_key(sale.created_at, period)
        buckets[key] = round(buckets.get(key, 0.0) + sale.amount, 2)
    return sorted(buckets.items())


def status_distribution(sales: Iterable[Order]) -> List[Tuple[str, int]]:
    counts = Counter(sale.status.value for sale in sales)
    return counts.most_common()


def order_markdown(order: Order) -> str:
    """Order header plus a table of its lines, for the order detail panes."""
    when = order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "-"
    md = (
        f"### Order #{order.number}\n"
        f"Date: {when}  \n"
        f"Status: {order.status.label}\n\n"
    )
    rows = []
    for line in order.lines:
        prod = line.product
        rows.append(
            [
                prod.name if prod else f"Product {line.product_id}",
                line.size or NO_OPTION,
                line.color or NO_OPTION,
                line.quantity,
                f"{prod.price:.2f}" if prod else "-",
                f"{prod.price * line.quantity:.2f}" if prod else "-",
            ]
        )
    md += generate_markdown_table(
        ["Product", "Size", "Color", "Qty", "Unit Price", "Line Total"],
        rows,
        ["l", "c", "c", "r", "r", "r"],
    ) or "_No items recorded._"
    md += f"\n\n**Grand Total:** ${order.amount:.2f}"
    return md


def top_products(sales: Iterable[Order], k: int = 3) -> List[Tuple[str, int]]:
    """Best sellers by units sold across order lines: (name, units), most first."""
    units: Counter = Counter()
    names: Dict[str, str] = {}
    for sale in sales:
        for line in sale.lines:
            units[line.product_id] += line.quantity
            if line.product is not None:
                names[line.product_id] = line.product.name
    return [(names.get(pid, f"Product {pid}"), n) for pid, n in units.most_common(k)]
