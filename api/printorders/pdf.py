import textwrap
from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

PAGE_TOP = 750
PAGE_BOTTOM = 72
LEFT = 72
LINE_HEIGHT = 14
NOTES_WIDTH = 90
TEXT_WIDTH = letter[0] - 2 * LEFT
HANGING_INDENT = 12


@dataclass
class AddressBlock:
    name: str
    address: str = ""
    phone: str = ""


@dataclass
class OrderLine:
    name: str
    code: str
    quantity: str


@dataclass
class OrderDocument:
    order_number: str
    order_date: str
    brand_name: str
    ordered_by: str
    email: str
    phone: str
    bill_to: AddressBlock
    deliver_to: AddressBlock
    lines: List[OrderLine] = field(default_factory=list)
    notes: Optional[str] = None


def format_quantity(value, custom: Optional[str] = None) -> str:
    if value is True:
        return "1"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    text = "" if value is None else str(value)
    if text == "other":
        return (custom or "").strip() or "other"
    return text


class _Writer:
    def __init__(self, c):
        self.c = c
        self.y = PAGE_TOP

    def _advance(self, amount: float = LINE_HEIGHT):
        self.y -= amount

    def line(self, text: str, font: str = "Helvetica", size: int = 10, x: float = LEFT):
        """Draw ``text``, wrapping onto indented continuation lines instead of clipping."""
        first = simpleSplit(text, font, size, TEXT_WIDTH - (x - LEFT)) or [""]
        rest = " ".join(first[1:])
        self._draw(first[0], font, size, x)
        if rest:
            indent = x + HANGING_INDENT
            for chunk in simpleSplit(rest, font, size, TEXT_WIDTH - (indent - LEFT)):
                self._draw(chunk, font, size, indent)

    def _draw(self, text: str, font: str, size: int, x: float):
        if self.y < PAGE_BOTTOM:
            self.c.showPage()
            self.y = PAGE_TOP
        self.c.setFont(font, size)
        self.c.drawString(x, self.y, text)
        self._advance()

    def gap(self, amount: float = LINE_HEIGHT / 2):
        self._advance(amount)


def render_order_pdf(order: OrderDocument) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setTitle(f"Order {order.order_number}")
    w = _Writer(c)

    w.line(order.brand_name, font="Helvetica-Bold", size=16)
    w.line("Order Form", font="Helvetica-Bold", size=12)
    w.line(f"Order #{order.order_number}  |  {order.order_date}")
    w.gap()

    for label, value in (("Ordered by", order.ordered_by), ("Email", order.email), ("Phone", order.phone)):
        w.line(f"{label}: {value or '-'}")
    w.gap()

    for title, block in (("Bill To", order.bill_to), ("Deliver To", order.deliver_to)):
        w.line(title, font="Helvetica-Bold", size=11)
        w.line(block.name)
        for part in (block.address, block.phone):
            if part:
                w.line(part)
        w.gap()

    w.line("Items", font="Helvetica-Bold", size=11)
    for entry in order.lines:
        code = f"{entry.code}  " if entry.code else ""
        w.line(f"{code}{entry.name}  -  {entry.quantity}")

    if order.notes and order.notes.strip():
        w.gap()
        w.line("Notes", font="Helvetica-Bold", size=11)
        for paragraph in order.notes.splitlines() or [""]:
            for chunk in textwrap.wrap(paragraph, NOTES_WIDTH) or [""]:
                w.line(chunk)

    c.showPage()
    c.save()
    return buf.getvalue()
