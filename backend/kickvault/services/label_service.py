"""
Label Service - printable inventory labels

Renders 90x54 mm labels with Pillow. Each label carries a QR code of the
unit's serial number (qrcode) so a phone or scanner can pull the unit up
via GET /api/variants/by-serial/<n>, plus the serial in large type.

Layout:
    header line (store name or label kind)         QR code
    template lines (sku, name, price, size ...)
              SERIAL (large, centered)

Label types:
    store        shelf display: product name, sale price, size
    inventory    back room: sku, name, cost, location, size
    shipping     outbound: sku, name, size, ship-from store
    consignment  consignor name, product name, size

A single label is served as PNG; several labels go out as one PDF with
one label per page.
"""

from __future__ import annotations

import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from PIL import Image, ImageDraw, ImageFont

from ..models import Variant

LABEL_TYPES = ("store", "inventory", "shipping", "consignment")
MAX_LABELS_PER_SHEET = 200

DPI = 150
LABEL_WIDTH_MM = 90
LABEL_HEIGHT_MM = 54


def _mm(value: float) -> int:
    return round(value * DPI / 25.4)


LABEL_WIDTH = _mm(LABEL_WIDTH_MM)
LABEL_HEIGHT = _mm(LABEL_HEIGHT_MM)
MARGIN = _mm(6)
QR_SIZE = _mm(20)
QR_X = _mm(64)
QR_Y = _mm(6)
TEXT_WIDTH = QR_X - MARGIN - _mm(2)

_FONT_CANDIDATES = {
    False: ("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", "arial.ttf"),
    True: ("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", "arialbd.ttf"),
}


def _load_font(size: int, bold: bool = False):
    for path in _FONT_CANDIDATES[bold]:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def format_price(cents: int, currency: str = "USD") -> str:
    symbol = "$" if currency == "USD" else f"{currency} "
    return f"{symbol}{cents / 100:,.2f}"


def build_qr(value: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=4, border=1)
    qr.add_data(value)
    qr.make(fit=True)
    return qr


def render_qr(value: str) -> Image.Image:
    """QR code image of value, scaled to the label's QR square."""
    image = build_qr(value).make_image(fill_color="black", back_color="white").convert("RGB")
    return image.resize((QR_SIZE, QR_SIZE), Image.Resampling.NEAREST)


def qr_content(variant: Variant) -> str:
    # Units always carry a serial; the id is only a fallback for legacy rows
    if variant.serial_number is not None:
        return str(variant.serial_number)
    return str(variant.id)


def _wrap(draw: ImageDraw.ImageDraw, text: str, font, max_lines: int = 2) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if current and draw.textlength(candidate, font=font) > TEXT_WIDTH:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] = lines[-1].rstrip(".") + "..."
    return lines


def _size_line(variant: Variant) -> str:
    return f"Size: {variant.size_label or 'US'} {variant.size or '-'}"


def _template(variant: Variant, label_type: str, currency: str, store_name: str) -> tuple[str, list[tuple[str, int, bool]]]:
    """Header text and (text, font size, bold) lines for one label type."""
    product = variant.product
    sku = product.sku if product is not None else "-"
    name = product.name if product is not None else "-"
    if product is not None and product.brand and not name.lower().startswith(product.brand.lower()):
        name = f"{product.brand} {name}"

    if label_type == "inventory":
        return "INVENTORY", [
            (f"SKU: {sku}", 15, False),
            (name, 13, False),
            (f"Cost: {format_price(variant.cost_price_cents or 0, currency)}", 16, True),
            (f"Location: {variant.location or 'Unknown'}", 13, False),
            (_size_line(variant), 13, False),
        ]
    if label_type == "shipping":
        return "SHIPPING LABEL", [
            (f"Item: {sku}", 15, False),
            (name, 13, False),
            (_size_line(variant), 13, False),
            (f"FROM: {store_name.upper()}", 13, True),
        ]
    if label_type == "consignment":
        consignor = variant.consignor.name if variant.consignor is not None else "Unknown Consignor"
        return "CONSIGNMENT", [
            ("CONSIGNOR:", 13, True),
            (consignor, 15, False),
            (name, 13, False),
            (_size_line(variant), 13, False),
        ]
    return store_name.upper(), [
        (name, 17, True),
        (format_price(variant.effective_sale_price_cents, currency), 24, True),
        (_size_line(variant), 15, False),
    ]


def render_label_image(
    variant: Variant,
    *,
    label_type: str = "store",
    currency: str = "USD",
    store_name: str = "KickVault",
) -> Image.Image:
    if label_type not in LABEL_TYPES:
        raise ValueError(f"Unknown label type: {label_type}")

    img = Image.new("RGB", (LABEL_WIDTH, LABEL_HEIGHT), color="white")
    draw = ImageDraw.Draw(img)
    img.paste(render_qr(qr_content(variant)), (QR_X, QR_Y))

    header, lines = _template(variant, label_type, currency, store_name)
    header_font = _load_font(20, bold=True)
    draw.text((MARGIN, QR_Y), _wrap(draw, header, header_font, max_lines=1)[0], fill="black", font=header_font)

    y = QR_Y + _mm(8)
    for text, size, bold in lines:
        font = _load_font(size, bold=bold)
        for line in _wrap(draw, text, font):
            draw.text((MARGIN, y), line, fill="black", font=font)
            y += size + 4

    serial = str(variant.serial_number) if variant.serial_number is not None else "-----"
    serial_font = _load_font(72 if len(serial) < 6 else 56, bold=True)
    bbox = draw.textbbox((0, 0), serial, font=serial_font)
    serial_y = max(y + 4, LABEL_HEIGHT - _mm(4) - (bbox[3] - bbox[1]) - bbox[1])
    draw.text(((LABEL_WIDTH - (bbox[2] - bbox[0])) // 2, serial_y), serial, fill="black", font=serial_font)
    return img


def render_variant_label(variant: Variant, **options) -> bytes:
    """PNG bytes of one label."""
    buf = io.BytesIO()
    render_label_image(variant, **options).save(buf, format="PNG", dpi=(DPI, DPI))
    return buf.getvalue()


def render_label_sheet(variants: list[Variant], **options) -> bytes:
    """PDF bytes with one label per page, in the order given."""
    if not variants:
        raise ValueError("No variants to render")
    pages = [render_label_image(v, **options) for v in variants]
    buf = io.BytesIO()
    pages[0].save(buf, format="PDF", save_all=True, append_images=pages[1:], resolution=float(DPI))
    return buf.getvalue()
