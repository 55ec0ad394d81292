# app/infrastructure/imaging/painter.py
import io
import re
from functools import lru_cache
from typing import Dict, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from app.config.settings import settings
from app.delivery.schemas.card import RenderNode, VisualTree
from app.domain.catalog import DEFAULT_SIZES
from app.domain.renderer import QR_GRID

RGBA = Tuple[int, int, int, int]

PLACEHOLDER_FILL = "#e2e8f0"
PLACEHOLDER_INK = "#94a3b8"
PLACEHOLDER_LABELS = {"avatar": "Adicionar Foto", "logo": "Sem Logo"}
_GRADIENT = re.compile(r"linear-gradient\(\s*(?:to\s+(\w+)\s*,)?\s*(.+?)\s*,\s*(.+?)\s*\)$", re.I)


def parse_length(value, reference: float = 0.0) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    try:
        if text.endswith("%"):
            return float(text[:-1]) / 100.0 * reference
        if text.endswith("px"):
            return float(text[:-2])
        return float(text)
    except ValueError:
        return None


def parse_color(value, opacity: float = 1.0) -> Optional[RGBA]:
    if not value or str(value).strip().lower() in ("transparent", "none"):
        return None
    try:
        r, g, b, a = ImageColor.getcolor(str(value).strip(), "RGBA")
    except ValueError:
        return None
    return (r, g, b, int(round(a * opacity)))


def is_image_source(value: str) -> bool:
    return bool(value) and parse_color(value) is None and not _GRADIENT.match(value.strip())


@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False):
    path = settings.FONT_BOLD_PATH if bold and settings.FONT_BOLD_PATH else settings.FONT_PATH
    if path:
        return ImageFont.truetype(path, size)
    return ImageFont.load_default(size=size)


def crop_to_fill(image_pil: Image.Image, target_w: int, target_h: int) -> Image.Image:
    source_w, source_h = image_pil.size
    target_ratio = target_w / target_h
    source_ratio = source_w / source_h

    if source_ratio > target_ratio:
        scale_factor = target_h / source_h
        scaled_w = max(target_w, int(source_w * scale_factor))
        scaled_h = target_h
        resized_image = image_pil.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)
        crop_x = (scaled_w - target_w) // 2
        return resized_image.crop((crop_x, 0, crop_x + target_w, scaled_h))
    else:
        scale_factor = target_w / source_w
        scaled_w = target_w
        scaled_h = max(target_h, int(source_h * scale_factor))
        resized_image = image_pil.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)
        crop_y = (scaled_h - target_h) // 2
        return resized_image.crop((0, crop_y, scaled_w, crop_y + target_h))


def decode_image(data: Optional[bytes]) -> Optional[Image.Image]:
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.convert("RGBA")
    except (OSError, ValueError):
        return None


def _radius(style_value, w: int, h: int, scale: float):
    """Radius in target px plus the corners it applies to (tl, tr, br, bl)."""
    if not style_value:
        return 0, None
    tokens = str(style_value).split()
    radii = [parse_length(t, min(w, h)) or 0.0 for t in tokens]
    radii = [r if str(t).endswith("%") else r * scale for r, t in zip(radii, tokens)]
    radius = int(round(max(radii)))
    if len(set(radii)) == 1:
        return min(radius, min(w, h) // 2), None
    # CSS shorthand: tl tr br bl
    if len(radii) == 2:
        radii = [radii[0], radii[1], radii[0], radii[1]]
    elif len(radii) == 3:
        radii = [radii[0], radii[1], radii[2], radii[1]]
    return min(radius, min(w, h) // 2), tuple(r > 0 for r in radii[:4])


def _shape_mask(size: Tuple[int, int], radius: int, corners) -> Image.Image:
    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    w, h = size
    if radius <= 0:
        draw.rectangle((0, 0, w - 1, h - 1), fill=255)
    elif radius * 2 >= min(w, h) and corners is None and w == h:
        draw.ellipse((0, 0, w - 1, h - 1), fill=255)
    else:
        draw.rounded_rectangle((0, 0, w - 1, h - 1), radius=radius, fill=255, corners=corners)
    return mask


def _parse_border(value, scale: float) -> Tuple[int, Optional[RGBA]]:
    if not value:
        return 0, None
    width, color = 0, None
    for token in str(value).split():
        if width == 0 and parse_length(token) is not None:
            width = max(1, int(round(parse_length(token) * scale)))
        elif token.lower() not in ("solid", "dashed", "dotted"):
            color = parse_color(token) or color
    return width, color


def paint_background(canvas: Image.Image, background: str, assets: Dict[str, Optional[bytes]]) -> None:
    w, h = canvas.size
    match = _GRADIENT.match((background or "").strip())
    if match:
        direction, start, end = match.groups()
        c1 = parse_color(start) or (255, 255, 255, 255)
        c2 = parse_color(end) or (255, 255, 255, 255)
        horizontal = (direction or "bottom").lower() in ("right", "left")
        if (direction or "").lower() in ("top", "left"):
            c1, c2 = c2, c1
        steps = w if horizontal else h
        draw = ImageDraw.Draw(canvas)
        for i in range(steps):
            t = i / max(1, steps - 1)
            color = tuple(int(round(a + (b - a) * t)) for a, b in zip(c1, c2))
            if horizontal:
                draw.line((i, 0, i, h), fill=color)
            else:
                draw.line((0, i, w, i), fill=color)
        return
    color = parse_color(background)
    if color is not None:
        canvas.alpha_composite(Image.new("RGBA", (w, h), color))
        return
    image = decode_image(assets.get(background))
    if image is not None:
        canvas.alpha_composite(crop_to_fill(image, w, h))


class CardPainter:
    """Draws a renderer ``VisualTree`` onto a Pillow canvas of any size.

    Positions are re-projected from percentages onto the target; pixel sizes
    (boxes, font sizes, borders) scale with the target/design ratio.
    """

    def __init__(self, tree: VisualTree, target_w: int, target_h: int, assets: Dict[str, Optional[bytes]] = None):
        self.tree = tree
        self.target_w = target_w
        self.target_h = target_h
        self.assets = assets or {}
        self.sx = target_w / tree.width
        self.sy = target_h / tree.height
        self.scale = min(self.sx, self.sy)

    def paint(self) -> Image.Image:
        canvas = Image.new("RGBA", (self.target_w, self.target_h), (255, 255, 255, 255))
        paint_background(canvas, self.tree.background, self.assets)
        for node in self.tree.nodes:
            layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
            if node.type in ("text-dynamic", "text-static"):
                self._text(layer, node)
            elif node.type == "shape":
                self._shape(layer, node)
            elif node.type == "image":
                self._image(layer, node)
            elif node.type == "qrcode":
                self._qrcode(layer, node)
            opacity = parse_length(node.style.get("opacity"))
            if opacity is not None and opacity < 1:
                alpha = layer.getchannel("A").point(lambda a: int(round(a * max(0.0, opacity))))
                layer.putalpha(alpha)
            canvas.alpha_composite(layer)
        return canvas

    # --- geometry ---

    def _origin(self, node: RenderNode) -> Tuple[int, int]:
        return (int(round(node.x_percent / 100.0 * self.target_w)),
                int(round(node.y_percent / 100.0 * self.target_h)))

    def _box(self, node: RenderNode) -> Tuple[int, int]:
        default_w, default_h = DEFAULT_SIZES.get(node.type, (50.0, 50.0))
        w = node.width if node.width is not None else default_w
        h = node.height if node.height is not None else default_h
        return max(1, int(round(w * self.sx))), max(1, int(round(h * self.sy)))

    def _boxed(self, layer: Image.Image, node: RenderNode, content: Image.Image) -> None:
        x, y = self._origin(node)
        radius, corners = _radius(node.style.get("borderRadius"), content.width, content.height, self.scale)
        mask = _shape_mask(content.size, radius, corners)
        combined = Image.new("RGBA", content.size, (0, 0, 0, 0))
        combined.paste(content, (0, 0), mask=mask)
        border_w, border_color = _parse_border(node.style.get("border"), self.scale)
        if border_w and border_color:
            draw = ImageDraw.Draw(combined)
            w, h = content.size
            if radius * 2 >= min(w, h) and corners is None and w == h:
                draw.ellipse((0, 0, w - 1, h - 1), outline=border_color, width=border_w)
            else:
                draw.rounded_rectangle((0, 0, w - 1, h - 1), radius=radius, outline=border_color,
                                       width=border_w, corners=corners)
        layer.paste(combined, (x, y), mask=combined)

    # --- node types ---

    def _text(self, layer: Image.Image, node: RenderNode) -> None:
        text = node.content or ""
        if not text:
            return
        transform = str(node.style.get("textTransform", "")).lower()
        if transform == "uppercase":
            text = text.upper()
        elif transform == "lowercase":
            text = text.lower()
        elif transform == "capitalize":
            text = text.title()
        size = parse_length(node.style.get("fontSize")) or 12.0
        bold = str(node.style.get("fontWeight", "")).lower() in ("bold", "600", "700", "800", "900")
        font = load_font(max(1, int(round(size * self.scale))), bold)
        color = parse_color(node.style.get("color")) or (0, 0, 0, 255)
        draw = ImageDraw.Draw(layer)
        x, y = self._origin(node)
        text_w = draw.textlength(text, font=font)
        box_w = parse_length(node.style.get("width"), self.tree.width)
        if box_w is not None:
            box_w *= self.sx
            align = node.style.get("textAlign") or "left"
            if align == "center":
                x += int(round((box_w - text_w) / 2))
            elif align == "right":
                x += int(round(box_w - text_w))
        background = parse_color(node.style.get("backgroundColor"))
        if background is not None:
            left, top, right, bottom = draw.textbbox((x, y), text, font=font)
            draw.rectangle((left, top, right, bottom), fill=background)
        stroke = 1 if bold and not settings.FONT_BOLD_PATH and isinstance(font, ImageFont.FreeTypeFont) else 0
        draw.text((x, y), text, font=font, fill=color, stroke_width=stroke, stroke_fill=color)

    def _shape(self, layer: Image.Image, node: RenderNode) -> None:
        w, h = self._box(node)
        fill = parse_color(node.style.get("backgroundColor")) or (0, 0, 0, 0)
        self._boxed(layer, node, Image.new("RGBA", (w, h), fill))

    def _image(self, layer: Image.Image, node: RenderNode) -> None:
        w, h = self._box(node)
        image = decode_image(self.assets.get(node.image_src)) if node.image_src else None
        if image is None:
            self._boxed(layer, node, self._placeholder(w, h, node.placeholder or "avatar"))
            return
        content = Image.new("RGBA", (w, h), parse_color(node.style.get("backgroundColor")) or (0, 0, 0, 0))
        content.alpha_composite(crop_to_fill(image, w, h))
        self._boxed(layer, node, content)

    def _placeholder(self, w: int, h: int, kind: str) -> Image.Image:
        slot = Image.new("RGBA", (w, h), parse_color(PLACEHOLDER_FILL))
        draw = ImageDraw.Draw(slot)
        ink = parse_color(PLACEHOLDER_INK)
        unit = min(w, h)
        cx, cy = w / 2, h * 0.42
        head = unit * 0.14
        draw.ellipse((cx - head, cy - head * 2.2, cx + head, cy - head * 0.2), fill=ink)
        draw.pieslice((cx - head * 2, cy, cx + head * 2, cy + head * 3.2), 180, 360, fill=ink)
        label = PLACEHOLDER_LABELS.get(kind, "")
        font = load_font(max(6, int(round(unit * 0.1))))
        text_w = draw.textlength(label, font=font)
        draw.text(((w - text_w) / 2, cy + head * 1.8), label, font=font, fill=ink)
        return slot

    def _qrcode(self, layer: Image.Image, node: RenderNode) -> None:
        w, h = self._box(node)
        tile = Image.new("RGBA", (w, h), (0, 0, 0, 255))
        draw = ImageDraw.Draw(tile)
        cell = min(w, h) * 0.8 / QR_GRID
        if cell < 1:
            self._boxed(layer, node, tile)
            return
        left = (w - cell * QR_GRID) / 2
        top = (h - cell * QR_GRID) / 2
        for index, on in enumerate(node.qr_cells or ()):
            if not on:
                continue
            row, col = divmod(index, QR_GRID)
            x0, y0 = left + col * cell, top + row * cell
            draw.rectangle((x0, y0, x0 + cell - 1, y0 + cell - 1), fill=(255, 255, 255, 255))
        self._boxed(layer, node, tile)


def paint_tree(tree: VisualTree, target_w: int, target_h: int, assets: Dict[str, Optional[bytes]] = None) -> Image.Image:
    return CardPainter(tree, target_w, target_h, assets).paint()


def encode_image(img: Image.Image, fmt: str = "png", quality: int = 90) -> bytes:
    fmt = (fmt or "png").lower()
    if fmt in ("jpg", "jpeg"):
        # JPEG can't have alpha
        if img.mode != "RGB":
            img = img.convert("RGB")
        save_kwargs = dict(format="JPEG", quality=quality, optimize=True)
    elif fmt == "png":
        save_kwargs = dict(format="PNG", optimize=True)
    else:
        raise ValueError(f"Unsupported image format: {fmt!r}")
    buf = io.BytesIO()
    img.save(buf, **save_kwargs)
    return buf.getvalue()
