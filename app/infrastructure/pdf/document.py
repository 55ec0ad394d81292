# app/infrastructure/pdf/document.py
import io
from typing import Sequence, Tuple

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.config.settings import settings
from app.infrastructure.imaging.painter import encode_image


def build_card_pdf(pages: Sequence[Image.Image], page_size_mm: Tuple[float, float], title: str = "") -> bytes:
    """One card face per page, each page exactly the physical card size.

    Invariant mode drops timestamps and random document ids, so equal input
    gives byte-identical documents.
    """
    page_w, page_h = page_size_mm[0] * mm, page_size_mm[1] * mm
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(page_w, page_h), invariant=1, pageCompression=1)
    c.setTitle(title)
    c.setAuthor(settings.PROJECT_NAME)
    c.setCreator(settings.PROJECT_NAME)
    for page in pages:
        jpeg = encode_image(page, "jpeg", quality=settings.JPEG_QUALITY)
        c.drawImage(ImageReader(io.BytesIO(jpeg)), 0, 0, width=page_w, height=page_h)
        c.showPage()
    c.save()
    return buf.getvalue()
