# app/domain/export_service.py
import asyncio
import os
import re
import tempfile
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Dict, Iterable, List, Optional, Tuple

import aiofiles
import psutil
from PIL import Image

from app.config.logger import get_logger
from app.config.settings import settings
from app.delivery.schemas.card import BrandingRecord, CardTemplate, UserRecord, VisualTree
from app.domain.errors import CardStudioError, ExportFailed, ExportSuperseded
from app.domain.geometry import mm_to_pixels, physical_box
from app.domain.renderer import render
from app.domain.template_store import TemplateStore
from app.infrastructure.assets.loader import load_many_bytes_async
from app.infrastructure.imaging.painter import encode_image, is_image_source, paint_tree
from app.infrastructure.pdf.document import build_card_pdf

SIDES = ("front", "back")
IMAGE_FORMATS = ("png", "jpeg", "jpg")

logger = get_logger(__name__)


def _memory_mb() -> Optional[float]:
    try:
        return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024
    except psutil.Error as mem_error:
        logger.warning(f"Could not get memory info: {mem_error}")
        return None


def artifact_basename(user: UserRecord) -> str:
    slug = re.sub(r"[^\w-]+", "-", (user.name or "").strip().lower()).strip("-")
    return f"carteirinha-{slug or 'membro'}"


class CardExportService:
    """Rasterizes rendered card faces at the physical card size.

    Exports run on a snapshot of the template, off the event loop, and a new
    export for a template supersedes the one still in flight for it.
    """

    def __init__(self, store: TemplateStore, cpu_executor: ThreadPoolExecutor):
        self.store = store
        self.cpu_executor = cpu_executor
        self._inflight: Dict[str, asyncio.Task] = {}

    # --- sizing ---

    def physical_size(self, template: CardTemplate) -> Tuple[float, float]:
        return physical_box(settings.CARD_WIDTH_MM, settings.CARD_HEIGHT_MM, template.orientation)

    def target_size(self, template: CardTemplate) -> Tuple[int, int]:
        w_mm, h_mm = self.physical_size(template)
        return mm_to_pixels(w_mm, settings.EXPORT_DPI), mm_to_pixels(h_mm, settings.EXPORT_DPI)

    # --- stages ---

    def _render_faces(self, template: CardTemplate, sides: Iterable[str], user: UserRecord,
                      system: BrandingRecord) -> List[VisualTree]:
        return [render(template, side, user, system) for side in sides]

    async def _load_assets(self, trees: List[VisualTree]) -> Dict[str, Optional[bytes]]:
        sources = [t.background for t in trees if is_image_source(t.background)]
        sources += [n.image_src for t in trees for n in t.nodes if n.image_src]
        return await load_many_bytes_async(sources)

    def _rasterize(self, tree: VisualTree, size: Tuple[int, int], assets: Dict[str, Optional[bytes]]) -> Image.Image:
        start_time = time.perf_counter()
        img = paint_tree(tree, size[0], size[1], assets)
        logger.info(f"Face [{tree.side}] of {tree.template_id}: rasterized {size[0]}x{size[1]} "
                    f"in {time.perf_counter() - start_time:.2f}s.")
        return img

    async def _rasterize_all(self, trees: List[VisualTree], size: Tuple[int, int],
                             assets: Dict[str, Optional[bytes]]) -> List[Image.Image]:
        loop = asyncio.get_running_loop()
        futures = [loop.run_in_executor(self.cpu_executor, self._rasterize, tree, size, assets) for tree in trees]
        return await asyncio.gather(*futures)

    async def _faces(self, template_id: str, sides: Iterable[str], user: UserRecord,
                     system: BrandingRecord) -> Tuple[CardTemplate, List[Image.Image]]:
        template = self.store.get_template(template_id)  # immutable snapshot
        trees = self._render_faces(template, sides, user, system)
        assets = await self._load_assets(trees)
        images = await self._rasterize_all(trees, self.target_size(template), assets)
        return template, images

    # --- supersede / failure policy ---

    async def _run_exclusive(self, key: str, coro: Awaitable):
        previous = self._inflight.get(key)
        if previous is not None and not previous.done():
            logger.info(f"Export [{key}]: superseding the in-flight run.")
            previous.cancel()
        task = asyncio.ensure_future(coro)
        self._inflight[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._inflight.get(key) is not task:
                raise ExportSuperseded(key) from None
            raise
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    async def _guarded(self, template_id: str, coro: Awaitable):
        try:
            return await asyncio.wait_for(
                self._run_exclusive(template_id, coro), timeout=settings.EXPORT_TIMEOUT_SECONDS
            )
        except (ExportSuperseded, ExportFailed, asyncio.CancelledError):
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"TIMEOUT: export of {template_id} exceeded {settings.EXPORT_TIMEOUT_SECONDS}s")
            raise ExportFailed(f"Export timed out after {settings.EXPORT_TIMEOUT_SECONDS}s", template_id) from e
        except CardStudioError as e:
            logger.error(f"Export of {template_id} failed: {e}")
            raise ExportFailed(f"Export failed: {e}", template_id) from e
        except Exception as e:
            logger.error(f"Export of {template_id} failed: {e}\n{traceback.format_exc()}")
            raise ExportFailed(f"Export failed: {type(e).__name__}: {e}", template_id) from e

    # --- public API ---

    async def export_image(self, template_id: str, side: str, user: UserRecord, system: BrandingRecord,
                           fmt: str = "png") -> bytes:
        if side not in SIDES:
            raise ExportFailed(f"Unknown side: {side!r}", template_id)
        if fmt.lower() not in IMAGE_FORMATS:
            raise ExportFailed(f"Unsupported image format: {fmt!r}", template_id)

        async def _run() -> bytes:
            _, (img,) = await self._faces(template_id, [side], user, system)
            return encode_image(img, fmt, quality=settings.JPEG_QUALITY)

        return await self._guarded(template_id, _run())

    async def export_pdf(self, template_id: str, user: UserRecord, system: BrandingRecord) -> bytes:
        async def _run() -> bytes:
            template, images = await self._faces(template_id, SIDES, user, system)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                self.cpu_executor, build_card_pdf, images, self.physical_size(template), template.name
            )

        return await self._guarded(template_id, _run())

    async def export_to_directory(self, template_id: str, user: UserRecord, system: BrandingRecord,
                                  out_dir: str, fmt: str = "png") -> Dict[str, str]:
        """Write both faces and the PDF; either every file lands or none does."""
        if fmt.lower() not in IMAGE_FORMATS:
            raise ExportFailed(f"Unsupported image format: {fmt!r}", template_id)
        overall_start_time = time.perf_counter()
        logger.info(f"=== START EXPORT {template_id} (memory {_memory_mb() or 0:.1f}MB) ===")

        async def _run() -> Dict[str, str]:
            template, images = await self._faces(template_id, SIDES, user, system)
            loop = asyncio.get_running_loop()
            pdf = await loop.run_in_executor(
                self.cpu_executor, build_card_pdf, images, self.physical_size(template), template.name
            )
            ext = "jpg" if fmt.lower() in ("jpg", "jpeg") else "png"
            base = artifact_basename(user)
            payloads = {
                side: (os.path.join(out_dir, f"{base}-{side}.{ext}"),
                       encode_image(img, fmt, quality=settings.JPEG_QUALITY))
                for side, img in zip(SIDES, images)
            }
            payloads["pdf"] = (os.path.join(out_dir, f"{base}-completa.pdf"), pdf)
            await write_atomically([v for v in payloads.values()])
            return {key: path for key, (path, _) in payloads.items()}

        result = await self._guarded(template_id, _run())
        logger.info(f"=== COMPLETED EXPORT {template_id} in {time.perf_counter() - overall_start_time:.2f}s ===")
        return result


async def write_atomically(files: List[Tuple[str, bytes]]) -> None:
    """Land every file or none: unique temp files, then renames rolled back on failure."""
    temps: List[Tuple[str, str]] = []
    renamed: List[str] = []
    try:
        for path, data in files:
            fd, tmp = tempfile.mkstemp(
                dir=os.path.dirname(path) or ".", prefix=f".{os.path.basename(path)}.", suffix=".tmp"
            )
            os.close(fd)
            temps.append((tmp, path))
            async with aiofiles.open(tmp, "wb") as f:
                await f.write(data)
        for tmp, path in temps:
            os.replace(tmp, path)
            renamed.append(path)
    except Exception:
        for path in renamed:
            if os.path.exists(path):
                os.remove(path)
        logger.error(f"Atomic write failed; rolled back {len(renamed)} renamed file(s).")
        raise
    finally:
        for tmp, _ in temps:
            if os.path.exists(tmp):
                os.remove(tmp)
