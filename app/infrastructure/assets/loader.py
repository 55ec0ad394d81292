# app/infrastructure/assets/loader.py
import asyncio
import base64
import binascii
import os
from typing import Dict, Iterable, Optional

import aiofiles
import aiohttp

from app.config.logger import get_logger
from app.config.settings import settings

logger = get_logger(__name__)


def resolve_local_asset(src: str, asset_dir: Optional[str] = None) -> Optional[str]:
    """Real path of ``src`` when it names a file inside the asset directory, else None."""
    asset_dir = asset_dir if asset_dir is not None else settings.ASSET_DIR
    if not asset_dir:
        return None
    root = os.path.realpath(asset_dir)
    candidate = os.path.realpath(os.path.join(root, src))
    if os.path.commonpath([root, candidate]) != root or not os.path.isfile(candidate):
        return None
    return candidate


async def load_image_bytes_async(src: str, session: aiohttp.ClientSession) -> Optional[bytes]:
    try:
        if src.startswith(("http://", "https://")):
            timeout = aiohttp.ClientTimeout(total=settings.REQUEST_TIMEOUT)
            async with session.get(src, timeout=timeout) as response:
                response.raise_for_status()
                return await response.read()
        if src.startswith("data:image"):
            _, encoded = src.split(",", 1)
            return base64.b64decode(encoded + "===")
        local_path = resolve_local_asset(src)
        if local_path is not None:
            async with aiofiles.open(local_path, "rb") as f:
                return await f.read()
        if os.path.isabs(src) or src.startswith(("./", "../")):
            logger.warning(f"Refusing local path outside the asset directory: '{src[:70]}'")
            return None
        return base64.b64decode(src + "===", validate=True)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError, binascii.Error) as e:
        # Missing assets degrade to placeholders; never fail a render over one
        logger.warning(f"Failed to load image from '{src[:70]}...': {type(e).__name__}")
        return None


async def load_many_bytes_async(sources: Iterable[str]) -> Dict[str, Optional[bytes]]:
    unique = list(dict.fromkeys(s for s in sources if s))
    if not unique:
        return {}
    async with aiohttp.ClientSession() as session:
        tasks = [load_image_bytes_async(src, session) for src in unique]
        results = await asyncio.gather(*tasks)
    return dict(zip(unique, results))
