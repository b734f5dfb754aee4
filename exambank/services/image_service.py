"""
Image storage for question pictures
"""
import base64
import binascii
import logging
import os
import uuid
from typing import Optional

import aiofiles

from exambank.config import settings
from exambank.exceptions import UploadFailed

logger = logging.getLogger(__name__)


class ImageService:
    """Writes uploaded pictures under UPLOAD_DIR and returns their public URL"""

    @staticmethod
    def decode(data: str) -> bytes:
        """Decode a base64 picture, accepting data: URLs"""
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise UploadFailed("Picture is not valid base64", status_code=400)

    async def upload(self, content: bytes, filename: Optional[str] = None) -> str:
        if not content:
            raise UploadFailed("Picture is empty", status_code=400)
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise UploadFailed(
                f"Picture exceeds {settings.MAX_UPLOAD_BYTES} bytes", status_code=413
            )

        name = os.path.basename(filename or "picture").replace(" ", "_")
        stored_name = f"{uuid.uuid4().hex}-{name}"
        path = os.path.join(settings.UPLOAD_DIR, stored_name)

        try:
            os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Error storing picture {stored_name}: {str(e)}")
            raise UploadFailed()

        logger.info(f"Picture stored: {stored_name} ({len(content)} bytes)")
        return f"{settings.MEDIA_BASE_URL.rstrip('/')}/{stored_name}"


# Global instance
image_service = ImageService()
