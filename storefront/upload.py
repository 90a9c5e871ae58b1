# storefront/upload.py
"""Image upload proxy.

The uploaded file is kept in memory and forwarded to Cloudinary's signed upload
API; the response carries the public URL that product ``images`` entries point at.
"""
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, UploadFile

from . import config
from .errors import UploadError, ValidationError

logger = logging.getLogger("storefront.upload")

router = APIRouter(prefix="/api/upload", tags=["upload"])

CLOUDINARY_API = "https://api.cloudinary.com/v1_1"


@dataclass
class UploadResult:
    url: str
    public_id: str


class CloudinaryUploader:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "uploads",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: dict) -> str:
        # parameters sorted by name, joined as a query string, secret appended
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode()).hexdigest()

    async def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> UploadResult:
        if not self.configured:
            raise UploadError("Image upload is not configured")

        params = {"folder": self.folder, "timestamp": int(time.time())}
        form = {**params, "api_key": self.api_key, "signature": self.sign(params)}
        url = f"{CLOUDINARY_API}/{self.cloud_name}/image/upload"
        files = {"file": (filename, data, content_type or "application/octet-stream")}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(url, data={k: str(v) for k, v in form.items()}, files=files)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Cloudinary rejected upload: %s %s", exc.response.status_code, exc.response.text)
            raise UploadError(error=f"upstream status {exc.response.status_code}")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Cloudinary upload failed: %s", exc)
            raise UploadError(error=str(exc))

        secure_url = body.get("secure_url")
        if not secure_url:
            raise UploadError(error="upstream response without secure_url")
        return UploadResult(url=secure_url, public_id=body.get("public_id", ""))


def get_uploader() -> CloudinaryUploader:
    return CloudinaryUploader(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
        folder=config.UPLOAD_FOLDER,
        timeout=config.UPLOAD_TIMEOUT,
    )


@router.post("")
async def upload_image(
    image: Optional[UploadFile] = File(None),
    uploader: CloudinaryUploader = Depends(get_uploader),
):
    if image is None:
        raise ValidationError("No file uploaded")
    data = await image.read()
    if not data:
        raise ValidationError("No file uploaded")

    result = await uploader.upload(data, image.filename or "upload", image.content_type)
    return {"success": True, "imageUrl": result.url, "publicId": result.public_id}
