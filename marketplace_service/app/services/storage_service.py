"""Upload storage on the local filesystem under UPLOADS_DIR/<kind>/."""

import asyncio
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, UploadFile, status

from ..core.settings import get_settings
from ..utils.logging import setup_marketplace_logging as setup_logging
from ..utils.seo import generate_seo_filename
from .image_service import ImageProcessor, is_generated_variant, variant_path

settings = get_settings()
logger = setup_logging("storage_service", log_level=settings.LOG_LEVEL)

UPLOAD_KINDS = (
    "products",
    "categories",
    "vendor-logos",
    "homepage",
    "visit-places",
    "receipts",
)
PLACEHOLDER_IMAGE = "products/placeholder-image.jpg"


class UploadStorage:
    """Save, resolve and delete uploaded files."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.UPLOADS_DIR).resolve()

    def ensure_directories(self) -> None:
        for kind in UPLOAD_KINDS:
            (self.root / kind).mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_path: str) -> Optional[Path]:
        """Absolute path for `relative_path`, or None if it escapes the root."""
        candidate = (self.root / relative_path.lstrip("/")).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            return None
        return candidate

    def public_url(self, relative_path: str) -> str:
        return f"/uploads/{relative_path}"

    def relative_from_url(self, url_or_path: str) -> str:
        return url_or_path.split("/uploads/", 1)[-1].lstrip("/")

    async def save_image(
        self,
        upload: UploadFile,
        kind: str,
        name_hint: str,
        category: Optional[str] = None,
        watermark: bool = False,
        optimize: bool = True,
    ) -> Dict[str, Any]:
        """
        Validate and store an uploaded image under an SEO-friendly name.

        Returns the stored relative path plus processing details.
        """
        if kind not in UPLOAD_KINDS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown upload type: {kind}",
            )
        if upload.content_type not in settings.ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only JPEG, PNG, WebP and GIF images are allowed",
            )

        content = await upload.read()
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty"
            )
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit",
            )

        filename = generate_seo_filename(upload.filename or "", name_hint, category)
        target_dir = self.root / kind
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / filename
        await asyncio.to_thread(target.write_bytes, content)

        relative_path = f"{kind}/{filename}"
        details: Dict[str, Any] = {"path": relative_path, "size": len(content)}

        processor = ImageProcessor()
        try:
            if watermark and settings.WATERMARK_ENABLED:
                stamp = await asyncio.to_thread(processor.apply_watermark, target)
                details["watermarked"] = stamp["watermarked"]
            if optimize and target.suffix.lower() in (".jpg", ".jpeg", ".png"):
                optimized = await asyncio.to_thread(processor.optimize, target)
                details["optimized_size"] = optimized["optimized_size"]
                details["variants"] = [v["width"] for v in optimized["variants"]]
        except OSError as e:
            # The original upload is kept even if post-processing fails
            logger.warning(
                "Image post-processing failed",
                extra={"upload_path": relative_path, "error": str(e)},
            )
            details["processing_error"] = str(e)

        logger.info(
            "Image uploaded",
            extra={"upload_path": relative_path, "kind": kind, "size": len(content)},
        )
        return details

    def delete(self, relative_path: Optional[str]) -> bool:
        """
        Delete a stored file and the variants generated from it.

        Returns True when the file itself existed and was removed.
        """
        if not relative_path:
            return False
        path = self.resolve(self.relative_from_url(relative_path))
        if path is None or not path.is_file():
            return False

        for generated in self._generated_files(path):
            generated.unlink(missing_ok=True)
        path.unlink()

        logger.info("Upload deleted", extra={"upload_path": relative_path})
        return True

    def delete_many(self, relative_paths: Iterable[Optional[str]]) -> List[str]:
        return [p for p in relative_paths if p and self.delete(p)]

    def _generated_files(self, path: Path) -> List[Path]:
        if is_generated_variant(path):
            return []
        candidates = [path.with_suffix(".webp"), variant_path(path, "-optimized")]
        width_pattern = re.compile(rf"{re.escape(path.stem)}-\d+w")
        for generated in path.parent.glob(f"{path.stem}-*"):
            if width_pattern.fullmatch(generated.stem):
                candidates.append(generated)
        return [c for c in candidates if c != path and c.is_file()]


_storage: Optional[UploadStorage] = None


def get_upload_storage() -> UploadStorage:
    global _storage
    if _storage is None:
        _storage = UploadStorage()
    return _storage


def reset_upload_storage() -> None:
    global _storage
    _storage = None
