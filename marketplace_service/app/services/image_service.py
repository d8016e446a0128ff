"""
Image processing with Pillow: metadata, web optimisation, responsive
variants, WebP copies and watermarks.

All methods are blocking; async callers run them through `asyncio.to_thread`.
"""

import re
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from PIL import Image, ImageDraw, ImageFont, ImageOps

from ..core.settings import get_settings
from ..utils.logging import setup_marketplace_logging as setup_logging

logger = setup_logging("image_service", log_level=get_settings().LOG_LEVEL)

SOURCE_EXTENSIONS = (".jpg", ".jpeg", ".png")
# Names produced by this module; batch jobs never treat them as sources
GENERATED_NAME_PATTERN = re.compile(r"(-optimized|-\d+w|_watermarked)$", re.I)
MIN_WATERMARK_SIZE = 150

_SAVE_FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".webp": "WEBP"}


def is_generated_variant(path: Path) -> bool:
    return bool(GENERATED_NAME_PATTERN.search(path.stem))


def variant_path(source: Path, suffix: str, extension: Optional[str] = None) -> Path:
    """`photo.jpg` + `-600w` -> `photo-600w.jpg` (or another extension)."""
    return source.with_name(f"{source.stem}{suffix}{extension or source.suffix}")


class ImageProcessor:
    """Pillow-backed image pipeline configured from settings."""

    def __init__(
        self,
        max_width: Optional[int] = None,
        max_height: Optional[int] = None,
        quality: Optional[int] = None,
        responsive_widths: Optional[Iterable[int]] = None,
        watermark_text: Optional[str] = None,
        watermark_opacity: Optional[float] = None,
    ):
        settings = get_settings()
        self.max_width = max_width or settings.IMAGE_MAX_WIDTH
        self.max_height = max_height or settings.IMAGE_MAX_HEIGHT
        self.quality = quality or settings.IMAGE_QUALITY
        self.responsive_widths = sorted(
            responsive_widths if responsive_widths is not None else settings.RESPONSIVE_WIDTHS
        )
        self.watermark_text = watermark_text or settings.WATERMARK_TEXT
        self.watermark_opacity = (
            watermark_opacity
            if watermark_opacity is not None
            else settings.WATERMARK_OPACITY
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def extract_metadata(self, path: Path) -> Dict[str, Any]:
        path = Path(path)
        with Image.open(path) as img:
            width, height = img.size
            return {
                "width": width,
                "height": height,
                "format": (img.format or "").lower(),
                "mode": img.mode,
                "has_alpha": img.mode in ("RGBA", "LA")
                or (img.mode == "P" and "transparency" in img.info),
                "size": path.stat().st_size,
                "aspect_ratio": round(width / height, 4) if height else 0,
            }

    # ------------------------------------------------------------------
    # Saving helpers
    # ------------------------------------------------------------------

    def _save(self, img: Image.Image, destination: Path, quality: int) -> None:
        image_format = _SAVE_FORMATS.get(destination.suffix.lower(), "JPEG")
        if image_format == "JPEG":
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.save(destination, image_format, quality=quality, optimize=True, progressive=True)
        elif image_format == "PNG":
            img.save(destination, image_format, optimize=True)
        else:
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
            img.save(destination, image_format, quality=quality, method=4)

    @staticmethod
    def _load(path: Path) -> Image.Image:
        with Image.open(path) as img:
            # Apply camera orientation so resized copies are upright
            return ImageOps.exif_transpose(img) or img.copy()

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def create_webp(self, source: Path, destination: Optional[Path] = None) -> Path:
        source = Path(source)
        destination = destination or source.with_suffix(".webp")
        img = self._load(source)
        self._save(img, destination, max(self.quality - 5, 1))
        return destination

    def create_responsive_variants(
        self, source: Path, include_webp: bool = True
    ) -> List[Dict[str, Any]]:
        """
        Write `-{width}w` copies for every configured width.

        Widths larger than the source's native width are skipped; images are
        never upscaled.
        """
        source = Path(source)
        img = self._load(source)
        native_width, native_height = img.size
        variants: List[Dict[str, Any]] = []

        for width in self.responsive_widths:
            if width > native_width:
                continue
            height = max(1, round(native_height * width / native_width))
            resized = img.resize((width, height), Image.Resampling.LANCZOS)

            target = variant_path(source, f"-{width}w")
            self._save(resized, target, self.quality)
            variant: Dict[str, Any] = {"width": width, "height": height, "path": str(target)}

            if include_webp:
                webp_target = variant_path(source, f"-{width}w", ".webp")
                self._save(resized, webp_target, max(self.quality - 5, 1))
                variant["webp_path"] = str(webp_target)

            variants.append(variant)

        return variants

    def optimize(
        self,
        source: Path,
        webp_only: bool = False,
        responsive: bool = True,
    ) -> Dict[str, Any]:
        """
        Produce web-ready copies of `source`.

        Writes `<name>-optimized<ext>` (fit inside the max dimensions, never
        enlarged), `<name>.webp` and the responsive variants. With
        `webp_only` only the WebP copy is produced.
        """
        source = Path(source)
        original_size = source.stat().st_size
        result: Dict[str, Any] = {
            "source": str(source),
            "original_size": original_size,
            "variants": [],
        }

        img = self._load(source)
        resized = img.copy()
        resized.thumbnail((self.max_width, self.max_height), Image.Resampling.LANCZOS)
        result["width"], result["height"] = resized.size

        webp_path = source.with_suffix(".webp")
        self._save(resized, webp_path, max(self.quality - 5, 1))
        result["webp_path"] = str(webp_path)
        result["webp_size"] = webp_path.stat().st_size

        if webp_only:
            result["optimized_size"] = result["webp_size"]
        else:
            optimized_path = variant_path(source, "-optimized")
            self._save(resized, optimized_path, self.quality)
            result["optimized_path"] = str(optimized_path)
            result["optimized_size"] = optimized_path.stat().st_size

            if responsive:
                result["variants"] = self.create_responsive_variants(source)

        saved = original_size - result["optimized_size"]
        result["savings_bytes"] = saved
        result["savings_percent"] = (
            round(saved / original_size * 100, 1) if original_size else 0.0
        )
        return result

    # ------------------------------------------------------------------
    # Watermark
    # ------------------------------------------------------------------

    def apply_watermark(
        self,
        source: Path,
        destination: Optional[Path] = None,
        text: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Stamp semi-transparent text near the top-right and bottom-left corners.

        Images smaller than 150px on either side are copied unchanged.
        """
        source = Path(source)
        destination = Path(destination) if destination else source
        text = text or self.watermark_text

        img = self._load(source)
        width, height = img.size

        if width < MIN_WATERMARK_SIZE or height < MIN_WATERMARK_SIZE:
            if destination != source:
                shutil.copyfile(source, destination)
            logger.info(
                "Skipping watermark for small image",
                extra={"image_path": str(source), "width": width, "height": height},
            )
            return {"path": str(destination), "watermarked": False}

        base = img.convert("RGBA")
        overlay = Image.new("RGBA", base.size, (255, 255, 255, 0))

        font_size = max(14, int(width * 0.04))
        font = ImageFont.load_default(size=font_size)
        alpha = int(255 * self.watermark_opacity)

        measure = ImageDraw.Draw(overlay)
        left, top, right, bottom = measure.textbbox((0, 0), text, font=font)
        stamp = Image.new("RGBA", (right - left + 4, bottom - top + 4), (255, 255, 255, 0))
        stamp_draw = ImageDraw.Draw(stamp)
        stamp_draw.text(
            (2 - left, 2 - top),
            text,
            font=font,
            fill=(255, 255, 255, alpha),
            stroke_width=1,
            stroke_fill=(0, 0, 0, int(alpha * 0.3)),
        )
        stamp = stamp.rotate(15, expand=True, resample=Image.Resampling.BICUBIC)

        for rel_x, rel_y in ((0.85, 0.15), (0.15, 0.85)):
            x = int(width * rel_x - stamp.width / 2)
            y = int(height * rel_y - stamp.height / 2)
            overlay.alpha_composite(stamp, (max(0, x), max(0, y)))

        watermarked = Image.alpha_composite(base, overlay)
        if img.mode != "RGBA":
            watermarked = watermarked.convert("RGB" if img.mode != "L" else "L")
        self._save(watermarked, destination, self.quality)

        return {"path": str(destination), "watermarked": True}


def find_source_images(
    directory: Path, extensions: Iterable[str] = SOURCE_EXTENSIONS
) -> List[Path]:
    """Recursively list original images, skipping hidden dirs and generated variants."""
    directory = Path(directory)
    allowed = {ext.lower() for ext in extensions}
    found: List[Path] = []

    for path in sorted(directory.rglob("*")):
        relative_parts = path.relative_to(directory).parts
        if any(part.startswith(".") for part in relative_parts):
            continue
        if not path.is_file() or path.suffix.lower() not in allowed:
            continue
        if is_generated_variant(path):
            continue
        found.append(path)

    return found
