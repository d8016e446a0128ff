"""
Unit tests for the Pillow image pipeline.
"""

from pathlib import Path

import pytest
from PIL import Image

from marketplace_service.app.services.image_service import (
    ImageProcessor,
    find_source_images,
    is_generated_variant,
    variant_path,
)


def make_image(path: Path, size, mode: str = "RGB") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    color = (30, 90, 160, 128) if mode == "RGBA" else (30, 90, 160)
    Image.new(mode, size, color).save(path)
    return path


@pytest.fixture
def processor() -> ImageProcessor:
    return ImageProcessor(
        max_width=1000, max_height=1000, quality=80, responsive_widths=[300, 600, 1200]
    )


class TestVariantNames:
    def test_variant_path(self):
        assert variant_path(Path("a/photo.jpg"), "-600w") == Path("a/photo-600w.jpg")
        assert variant_path(Path("a/photo.jpg"), "-600w", ".webp") == Path("a/photo-600w.webp")

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("photo.jpg", False),
            ("photo-optimized.jpg", True),
            ("photo-600w.webp", True),
            ("photo_watermarked.png", True),
            ("width-600w-final.jpg", False),
        ],
    )
    def test_is_generated_variant(self, name, expected):
        assert is_generated_variant(Path(name)) is expected


class TestMetadata:
    def test_extract_metadata_reports_alpha(self, tmp_path, processor):
        source = make_image(tmp_path / "logo.png", (120, 60), mode="RGBA")
        metadata = processor.extract_metadata(source)
        assert metadata["width"] == 120
        assert metadata["height"] == 60
        assert metadata["format"] == "png"
        assert metadata["has_alpha"] is True
        assert metadata["aspect_ratio"] == 2.0
        assert metadata["size"] == source.stat().st_size


class TestResponsiveVariants:
    def test_widths_above_native_width_are_skipped(self, tmp_path, processor):
        source = make_image(tmp_path / "lamp.jpg", (700, 350))

        variants = processor.create_responsive_variants(source)

        assert [v["width"] for v in variants] == [300, 600]
        assert [v["height"] for v in variants] == [150, 300]
        assert (tmp_path / "lamp-300w.jpg").is_file()
        assert (tmp_path / "lamp-600w.webp").is_file()
        assert not (tmp_path / "lamp-1200w.jpg").exists()

    def test_small_source_gets_no_variants(self, tmp_path, processor):
        source = make_image(tmp_path / "icon.png", (200, 200))
        assert processor.create_responsive_variants(source) == []


class TestOptimize:
    def test_never_enlarges(self, tmp_path, processor):
        source = make_image(tmp_path / "mug.jpg", (800, 600))

        result = processor.optimize(source)

        assert (result["width"], result["height"]) == (800, 600)
        assert Path(result["optimized_path"]).name == "mug-optimized.jpg"
        assert Path(result["webp_path"]).name == "mug.webp"
        assert [v["width"] for v in result["variants"]] == [300, 600]

    def test_fits_inside_max_dimensions(self, tmp_path, processor):
        source = make_image(tmp_path / "banner.png", (3000, 1500))

        result = processor.optimize(source, responsive=False)

        assert (result["width"], result["height"]) == (1000, 500)
        with Image.open(result["optimized_path"]) as optimized:
            assert optimized.size == (1000, 500)
        assert result["variants"] == []

    def test_webp_only(self, tmp_path, processor):
        source = make_image(tmp_path / "rug.jpg", (500, 500))

        result = processor.optimize(source, webp_only=True)

        assert "optimized_path" not in result
        assert (tmp_path / "rug.webp").is_file()
        assert not (tmp_path / "rug-optimized.jpg").exists()
        assert result["optimized_size"] == result["webp_size"]


class TestWatermark:
    def test_small_images_are_copied_unchanged(self, tmp_path, processor):
        source = make_image(tmp_path / "thumb.png", (100, 149))
        destination = tmp_path / "thumb-copy.png"

        result = processor.apply_watermark(source, destination)

        assert result["watermarked"] is False
        assert destination.read_bytes() == source.read_bytes()

    def test_large_images_are_stamped(self, tmp_path, processor):
        source = make_image(tmp_path / "vase.png", (400, 300))
        original = source.read_bytes()

        result = processor.apply_watermark(source, text="Marketplace")

        assert result["watermarked"] is True
        assert source.read_bytes() != original
        with Image.open(source) as stamped:
            assert stamped.size == (400, 300)


class TestFindSourceImages:
    def test_skips_hidden_dirs_variants_and_other_types(self, tmp_path):
        make_image(tmp_path / "a.jpg", (10, 10))
        make_image(tmp_path / "a-optimized.jpg", (10, 10))
        make_image(tmp_path / "a-300w.jpg", (10, 10))
        make_image(tmp_path / ".cache" / "b.jpg", (10, 10))
        make_image(tmp_path / "sub" / "c.png", (10, 10))
        make_image(tmp_path / "d.gif", (10, 10))
        (tmp_path / "notes.txt").write_text("not an image")

        found = find_source_images(tmp_path)

        assert found == [tmp_path / "a.jpg", tmp_path / "sub" / "c.png"]
