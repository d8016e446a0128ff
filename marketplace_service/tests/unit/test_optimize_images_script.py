from pathlib import Path

from PIL import Image

from marketplace_service.app.services.image_service import ImageProcessor
from marketplace_service.scripts.optimize_images import _format_size, optimize_directory


def make_jpeg(path: Path, size=(400, 300)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, (120, 60, 30)).save(path, "JPEG")
    return path


def small_processor() -> ImageProcessor:
    return ImageProcessor(max_width=800, max_height=800, quality=80, responsive_widths=[300])


async def test_dry_run_writes_nothing(tmp_path):
    make_jpeg(tmp_path / "a.jpg")
    make_jpeg(tmp_path / "products" / "b.jpg")

    report = await optimize_directory(tmp_path, dry_run=True, processor=small_processor())

    assert report["found"] == 2
    assert sorted(report["would_process"]) == [
        str(tmp_path / "a.jpg"),
        str(tmp_path / "products" / "b.jpg"),
    ]
    assert not (tmp_path / "a.webp").exists()


async def test_skip_existing_and_failures_are_reported(tmp_path):
    done = make_jpeg(tmp_path / "done.jpg")
    Image.new("RGB", (10, 10)).save(done.with_suffix(".webp"), "WEBP")
    Image.new("RGB", (10, 10)).save(tmp_path / "done-optimized.jpg", "JPEG")
    make_jpeg(tmp_path / "fresh.jpg")
    (tmp_path / "broken.jpg").write_bytes(b"not really a jpeg")

    report = await optimize_directory(
        tmp_path, skip_existing=True, batch_size=1, processor=small_processor()
    )

    assert report["found"] == 3
    assert report["skipped"] == [str(done)]
    summary = report["summary"]
    assert summary["processed"] == 2
    assert summary["succeeded"] == 1
    assert summary["failed"] == 1
    failed = [r for r in report["results"] if not r["success"]]
    assert failed[0]["path"] == str(tmp_path / "broken.jpg")
    assert (tmp_path / "fresh.webp").is_file()


def test_format_size():
    assert _format_size(512) == "512.0 B"
    assert _format_size(2048) == "2.0 KB"
    assert _format_size(5 * 1024 * 1024) == "5.0 MB"
