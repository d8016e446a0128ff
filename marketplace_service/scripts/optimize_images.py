"""
Batch image optimisation for the uploads directory.

Finds original JPEG/PNG uploads (hidden directories and generated variants are
ignored) and writes the optimised copy, the WebP copy and the responsive
variants next to each one. Files are processed in fixed-size batches; a failing
file is reported and the run continues.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..app.core.settings import get_settings
from ..app.services.image_service import ImageProcessor, find_source_images
from ..app.utils.logging import setup_marketplace_logging

logger = setup_marketplace_logging("marketplace_optimize_images")


def already_optimized(path: Path, webp_only: bool) -> bool:
    if not path.with_suffix(".webp").exists():
        return False
    return webp_only or path.with_name(f"{path.stem}-optimized{path.suffix}").exists()


async def _process_one(
    processor: ImageProcessor, path: Path, webp_only: bool
) -> Dict[str, Any]:
    try:
        result = await asyncio.to_thread(processor.optimize, path, webp_only)
        return {"path": str(path), "success": True, **result}
    except Exception as e:
        logger.error(
            "Image optimisation failed",
            extra={"image_path": str(path), "error_type": type(e).__name__},
        )
        return {"path": str(path), "success": False, "error": str(e)}


async def optimize_directory(
    directory: Path,
    webp_only: bool = False,
    dry_run: bool = False,
    skip_existing: bool = False,
    batch_size: int = 5,
    processor: Optional[ImageProcessor] = None,
) -> Dict[str, Any]:
    processor = processor or ImageProcessor()
    images = find_source_images(directory)
    skipped: List[str] = []

    if skip_existing:
        pending = []
        for path in images:
            if already_optimized(path, webp_only):
                skipped.append(str(path))
            else:
                pending.append(path)
        images = pending

    if dry_run:
        return {
            "found": len(images) + len(skipped),
            "skipped": skipped,
            "would_process": [str(path) for path in images],
            "results": [],
        }

    results: List[Dict[str, Any]] = []
    for start in range(0, len(images), batch_size):
        batch = images[start : start + batch_size]
        results.extend(
            await asyncio.gather(*(_process_one(processor, p, webp_only) for p in batch))
        )
        logger.info(
            "Batch processed",
            extra={"processed": len(results), "total": len(images)},
        )

    succeeded = [r for r in results if r["success"]]
    original = sum(r["original_size"] for r in succeeded)
    optimized = sum(r["optimized_size"] for r in succeeded)
    return {
        "found": len(images) + len(skipped),
        "skipped": skipped,
        "results": results,
        "summary": {
            "processed": len(results),
            "succeeded": len(succeeded),
            "failed": len(results) - len(succeeded),
            "original_bytes": original,
            "optimized_bytes": optimized,
            "saved_bytes": original - optimized,
            "saved_percent": round((original - optimized) / original * 100, 1)
            if original
            else 0.0,
        },
    }


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if abs(value) < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def print_report(report: Dict[str, Any]) -> None:
    print(f"Found {report['found']} images, skipped {len(report['skipped'])}")
    if "would_process" in report:
        for path in report["would_process"]:
            print(f"  would optimise {path}")
        return

    for result in report["results"]:
        if result["success"]:
            print(
                f"  ok   {result['path']} "
                f"{_format_size(result['original_size'])} -> "
                f"{_format_size(result['optimized_size'])} "
                f"({len(result['variants'])} responsive variants)"
            )
        else:
            print(f"  fail {result['path']}: {result['error']}")

    summary = report["summary"]
    print(
        f"Processed {summary['processed']}: {summary['succeeded']} succeeded, "
        f"{summary['failed']} failed. Saved {_format_size(summary['saved_bytes'])} "
        f"({summary['saved_percent']}%)"
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Optimise uploaded images and generate WebP and responsive variants."
    )
    parser.add_argument("--dir", default=get_settings().UPLOADS_DIR, help="directory to scan")
    parser.add_argument("--webp-only", action="store_true", help="only write WebP copies")
    parser.add_argument("--dry-run", action="store_true", help="list files without writing")
    parser.add_argument(
        "--skip-existing", action="store_true", help="skip images that already have copies"
    )
    parser.add_argument("--batch-size", type=int, default=5, help="images per batch")
    args = parser.parse_args()

    directory = Path(args.dir)
    if not directory.is_dir():
        print(f"error: {directory} is not a directory", file=sys.stderr)
        sys.exit(1)
    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")

    report = asyncio.run(
        optimize_directory(
            directory,
            webp_only=args.webp_only,
            dry_run=args.dry_run,
            skip_existing=args.skip_existing,
            batch_size=args.batch_size,
        )
    )
    print_report(report)
    if report.get("summary", {}).get("failed"):
        sys.exit(2)


if __name__ == "__main__":
    main()
