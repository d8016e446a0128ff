from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from ...core.settings import get_settings
from ...services.storage_service import PLACEHOLDER_IMAGE, UploadStorage
from ...utils.logging import setup_marketplace_logging
from ..deps import StorageDep

settings = get_settings()
logger = setup_marketplace_logging("uploads_api", log_level=settings.LOG_LEVEL)
router = APIRouter()


@router.get("/uploads/{file_path:path}", include_in_schema=False)
async def serve_upload(file_path: str, storage: UploadStorage = StorageDep) -> FileResponse:
    """
    Serve an uploaded file.

    Missing files fall back to the product placeholder image so broken links
    still render; paths escaping the uploads directory are rejected.
    """
    path = storage.resolve(file_path)
    if path is None:
        logger.warning("Blocked upload path traversal", extra={"requested": file_path})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid path")

    headers = {"Cache-Control": f"public, max-age={settings.STATIC_CACHE_MAX_AGE}"}
    if path.is_file():
        return FileResponse(path, headers=headers)

    placeholder = storage.resolve(PLACEHOLDER_IMAGE)
    if placeholder is not None and placeholder.is_file():
        logger.info("Serving placeholder for missing upload", extra={"requested": file_path})
        return FileResponse(
            placeholder,
            headers={"Cache-Control": "no-cache", "X-Placeholder-Image": "true"},
        )

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
