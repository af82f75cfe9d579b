import os

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app.storage.base import BlobNotFoundError
from app.storage.local import InvalidBlobTokenError, LocalStorage, get_storage

router = APIRouter(tags=["files"])


@router.get("/files/{token}")
def download_file(token: str, storage: LocalStorage = Depends(get_storage)):
    """Serve a blob for a signed link issued by the document file endpoint."""
    try:
        path = storage.open_token(token)
    except InvalidBlobTokenError as e:
        raise HTTPException(403, str(e)) from e
    except BlobNotFoundError as e:
        raise HTTPException(404, "File not found") from e
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=os.path.basename(path),
        content_disposition_type="inline",
    )
