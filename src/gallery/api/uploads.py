from typing import Optional

from fastapi import UploadFile

from gallery.engine.publish_service import UploadedFile


async def read_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Buffer a multipart part so the services can validate it."""
    if upload is None:
        return None
    content = await upload.read()
    return UploadedFile(
        filename=upload.filename or "",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )
