import logging
import os
import uuid

from django.core.files.storage import default_storage

from .results import Result

logger = logging.getLogger(__name__)


def upload_photo(folder: str, uploaded_file) -> Result:
    """
    Store an uploaded image under ``folder`` in the default storage

    Args:
        folder: Bucket-like prefix, e.g. "menu-photos"
        uploaded_file: Django UploadedFile from the request

    Returns:
        Result whose value is the public URL of the stored file
    """
    extension = os.path.splitext(uploaded_file.name)[1].lower() or '.jpg'
    path = f"{folder}/{uuid.uuid4().hex}{extension}"
    try:
        saved_path = default_storage.save(path, uploaded_file)
        url = default_storage.url(saved_path)
    except OSError as exc:
        logger.error('Photo upload to %s failed: %s', folder, exc)
        return Result.fail(f'Photo upload failed: {exc}')
    return Result.ok(url, path=saved_path)
