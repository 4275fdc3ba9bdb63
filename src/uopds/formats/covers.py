# ABOUTME: Content-addressed storage for extracted cover images.
# ABOUTME: Names covers by SHA-1 of their bytes so identical covers share one file.

import hashlib
import mimetypes
import os
import tempfile
from pathlib import Path

from uopds.catalog.types import CoverAsset

DEFAULT_COVER_TYPE = "image/jpeg"


def cover_filename(data: bytes, mime_type: str) -> str:
    """Return the content-hash filename for cover bytes of a given MIME type.

    The extension comes from the system MIME table; unknown types get none.
    """
    digest = hashlib.sha1(data).hexdigest()
    ext = mimetypes.guess_extension(mime_type) or ""
    return f"{digest}{ext}"


def guess_image_type(name: str) -> str:
    """Guess an image MIME type from an archive entry name, defaulting to JPEG."""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_COVER_TYPE


def write_cover(cover_dir: Path, data: bytes, mime_type: str) -> CoverAsset:
    """Store cover bytes under their content-hash filename.

    The bytes go to a temporary file in cover_dir which is then renamed over
    the destination. Concurrent writers of the same cover race harmlessly and
    an existing file is simply replaced with identical content.

    Args:
        cover_dir: Flat directory holding all cover assets.
        data: Raw image bytes.
        mime_type: Declared media type of the image.

    Returns:
        The CoverAsset referencing the stored file.

    Raises:
        OSError: If the cover directory is not writable.
    """
    filename = cover_filename(data, mime_type)
    cover_dir.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=".cover-", dir=cover_dir)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        tmp_path.chmod(0o644)
        os.replace(tmp_path, cover_dir / filename)
    finally:
        tmp_path.unlink(missing_ok=True)

    return CoverAsset(filename=filename, mime_type=mime_type)
