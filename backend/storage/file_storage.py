"""
File storage abstraction.

Provides a simple interface for storing and retrieving uploaded motif files.
Currently uses local filesystem.
"""
import contextlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, Optional
import uuid

from settings import settings

ALLOWED_MOTIF_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".ppm"}


def _motif_suffix(filename: Optional[str]) -> str:
    ext = Path(filename or "").suffix.lower()
    return ext if ext in ALLOWED_MOTIF_SUFFIXES else ".img"


@contextlib.contextmanager
def temporary_motif_file(data: bytes, filename: Optional[str] = None) -> Iterator[Path]:
    """
    Write upload bytes to a temporary file for the motif resolver.

    The file is removed when the block exits, whatever the resolver did
    with it.
    """
    fd, name = tempfile.mkstemp(prefix="motif_", suffix=_motif_suffix(filename))
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield path
    finally:
        path.unlink(missing_ok=True)


class FileStorage:
    """
    Local file storage implementation.

    Files are organized as:
    - media/boards/{board_id}/motifs/  - Uploaded motif images
    """

    def __init__(self, media_root: Optional[str] = None):
        self.media_root = Path(media_root or settings.MEDIA_ROOT)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def get_board_motifs_dir(self, board_id: str) -> Path:
        """Get the motifs directory for a board."""
        path = self.media_root / "boards" / board_id / "motifs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def save_motif(self, board_id: str, file: BinaryIO, filename: str) -> str:
        """
        Save an uploaded motif.

        Returns:
            Relative path to the saved file
        """
        new_filename = f"{uuid.uuid4()}{_motif_suffix(filename)}"
        file_path = self.get_board_motifs_dir(board_id) / new_filename

        with open(file_path, "wb") as f:
            shutil.copyfileobj(file, f)

        return str(file_path.relative_to(self.media_root))

    def get_absolute_path(self, relative_path: str) -> Path:
        """Convert a relative path to absolute."""
        return (self.media_root / relative_path).resolve()

    def file_exists(self, relative_path: str) -> bool:
        """Check if a file exists."""
        return (self.media_root / relative_path).exists()

    def delete_file(self, relative_path: str) -> bool:
        """Delete a file. Returns True if deleted."""
        path = self.media_root / relative_path
        if path.exists():
            path.unlink()
            return True
        return False

    def delete_board_files(self, board_id: str) -> bool:
        """Delete all files for a board."""
        board_dir = self.media_root / "boards" / board_id
        if board_dir.exists():
            shutil.rmtree(board_dir)
            return True
        return False
