"""
Storage of imported planning workbooks.
"""

import logging
import secrets
from datetime import datetime
from pathlib import Path

import pytz

logger = logging.getLogger(__name__)


class PlanningArchive:
    """Keeps a copy of every imported workbook on disk"""

    def __init__(self, uploads_folder="uploads/planning", timezone: str = "Europe/Paris"):
        self.uploads_folder = Path(uploads_folder)
        self.timezone = pytz.timezone(timezone)

    def build_path(self, semester_id: int) -> Path:
        """Unique archive path: <semester>_<timestamp>_<random>.xlsx"""
        timestamp = datetime.now(self.timezone).strftime("%Y%m%d%H%M%S%f")
        return self.uploads_folder / f"{semester_id}_{timestamp}_{secrets.token_hex(4)}.xlsx"

    def store(self, semester_id: int, content: bytes) -> Path:
        """
        Writes a workbook to the archive

        Args:
            semester_id: Semester the workbook was imported into
            content: Raw workbook bytes

        Returns:
            Path of the archived copy
        """
        self.uploads_folder.mkdir(parents=True, exist_ok=True)
        path = self.build_path(semester_id)
        path.write_bytes(content)
        logger.info(f"[Import] Archived workbook {path.name} ({len(content)} bytes)")
        return path

    def read(self, path) -> bytes:
        return Path(path).read_bytes()

    def discard(self, path: Path) -> None:
        """Removes an archived copy, ignoring a missing file"""
        try:
            path.unlink(missing_ok=True)
            logger.info(f"[Import] Removed archived workbook {path.name}")
        except OSError as e:
            logger.error(f"[Import] Could not remove archived workbook {path}: {e}")
