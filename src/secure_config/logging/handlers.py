"""Rotating file handler for the File logging provider."""

import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path


class ArchivingTimedRotatingFileHandler(TimedRotatingFileHandler):
    """
    Rotate the log file on a schedule and keep old files in ``archive/``.

    The live file stays where the FileLogger secret points. Rotated copies
    (``orders-service.log.2026-01-05``) are moved into an ``archive``
    folder next to it, and only the newest ``backupCount`` of them are kept
    there. A ``backupCount`` of 0 keeps everything.
    """

    def __init__(self, filename, when="midnight", backupCount=0, encoding=None, archive_dir=None):
        super().__init__(filename, when=when, backupCount=backupCount, encoding=encoding)
        base = Path(self.baseFilename)
        self.archive_dir = Path(archive_dir) if archive_dir else base.parent / "archive"
        self.archive_dir.mkdir(parents=True, exist_ok=True)

    def doRollover(self):
        super().doRollover()
        base = Path(self.baseFilename)
        for rotated in base.parent.glob(f"{base.name}.*"):
            self._archive(rotated, self.archive_dir / rotated.name)
        self._prune_archive()

    def archived_files(self) -> list[Path]:
        """Archived copies of this log, oldest first."""
        return sorted(self.archive_dir.glob(f"{Path(self.baseFilename).name}.*"))

    def _prune_archive(self) -> None:
        if self.backupCount <= 0:
            return
        for stale in self.archived_files()[: -self.backupCount]:
            try:
                stale.unlink()
            except OSError as e:
                print(f"Warning: Failed to remove archived log {stale}: {e}", file=sys.stderr)

    @staticmethod
    def _archive(source: Path, target: Path) -> None:
        try:
            source.replace(target)
        except OSError as e:
            # stderr, not a logger: this runs inside the logging machinery
            print(f"Warning: Failed to archive {source}: {e}", file=sys.stderr)


__all__ = ["ArchivingTimedRotatingFileHandler"]
