# app/core/image_store.py
"""
Filesystem store for snag photo bytes.

Each photo is one file named ``<uuid4>.jpg`` inside a single directory. The
filename is the only link between a ``SnagPhoto`` record and its bytes; the
records live in the database and the two are reconciled by
``cleanup_orphaned_files`` rather than a shared transaction.

The store is not synchronized. Callers own one instance and serialize all
mutations through it. It never logs: failures surface as ``OSError`` and
routine absence (missing file, undecodable bytes) as ``None``.
"""
import os
import uuid
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

IMAGE_EXTENSION = ".jpg"
TEMP_PREFIX = ".tmp-"


class ImageDeleteError(OSError):
    """One or more stored files could not be removed"""

    action = "remove"

    def __init__(self, failures: list[tuple[str, OSError]], files_removed: int, bytes_freed: int):
        self.failures = failures
        self.files_removed = files_removed
        self.bytes_freed = bytes_freed
        names = ", ".join(name for name, _ in failures)
        super().__init__(f"failed to {self.action} {len(failures)} file(s): {names}")

    @property
    def failed_filenames(self) -> set[str]:
        return {name for name, _ in self.failures}


class OrphanCleanupError(ImageDeleteError):
    """One or more orphaned files could not be removed"""

    action = "remove orphaned"


def format_storage_size(num_bytes: int) -> str:
    """Byte count as a human-readable string (1000-based, like file managers)"""
    if num_bytes <= 0:
        return "Zero KB"
    if num_bytes < 1000:
        return f"{num_bytes} bytes"

    for unit, divisor, digits in (
        ("KB", 1000, 0),
        ("MB", 1000 ** 2, 1),
        ("GB", 1000 ** 3, 2),
    ):
        # pick the unit after rounding so 999_999 is "1 MB", not "1000 KB"
        text = f"{num_bytes / divisor:.{digits}f}"
        if float(text) < 1000 or unit == "GB":
            if "." in text:
                text = text.rstrip("0").rstrip(".")
            return f"{text} {unit}"


class ImageStore:
    """Key -> bytes storage rooted at one directory"""

    def __init__(self, directory: str | os.PathLike) -> None:
        self.directory = Path(directory)

    def _ensure_directory(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def _path_for(self, filename: str) -> Path:
        if (
            not filename
            or filename in (".", "..")
            or os.sep in filename
            or (os.altsep and os.altsep in filename)
        ):
            raise ValueError(f"invalid image filename: {filename!r}")
        return self.directory / filename

    @staticmethod
    def generate_filename() -> str:
        return f"{uuid.uuid4()}{IMAGE_EXTENSION}"

    def save_image(self, data: bytes) -> str:
        """
        Write ``data`` under a fresh filename and return the filename.

        The bytes go to a temp file in the same directory and are moved into
        place with ``os.replace``, so a reader never sees a partial file.
        """
        directory = self._ensure_directory()
        filename = self.generate_filename()
        final_path = directory / filename
        tmp_path = directory / f"{TEMP_PREFIX}{filename}"

        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

        return filename

    def load_image_data(self, filename: str) -> bytes | None:
        """Raw bytes for ``filename``, or None if the file is gone"""
        try:
            return self._path_for(filename).read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    def load_image(self, filename: str) -> Image.Image | None:
        """Decoded image, or None when the file is missing or not decodable"""
        data = self.load_image_data(filename)
        if data is None:
            return None

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            return None
        return image

    def delete_image(self, filename: str) -> None:
        """Remove ``filename``. Deleting a missing file is not an error."""
        self._path_for(filename).unlink(missing_ok=True)

    def list_filenames(self) -> set[str]:
        """Every regular file currently in the store directory"""
        if not self.directory.is_dir():
            return set()
        with os.scandir(self.directory) as entries:
            return {entry.name for entry in entries if entry.is_file(follow_symlinks=False)}

    def _file_size(self, filename: str) -> int:
        try:
            return (self.directory / filename).stat().st_size
        except FileNotFoundError:
            return 0

    def get_total_storage_size(self) -> int:
        """Sum of the sizes of all stored files in bytes"""
        return sum(self._file_size(name) for name in self.list_filenames())

    format_storage_size = staticmethod(format_storage_size)

    def _delete_all(self, filenames: set[str], error_class: type[ImageDeleteError]) -> tuple[int, int]:
        files_removed = 0
        bytes_freed = 0
        failures: list[tuple[str, OSError]] = []

        for filename in sorted(filenames):
            size = self._file_size(filename)
            try:
                self.delete_image(filename)
            except OSError as e:
                failures.append((filename, e))
                continue
            files_removed += 1
            bytes_freed += size

        if failures:
            raise error_class(failures, files_removed, bytes_freed)
        return files_removed, bytes_freed

    def cleanup_orphaned_files(self, keep_filenames: set[str]) -> tuple[int, int]:
        """
        Delete every stored file whose name is not in ``keep_filenames``.

        ``keep_filenames`` must be the complete set of filenames referenced by
        live records, taken after all pending commits are visible. Names in
        the set with no file are ignored. Removal keeps going after a failure;
        failures are reported together as ``OrphanCleanupError``.

        Returns (files_removed, bytes_freed).
        """
        return self._delete_all(self.list_filenames() - set(keep_filenames), OrphanCleanupError)

    def clear_all_images(self) -> int:
        """
        Delete every stored file; returns how many were removed.

        Every file is attempted. If any could not be removed,
        ``ImageDeleteError`` lists them, and every other file is gone.
        """
        files_removed, _ = self._delete_all(self.list_filenames(), ImageDeleteError)
        return files_removed
