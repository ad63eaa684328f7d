"""Zip packaging for the input archive and the CSV export."""
import io
import zipfile

from geoexport.core.exceptions import EntityGraphError


def zip_single_entry(entry_name: str, data: bytes) -> bytes:
    """Deflate ``data`` into an in-memory zip holding one entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(entry_name, data)
    return buffer.getvalue()


def unzip_first_entry(data: bytes) -> bytes:
    """
    Contents of the first file entry in a zip archive.

    Raises:
        EntityGraphError: if the archive is corrupt or holds no files
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            entries = [info for info in archive.infolist() if not info.is_dir()]
            if not entries:
                raise EntityGraphError("Archive contains no files")
            return archive.read(entries[0])
    except zipfile.BadZipFile as e:
        raise EntityGraphError(f"Input is not a valid zip archive: {e}") from e
