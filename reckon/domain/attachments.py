"""Helpers for receipt attachment filenames and display text."""

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})

_SIZE_UNITS = ["B", "KB", "MB", "GB"]


def file_extension(filename: str) -> str:
    """Lowercase extension without the dot, or "" if there is none.

    A leading dot (".env") does not count as an extension.
    """
    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


def is_image_file(filename: str) -> bool:
    return file_extension(filename) in IMAGE_EXTENSIONS


def is_pdf_file(filename: str) -> bool:
    return file_extension(filename) == "pdf"


def is_supported_attachment(filename: str) -> bool:
    """Receipts accept image scans and PDFs."""
    return is_image_file(filename) or is_pdf_file(filename)


def format_file_size(num_bytes: int) -> str:
    """Format a byte count for display (e.g., "1.5 MB")."""
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.1f} {_SIZE_UNITS[unit_index]}"


def truncate(text: str, length: int) -> str:
    """Shorten text to ``length`` characters, adding "..." when cut."""
    if len(text) <= length:
        return text
    return f"{text[:length]}..."
