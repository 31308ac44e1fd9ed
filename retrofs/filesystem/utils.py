"""
Filesystem Utilities

Small helpers shared by the backends and the host entry point.
"""

MIME_TYPES = {
    'txt': 'text/plain',
    'ini': 'text/plain',
    'sys': 'text/plain',
    'json': 'application/json',
    'js': 'application/javascript',
    'css': 'text/css',
    'html': 'text/html',
    'svg': 'image/svg+xml',
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
}

DEFAULT_MIME_TYPE = 'application/octet-stream'


def get_file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or '' if there is none."""
    stem = filename.lstrip('.')
    if '.' not in stem:
        return ''
    return stem.rsplit('.', 1)[1].lower()


def get_mime_type(filename: str) -> str:
    """Guess a MIME type from a file name's extension."""
    return MIME_TYPES.get(get_file_extension(filename), DEFAULT_MIME_TYPE)


def format_bytes(size: int) -> str:
    """
    Render a byte count for humans.

    Example:
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if size <= 0:
        return '0 B'
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"
