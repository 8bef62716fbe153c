"""
File responses for report downloads

Filenames carry the resident's registration number, which is free text.
HTTP headers are latin-1, so anything outside a plain ASCII filename gets an
underscored fallback plus an RFC 6266 filename* parameter with the real name.
"""

import io
import re
from urllib.parse import quote

from fastapi.responses import StreamingResponse

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9._-]')


def content_disposition(disposition: str, filename: str) -> str:
    fallback = UNSAFE_FILENAME_CHARS.sub('_', filename)
    if fallback == filename:
        return f"{disposition}; filename={filename}"
    return f"{disposition}; filename={fallback}; filename*=UTF-8''{quote(filename, safe='')}"


def file_response(content: bytes, media_type: str, filename: str, disposition: str = "attachment") -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={
            "Content-Disposition": content_disposition(disposition, filename),
            "Content-Length": str(len(content)),
        },
    )
