"""
File Upload Utility - Validate resume uploads and extract their text.

Supported formats:
- PDF (.pdf) using PyPDF2
- Word (.docx) using python-docx
- Plain Text (.txt)

Max file size: settings.max_resume_size_mb (5MB)
"""

import io
import logging
from typing import Tuple

from docx import Document
from fastapi import UploadFile, HTTPException
from PyPDF2 import PdfReader

from app.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

MAX_FILE_SIZE_MB = settings.max_resume_size_mb
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

CONTENT_TYPES = {
    '.pdf': 'application/pdf',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.txt': 'text/plain',
}
ALLOWED_EXTENSIONS = set(CONTENT_TYPES)


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if not filename or '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_upload(file: UploadFile) -> Tuple[bytes, str]:
    """
    Validate and read an uploaded resume.

    Returns:
        Tuple of (content_bytes, extension)

    Raises:
        HTTPException on validation errors
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext}'. Allowed: PDF, DOCX, TXT"
        )

    content = await file.read()

    if not content:
        raise HTTPException(status_code=400, detail="File is empty")

    if len(content) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB"
        )

    return content, ext


def extract_text(content: bytes, ext: str) -> str:
    """Extract text based on extension. Raises HTTPException(400) if nothing readable."""
    if ext == '.pdf':
        text = extract_from_pdf(content)
    elif ext == '.docx':
        text = extract_from_docx(content)
    else:  # .txt
        text = extract_from_txt(content)

    if not text.strip():
        raise HTTPException(
            status_code=400,
            detail="Could not extract text from file. File may be empty or corrupted."
        )
    return text


def extract_from_pdf(content: bytes) -> str:
    """Extract text from PDF bytes."""
    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        return '\n'.join(text_parts)
    except Exception as e:
        logger.warning("PDF extraction failed: %s", e)
        raise HTTPException(status_code=400, detail=f"Error reading PDF: {str(e)}")


def extract_from_docx(content: bytes) -> str:
    """Extract text from DOCX bytes (body, tables, headers)."""
    try:
        doc = Document(io.BytesIO(content))
        text_parts = []

        for para in doc.paragraphs:
            if para.text.strip():
                text_parts.append(para.text)

        for table in doc.tables:
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    text_parts.append(' | '.join(row_text))

        # Contact details often live in the page header
        for section in doc.sections:
            for para in section.header.paragraphs:
                if para.text.strip():
                    text_parts.append(para.text)

        return '\n'.join(text_parts)
    except Exception as e:
        logger.warning("DOCX extraction failed: %s", e)
        raise HTTPException(status_code=400, detail=f"Error reading DOCX: {str(e)}")


def extract_from_txt(content: bytes) -> str:
    """Extract text from TXT bytes."""
    for encoding in ['utf-8', 'cp1252', 'latin-1']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise HTTPException(status_code=400, detail="Could not decode text file")


def get_supported_formats() -> dict:
    """Get info about supported file formats."""
    return {
        "supportedFormats": [
            {"extension": ".pdf", "contentType": CONTENT_TYPES['.pdf'], "name": "PDF"},
            {"extension": ".docx", "contentType": CONTENT_TYPES['.docx'], "name": "Word Document"},
            {"extension": ".txt", "contentType": CONTENT_TYPES['.txt'], "name": "Plain Text"}
        ],
        "maxSizeMb": MAX_FILE_SIZE_MB,
        "maxResumesPerUser": settings.max_resumes_per_user,
    }
