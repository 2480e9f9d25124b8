import logging
from datetime import datetime
from pathlib import Path

import aiofiles
import magic

from backend.core import config

logger = logging.getLogger(__name__)

ALLOWED_SUBMISSION_TYPES = {
    'application/pdf': 'pdf',
    'application/msword': 'doc',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'docx',
    'text/plain': 'txt',
    'image/jpeg': 'jpg',
    'image/png': 'png',
}


class UploadRejected(ValueError):
    """Raised when an uploaded file fails size or type validation."""


class FileService:
    def __init__(
        self,
        base_upload_dir: str = config.UPLOAD_DIR,
        url_prefix: str = config.UPLOAD_URL_PREFIX,
        max_size: int = config.MAX_UPLOAD_SIZE,
    ):
        self.base_upload_dir = Path(base_upload_dir)
        self.url_prefix = url_prefix.rstrip('/')
        self.max_size = max_size

    def get_mime_type(self, content: bytes) -> str:
        """Detect the MIME type from the file content, ignoring the file name."""
        return magic.from_buffer(content, mime=True)

    def validate_submission(self, content: bytes) -> str:
        if len(content) > self.max_size:
            raise UploadRejected(
                f'El archivo excede el tamaño máximo de {self.max_size // (1024 * 1024)}MB'
            )

        mime_type = self.get_mime_type(content)
        if mime_type not in ALLOWED_SUBMISSION_TYPES:
            raise UploadRejected('Tipo de archivo no permitido. Use PDF, DOC, DOCX, TXT, JPG o PNG')

        return mime_type

    def build_submission_filename(
        self,
        student_id: int,
        assignment_id: int,
        mime_type: str,
        now: datetime | None = None,
    ) -> str:
        """The extension follows the detected type, never the client's file name."""
        extension = ALLOWED_SUBMISSION_TYPES[mime_type]
        timestamp = (now or datetime.now()).strftime('%Y%m%d%H%M%S')
        return f'submission_{student_id}_{assignment_id}_{timestamp}.{extension}'

    async def save(self, content: bytes, filename: str, subdir: str) -> str:
        """Write the file under ``subdir`` and return its public URL."""
        upload_dir = self.base_upload_dir / subdir
        upload_dir.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(upload_dir / filename, 'wb') as out_file:
            await out_file.write(content)

        logger.info('Stored upload %s/%s (%d bytes)', subdir, filename, len(content))
        return f'{self.url_prefix}/{subdir}/{filename}'


file_service = FileService()
