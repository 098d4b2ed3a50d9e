"""File storage endpoints (upload, listing, public URLs)."""
import mimetypes
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union
from urllib.parse import quote, urlencode

import aiofiles
import aiohttp

from .async_client import AsyncAPIClient
from ..logging import get_logger


FileSource = Union[str, Path, bytes, bytearray, BinaryIO]


class Files:
    """
    Uploads files into a storage bucket and builds their URLs.

    Example:
        >>> info = await fk.files.upload('avatar.png')
        >>> fk.files.get_url(info['filename'])
        'https://api.example.com/api/files/1700000000_avatar.png'
    """

    FILES_PATH = '/api/files'
    FIELD_NAME = 'file'

    def __init__(self, api: AsyncAPIClient):
        self._api = api
        self._logger = get_logger('flowkore.api')

    def _path(self, bucket: Optional[str]) -> str:
        if bucket:
            return f"{self.FILES_PATH}?{urlencode({'bucket': bucket})}"
        return self.FILES_PATH

    async def upload(
        self,
        file: FileSource,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Upload one file as the multipart ``file`` field.

        Args:
            file: Path, raw bytes or a binary file object
            filename: Name sent to the server (defaults to the file's own name)
            content_type: MIME type (guessed from the name when omitted)
            bucket: Target bucket; the server uses 'default' when omitted

        Returns:
            ``{'id', 'filename', 'url'}`` as reported by the server

        Raises:
            FlowKoreAPIError: If the server rejects the upload
            OSError: If a path cannot be read
        """
        if isinstance(file, (str, Path)):
            path = Path(file)
            async with aiofiles.open(path, 'rb') as handle:
                content = await handle.read()
            filename = filename or path.name
        elif isinstance(file, (bytes, bytearray)):
            content = bytes(file)
        else:
            content = file.read()
            filename = filename or Path(getattr(file, 'name', '') or '').name or None

        filename = filename or 'upload'
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'

        form = aiohttp.FormData()
        form.add_field(self.FIELD_NAME, content, filename=filename, content_type=content_type)

        self._logger.debug(f"Uploading {filename} ({len(content)} bytes)")
        return await self._api.request('POST', self._path(bucket), form)

    async def list(self, bucket: Optional[str] = None) -> List[Dict[str, Any]]:
        """Objects of ``bucket`` visible to the current user."""
        return await self._api.request('GET', self._path(bucket))

    def get_url(self, filename: str) -> str:
        return self._api.build_url(f"{self.FILES_PATH}/{quote(filename)}")
