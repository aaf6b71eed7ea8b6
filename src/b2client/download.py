from __future__ import annotations

import hashlib
import os
from pathlib import Path
from urllib.parse import quote

import httpx

from ._http import API_PATH
from ._results import build_downloaded_file
from .api import B2RequestClient
from .auth import AuthorizationCache
from .errors import B2IntegrityError, B2ValidationError
from .types import AuthContext, DownloadedFile
from .upload import LARGE_FILE_SHA1_KEY
from .utils import debug, quote_file_name


def build_download_url(
    context: AuthContext,
    *,
    file_id: str | None = None,
    bucket_name: str | None = None,
    file_name: str | None = None,
) -> tuple[str, dict[str, str] | None]:
    """Return the URL and query params for a download by id or by name."""
    if file_id:
        return f"{context.download_url}{API_PATH}/b2_download_file_by_id", {"fileId": file_id}
    if bucket_name and file_name:
        bucket = quote(bucket_name, safe="")
        return f"{context.download_url}/file/{bucket}/{quote_file_name(file_name)}", None
    raise B2ValidationError("download needs file_id, or bucket_name and file_name")


def verify_download(downloaded: DownloadedFile) -> DownloadedFile:
    """Check the received bytes against the SHA-1 the server reported."""
    expected = downloaded.content_sha1 or downloaded.info.get(LARGE_FILE_SHA1_KEY)
    if len(downloaded.content) != downloaded.size:
        raise B2IntegrityError(
            "downloaded size mismatch", expected=downloaded.size, actual=len(downloaded.content)
        )
    if expected:
        actual = hashlib.sha1(downloaded.content).hexdigest()
        if actual != expected:
            raise B2IntegrityError("downloaded SHA-1 mismatch", expected=expected, actual=actual)
    return downloaded


class Downloader:
    def __init__(self, request_client: B2RequestClient, auth: AuthorizationCache) -> None:
        self._request_client = request_client
        self._auth = auth

    async def download(
        self,
        *,
        file_id: str | None = None,
        bucket_name: str | None = None,
        file_name: str | None = None,
        save_as: str | os.PathLike[str] | None = None,
    ) -> DownloadedFile:
        async def operation(context: AuthContext) -> httpx.Response:
            url, params = build_download_url(
                context, file_id=file_id, bucket_name=bucket_name, file_name=file_name
            )
            return await self._request_client.send(
                "GET",
                url,
                params=params,
                headers={"authorization": context.token},
                decode="raw",
            )

        response = await self._auth.call_with_refresh(operation)
        downloaded = verify_download(build_downloaded_file(response))
        debug("downloaded %s (%d bytes)", downloaded.file_name, downloaded.size)
        if save_as is not None:
            Path(save_as).write_bytes(downloaded.content)
        return downloaded


__all__ = ["Downloader", "build_download_url", "verify_download"]
