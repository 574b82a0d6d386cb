"""
Google Drive File Client
Downloads report workbooks from Google Drive with a service account.
"""
import asyncio
import json
from typing import Any, Optional

import httpx
from google.auth.transport.requests import Request
from google.oauth2.service_account import Credentials as ServiceAccountCredentials

from app.core.exceptions import ConfigurationError, DriveFetchError
from app.core.unified_config import DriveConfig
from app.shared.utils.logging_config import get_logger

logger = get_logger(__name__)

DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class DriveFileClient:
    """
    Fetches file content from the Drive v3 API (alt=media).

    A single attempt is made per call; failures surface as DriveFetchError
    with the upstream status.
    """

    def __init__(
        self,
        config: DriveConfig,
        credentials: Any = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._credentials = credentials
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._credentials is not None or bool(
            self.config.service_account_json or self.config.service_account_file
        )

    def _load_credentials(self):
        if self._credentials is not None:
            return self._credentials

        scopes = [DRIVE_READONLY_SCOPE]
        if self.config.service_account_json:
            try:
                info = json.loads(self.config.service_account_json)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    "Service account JSON is not valid JSON",
                    details=str(e),
                    parameter="drive.service_account_json",
                )
            self._credentials = ServiceAccountCredentials.from_service_account_info(info, scopes=scopes)
        elif self.config.service_account_file:
            self._credentials = ServiceAccountCredentials.from_service_account_file(
                self.config.service_account_file, scopes=scopes
            )
        else:
            raise ConfigurationError(
                "Google service account is not configured",
                details="Set PL_REPORT_DRIVE__SERVICE_ACCOUNT_JSON or PL_REPORT_DRIVE__SERVICE_ACCOUNT_FILE",
                parameter="drive",
            )
        return self._credentials

    async def _access_token(self) -> str:
        credentials = self._load_credentials()
        if not credentials.valid:
            # google-auth refreshes over a blocking transport
            await asyncio.to_thread(credentials.refresh, Request())
        return credentials.token

    async def fetch_file(self, file_id: str) -> bytes:
        """
        Download a file's content.

        Raises:
            ConfigurationError: When no service account is configured
            DriveFetchError: On transport failure or a non-2xx response
        """
        if not file_id:
            raise DriveFetchError("fileId is required")

        try:
            token = await self._access_token()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Service account token refresh failed: {e}")
            raise DriveFetchError(f"Drive authentication failed: {e}", file_id=file_id)

        url = f"{self.config.api_base_url.rstrip('/')}/files/{file_id}"
        logger.info(f"Fetching Drive file {file_id}")

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.get(
                    url,
                    params={"alt": "media"},
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Drive request for {file_id} failed: {e}")
            raise DriveFetchError(f"Drive request failed: {e}", file_id=file_id)

        if response.status_code >= 300:
            logger.error(f"Drive returned {response.status_code} for {file_id}: {response.text[:200]}")
            raise DriveFetchError(
                f"Drive API error {response.status_code}",
                file_id=file_id,
                upstream_status=response.status_code,
            )

        logger.info(f"Fetched Drive file {file_id} ({len(response.content):,} bytes)")
        return response.content
