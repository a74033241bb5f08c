# =============================================================================
# core/services/drive_service.py - Drive Listings for the File Picker
# =============================================================================
# - list_google_drive_files: files under a Drive folder, walking subfolders
#   breadth-first down to max_depth
# - list_microsoft_drives: OneDrive, SharePoint libraries and shared drives
#
# Both read the access token of the user's active row in
# user_drive_connections; refreshing it is the health sweep's job.
# =============================================================================

import logging
from collections import deque
from typing import Any

import httpx

from app.config import settings
from app.exceptions import InvalidRequestError, NotFoundError, ProviderError
from core.services.integration_service import IntegrationService
from lib.supabase_client import SupabaseClient, maybe_one
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

GOOGLE_DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_FIELDS = "nextPageToken,files(id,name,mimeType,modifiedTime,size,iconLink,webViewLink)"
DRIVE_FOLDER_MIME = "application/vnd.google-apps.folder"
DRIVE_PAGES_PER_FOLDER = 3

GRAPH_URL = "https://graph.microsoft.com/v1.0"


def categorize_mime_type(mime_type: str) -> str:
    """Bucket a MIME type for the file picker's filters."""
    if "document" in mime_type or "word" in mime_type or mime_type == "application/pdf":
        return "document"
    if "spreadsheet" in mime_type or "excel" in mime_type or mime_type == "text/csv":
        return "spreadsheet"
    if "presentation" in mime_type or "powerpoint" in mime_type:
        return "presentation"
    if "text" in mime_type:
        return "text"
    return "other"


class DriveService:
    """Service for browsing connected Google and Microsoft drives."""

    # -------------------------------------------------------------------------
    # Google Drive
    # -------------------------------------------------------------------------

    @staticmethod
    def _fetch_folder(folder_id: str, access_token: str) -> tuple[list[dict], list[dict]]:
        """
        List one folder, following at most three pages.

        Returns:
            (files, subfolders)

        Raises:
            ProviderError: Drive answered non-2xx (status mirrored)
        """
        items: list[dict[str, Any]] = []
        page_token = None

        for _ in range(DRIVE_PAGES_PER_FOLDER):
            params = {
                "q": f"'{folder_id}' in parents and trashed = false",
                "fields": DRIVE_FIELDS,
                "orderBy": "modifiedTime desc",
                "pageSize": "100",
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token

            response = httpx.get(
                GOOGLE_DRIVE_FILES_URL,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
            if not response.is_success:
                raise ProviderError(
                    "google_drive",
                    f"Google Drive API error: {response.status_code}",
                    status_code=response.status_code,
                )

            data = response.json()
            items.extend(data.get("files") or [])
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        files = [item for item in items if item.get("mimeType") != DRIVE_FOLDER_MIME]
        subfolders = [item for item in items if item.get("mimeType") == DRIVE_FOLDER_MIME]
        return files, subfolders

    @staticmethod
    def list_google_drive_files(
        user_id: str,
        folder_id: str | None,
        team_id: str | None = None,
        include_subfolders: bool = True,
        max_depth: int = 2,
    ) -> dict[str, Any]:
        """
        List the files under a Google Drive folder.

        The user's own Google connection is used, else their team's. Only a
        failure on the requested folder itself is reported; unreadable
        subfolders are logged and skipped.

        Returns:
            {files, googleAccount, totalCount, subfolderCount, folderId}, or
            {error, files: [], totalCount: 0} when Google can't find the folder

        Raises:
            InvalidRequestError: folder_id missing or no active connection
            ProviderError: 401/403 (reconnect needed) or other Drive failure
        """
        if not folder_id:
            raise InvalidRequestError("folderId is required")

        user_id = normalize_uuid(user_id)
        if not team_id:
            user = SupabaseClient.fetch_user(user_id, columns="team_id")
            team_id = user.get("team_id") if user else None

        connection = IntegrationService.find_google_connection(user_id, team_id)
        if not connection or not connection.get("access_token"):
            raise InvalidRequestError("No active Google Drive connection")

        account = connection.get("google_account_email")
        all_files: list[dict[str, Any]] = []
        subfolder_count = 0
        pending = deque([(folder_id, 0)])

        while pending:
            current_id, depth = pending.popleft()

            try:
                files, subfolders = DriveService._fetch_folder(current_id, connection["access_token"])
            except (ProviderError, httpx.HTTPError) as e:
                logger.error(f"Error fetching Drive folder {current_id}: {e}")
                if depth > 0:
                    continue

                status_code = getattr(e, "status_code", None)
                if status_code == 401:
                    raise ProviderError(
                        "google_drive",
                        "Google Drive token expired. Please reconnect.",
                        status_code=401,
                        extra={"googleAccount": account},
                    )
                if status_code == 403:
                    raise ProviderError(
                        "google_drive",
                        "Google Drive access denied. Please reconnect with Drive permissions.",
                        status_code=403,
                        extra={"googleAccount": account},
                    )
                if status_code == 404:
                    return {"error": "Folder not found or access denied", "files": [], "totalCount": 0}
                raise ProviderError(
                    "google_drive",
                    "Failed to fetch files from Google Drive",
                    details=getattr(e, "message", str(e)),
                )

            all_files.extend(files)
            subfolder_count += len(subfolders)

            if include_subfolders and depth < max_depth - 1:
                pending.extend((subfolder["id"], depth + 1) for subfolder in subfolders)

        categorized = [
            {**item, "category": categorize_mime_type(item.get("mimeType") or "")}
            for item in all_files
        ]
        logger.info(
            f"Listed {len(categorized)} Drive files under {folder_id} "
            f"({subfolder_count} subfolders)"
        )

        return {
            "files": categorized,
            "googleAccount": account,
            "totalCount": len(categorized),
            "subfolderCount": subfolder_count,
            "folderId": folder_id,
        }

    # -------------------------------------------------------------------------
    # Microsoft
    # -------------------------------------------------------------------------

    @staticmethod
    def _graph_get(path: str, access_token: str) -> dict[str, Any] | None:
        """GET a Graph resource; None (logged) on any failure."""
        try:
            response = httpx.get(
                f"{GRAPH_URL}{path}",
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            logger.error(f"Graph request {path} failed: {e}")
            return None

        if not response.is_success:
            logger.warning(f"Graph request {path} returned {response.status_code}")
            return None
        return response.json()

    @staticmethod
    def list_microsoft_drives(user_id: str) -> dict[str, Any]:
        """
        List the drives the user's Microsoft connection can reach.

        Order: the personal OneDrive, then document libraries of every
        SharePoint site found by search or followed (named
        "<site> - <library>"), then any other drive from /me/drives.
        Drives are de-duplicated by id; Graph calls that fail are skipped.

        Returns:
            {drives: [{id, name, driveType, webUrl, owner}]}

        Raises:
            NotFoundError: No active Microsoft connection
        """
        user_id = normalize_uuid(user_id)
        client = SupabaseClient.get_client()

        connection = maybe_one(
            client.table("user_drive_connections")
            .select("*")
            .eq("user_id", user_id)
            .eq("provider", "microsoft")
            .eq("is_active", True)
            .maybe_single()
            .execute()
        )
        if not connection or not connection.get("access_token"):
            raise NotFoundError("Microsoft connection", user_id)

        token = connection["access_token"]
        drives: list[dict[str, Any]] = []
        seen: set[str] = set()

        def _add(drive: dict[str, Any]) -> None:
            if drive.get("id") and drive["id"] not in seen:
                seen.add(drive["id"])
                drives.append(drive)

        my_drive = DriveService._graph_get("/me/drive", token)
        if my_drive:
            _add({
                "id": my_drive.get("id"),
                "name": my_drive.get("name") or "OneDrive",
                "driveType": my_drive.get("driveType") or "personal",
                "webUrl": my_drive.get("webUrl"),
                "owner": my_drive.get("owner"),
            })

        sites: dict[str, str] = {}
        for path in ("/sites?search=*&$top=100&$select=id,displayName,webUrl", "/me/followedSites?$top=50"):
            for site in (DriveService._graph_get(path, token) or {}).get("value") or []:
                if site.get("id") and site.get("displayName"):
                    sites.setdefault(site["id"], site["displayName"])

        for site_id, site_name in sites.items():
            for drive in (DriveService._graph_get(f"/sites/{site_id}/drives", token) or {}).get("value") or []:
                _add({
                    "id": drive.get("id"),
                    "name": f"{site_name} - {drive.get('name')}",
                    "driveType": "documentLibrary",
                    "webUrl": drive.get("webUrl"),
                    "owner": {"group": {"displayName": site_name}},
                })

        for drive in (DriveService._graph_get("/me/drives", token) or {}).get("value") or []:
            _add({
                "id": drive.get("id"),
                "name": drive.get("name") or "Shared Drive",
                "driveType": drive.get("driveType") or "business",
                "webUrl": drive.get("webUrl"),
                "owner": drive.get("owner"),
            })

        logger.info(f"Found {len(drives)} Microsoft drives for {user_id}")
        return {"drives": drives}
