"""Tests for the Google Drive source over a mocked Drive API."""

import httpx
import pytest
from google.auth.exceptions import RefreshError

from core.config import ConfigurationError, Settings
from sources.base import DocumentSourceError
from sources.filetypes import FOLDER_MIME_TYPE
from sources.google_drive import GoogleDriveSource

from fakes import source_file


class FakeCredentials:
    def __init__(self, valid: bool = True, error: Exception | None = None):
        self.token = "token-0"
        self._valid = valid
        self.error = error
        self.refreshes = 0

    @property
    def valid(self) -> bool:
        return self._valid

    def refresh(self, request) -> None:
        if self.error is not None:
            raise self.error
        self.refreshes += 1
        self.token = f"token-{self.refreshes}"
        self._valid = True


TREE = {
    "root": [
        [
            {"id": "f1", "name": "clients.csv", "mimeType": "text/csv", "size": "120",
             "modifiedTime": "2026-03-01T10:00:00.000Z"},
            {"id": "d1", "name": "Archive", "mimeType": FOLDER_MIME_TYPE},
        ],
        [
            {"id": "f2", "name": "photo.png", "mimeType": "image/png"},
            {"id": "f3", "name": "notes.txt", "mimeType": "text/plain"},
        ],
    ],
    "d1": [
        [{"id": "f4", "name": "proposal.pdf", "mimeType": "application/pdf",
          "webViewLink": "https://drive.google.com/file/d/f4/view"}],
    ],
}


class DriveAPI:
    """Minimal Drive v3 files endpoint."""

    def __init__(self, tree=None, failing_folders=(), first_status=None):
        self.tree = tree or TREE
        self.failing_folders = set(failing_folders)
        self.first_status = first_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.first_status is not None:
            status, self.first_status = self.first_status, None
            return httpx.Response(status, text="expired")

        path = request.url.path
        params = request.url.params
        if path == "/drive/v3/files":
            folder_id = params["q"].split("'")[1]
            if folder_id in self.failing_folders or folder_id not in self.tree:
                return httpx.Response(404, text="File not found")
            pages = self.tree[folder_id]
            page = int(params.get("pageToken", "0"))
            body = {"files": pages[page]}
            if page + 1 < len(pages):
                body["nextPageToken"] = str(page + 1)
            return httpx.Response(200, json=body)

        file_id = path.rsplit("/", 1)[-1]
        if params.get("alt") == "media":
            if file_id == "missing":
                return httpx.Response(404, text="not found")
            return httpx.Response(200, content=f"contents of {file_id}".encode())
        if file_id in self.failing_folders:
            return httpx.Response(403, text="forbidden")
        return httpx.Response(200, json={"id": file_id, "name": f"{file_id}.pdf"})


def make_source(api: DriveAPI, credentials=None, **kwargs) -> GoogleDriveSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return GoogleDriveSource("root", credentials or FakeCredentials(), client=client, **kwargs)


# =========================================================================
# Listing
# =========================================================================


class TestListAll:

    async def test_walks_tree_and_filters(self):
        api = DriveAPI()
        files = await make_source(api).list_all()

        assert [f.name for f in files] == ["clients.csv", "notes.txt", "proposal.pdf"]
        clients = files[0]
        assert clients.size == 120
        assert clients.modified_time.year == 2026
        assert files[2].web_view_link == "https://drive.google.com/file/d/f4/view"

    async def test_query_parameters(self):
        api = DriveAPI()
        await make_source(api).list_all()

        first = api.requests[0]
        assert first.headers["Authorization"] == "Bearer token-0"
        assert first.url.params["q"] == "'root' in parents and trashed = false"
        assert first.url.params["supportsAllDrives"] == "true"
        assert "pageToken" not in first.url.params
        assert api.requests[1].url.params["pageToken"] == "1"

    async def test_limit_stops_early(self):
        api = DriveAPI()
        files = await make_source(api).list_all(limit=1)
        assert [f.name for f in files] == ["clients.csv"]
        assert len(api.requests) == 1

    async def test_limit_within_second_page_skips_subfolders(self):
        api = DriveAPI()
        files = await make_source(api).list_all(limit=2)

        assert [f.name for f in files] == ["clients.csv", "notes.txt"]
        assert len(api.requests) == 2
        assert all("'d1'" not in r.url.params["q"] for r in api.requests)

    async def test_subfolder_failing_on_later_page_keeps_earlier_files(self):
        tree = {
            "root": [[{"id": "d1", "name": "A", "mimeType": FOLDER_MIME_TYPE}]],
            "d1": [[{"id": "f1", "name": "a.txt", "mimeType": "text/plain"}], []],
        }
        api = DriveAPI(tree)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("pageToken") == "1":
                api.requests.append(request)
                return httpx.Response(500, text="backend error")
            return api(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        source = GoogleDriveSource("root", FakeCredentials(), client=client)

        files = await source.list_all()
        assert [f.id for f in files] == ["f1"]

    async def test_root_failure_raises(self):
        api = DriveAPI(failing_folders={"root"})
        with pytest.raises(DocumentSourceError):
            await make_source(api).list_all()

    async def test_subfolder_failure_skipped(self):
        api = DriveAPI(failing_folders={"d1"})
        files = await make_source(api).list_all()
        assert [f.name for f in files] == ["clients.csv", "notes.txt"]

    async def test_folder_cycles(self):
        tree = {
            "root": [[{"id": "d1", "name": "A", "mimeType": FOLDER_MIME_TYPE}]],
            "d1": [[
                {"id": "root", "name": "Back", "mimeType": FOLDER_MIME_TYPE},
                {"id": "f1", "name": "a.txt", "mimeType": "text/plain"},
            ]],
        }
        files = await make_source(DriveAPI(tree)).list_all()
        assert [f.id for f in files] == ["f1"]


# =========================================================================
# Auth
# =========================================================================


class TestAuth:

    async def test_refreshes_invalid_token(self):
        credentials = FakeCredentials(valid=False)
        api = DriveAPI()
        await make_source(api, credentials).get_metadata("f1")

        assert credentials.refreshes == 1
        assert api.requests[0].headers["Authorization"] == "Bearer token-1"

    async def test_retries_once_after_401(self):
        credentials = FakeCredentials()
        api = DriveAPI(first_status=401)

        file = await make_source(api, credentials).get_metadata("f1")

        assert file.id == "f1"
        assert credentials.refreshes == 1
        assert [r.headers["Authorization"] for r in api.requests] == [
            "Bearer token-0",
            "Bearer token-1",
        ]

    async def test_error_status(self):
        api = DriveAPI(first_status=500)
        with pytest.raises(DocumentSourceError, match="Drive API error 500"):
            await make_source(api).get_metadata("f1")

    async def test_refresh_failure_is_source_error(self):
        credentials = FakeCredentials(valid=False, error=RefreshError("Reauthentication is needed"))
        api = DriveAPI()

        with pytest.raises(DocumentSourceError, match="Reauthentication is needed"):
            await make_source(api, credentials).list_all()
        assert api.requests == []

    async def test_refresh_failure_on_download_leaves_nothing(self, tmp_path):
        credentials = FakeCredentials(valid=False, error=RefreshError("invalid_grant"))
        source = make_source(DriveAPI(), credentials)

        with pytest.raises(DocumentSourceError, match="authentication failed"):
            await source.download(source_file("f1", "clients.csv", "text/csv"), tmp_path)
        assert list(tmp_path.iterdir()) == []


# =========================================================================
# Download and access
# =========================================================================


class TestDownload:

    async def test_download(self, tmp_path):
        source = make_source(DriveAPI())
        path = await source.download(source_file("f1", "clients.csv", "text/csv"), tmp_path / "staging")

        assert path == tmp_path / "staging" / "f1_clients.csv"
        assert path.read_bytes() == b"contents of f1"

    async def test_unsafe_names_sanitized(self, tmp_path):
        source = make_source(DriveAPI())
        path = await source.download(source_file("f1", "../q1:leads.csv"), tmp_path)
        assert path.name == "f1_q1_leads.csv"
        assert path.parent == tmp_path

    async def test_failed_download_leaves_nothing(self, tmp_path):
        source = make_source(DriveAPI())
        with pytest.raises(DocumentSourceError, match="HTTP 404"):
            await source.download(source_file("missing", "gone.csv"), tmp_path)
        assert list(tmp_path.iterdir()) == []


class TestCheckAccess:

    async def test_accessible(self):
        assert await make_source(DriveAPI()).check_access() is True

    async def test_not_accessible(self):
        assert await make_source(DriveAPI(failing_folders={"root"})).check_access() is False


class TestFromSettings:

    def test_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            GoogleDriveSource.from_settings(Settings(drive_folder_id="root"))

    def test_requires_folder(self):
        settings = Settings(drive_service_account_email="svc@x.iam", drive_private_key="key")
        with pytest.raises(ConfigurationError):
            GoogleDriveSource.from_settings(settings)
