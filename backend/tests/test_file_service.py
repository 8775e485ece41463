"""
ExtraBeam Backend - File Service Unit Tests
===========================================

What:  Extension, size and path checks of FileService, signed uploads and
       cleanup.
How:   Each test gets its own storage root (temp_storage).

Test Strategy:
    ✅ Allowed extensions (images, PDF), case-insensitive
    ✅ Rejected extensions (.exe, .html, none)
    ✅ Size limits (Content-Length and actual body, empty body)
    ✅ Path confinement ("..", absolute paths)
    ✅ Signed upload round trip and token checks
    ✅ Cleanup after a failed write
"""

from unittest.mock import patch

import pytest

from extrabeam.exceptions import AuthenticationError, FileStorageError, NotFoundError, ValidationError
from extrabeam.security import create_access_token
from extrabeam.services.file_service import FileService


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("name", ["photo.jpg", "photo.jpeg", "logo.png", "cv.pdf", "a.webp"])
    def test_allowed_extensions(self, name):
        assert self.service.validate_extension(name).startswith(".")

    def test_extension_is_case_insensitive(self):
        assert self.service.validate_extension("PHOTO.JPG") == ".jpg"
        assert self.service.validate_extension("Devis.Pdf") == ".pdf"

    @pytest.mark.parametrize("name", ["malware.exe", "page.html", "noextension"])
    def test_rejected_extensions(self, name):
        with pytest.raises(ValidationError, match="non supporté"):
            self.service.validate_extension(name)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(1000, 1000)

    def test_reported_size_over_limit(self):
        with patch("extrabeam.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024 * 1024
            with pytest.raises(ValidationError, match="taille maximale"):
                self.service.validate_size(2 * 1024 * 1024, 10)

    def test_actual_size_over_limit(self):
        with patch("extrabeam.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 1024 * 1024
            with pytest.raises(ValidationError, match="taille maximale"):
                self.service.validate_size(None, 1024 * 1024 + 1)

    def test_empty_body_rejected(self):
        with pytest.raises(ValidationError, match="Fichier vide"):
            self.service.validate_size(0, 0)

    # ── Path Confinement ──────────────────────────────────────────────────

    def test_resolve_path_inside_root(self, temp_storage):
        path = self.service.resolve_path("avatars/jeanne/photo.jpg")
        assert str(path).startswith(str(self.service.storage_root))

    def test_parent_traversal_rejected(self):
        with pytest.raises(ValidationError, match="Chemin de fichier invalide"):
            self.service.resolve_path("avatars/../../etc/passwd")

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            self.service.resolve_path("   ")

    def test_object_key_joins_bucket_and_path(self):
        assert self.service.object_key("avatars", "/jeanne/photo.jpg") == "avatars/jeanne/photo.jpg"


class TestSignedUploads:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    def test_create_signed_upload_returns_put_url(self):
        target = self.service.create_signed_upload("avatars", "jeanne/photo.png")
        assert target["url"].endswith(f"/api/uploads/signed/{target['token']}")

    def test_create_signed_upload_rejects_bad_extension(self):
        with pytest.raises(ValidationError):
            self.service.create_signed_upload("avatars", "script.sh")

    @pytest.mark.asyncio
    async def test_store_signed_upload_writes_file(self):
        target = self.service.create_signed_upload("devis", "mission-1/devis.pdf")

        stored = await self.service.store_signed_upload(target["token"], b"%PDF-1.4 test", 13)

        assert stored["path"] == "devis/mission-1/devis.pdf"
        assert stored["publicUrl"].endswith("/api/files/devis/mission-1/devis.pdf")
        written = self.service.resolve_existing("devis/mission-1/devis.pdf")
        assert written.read_bytes() == b"%PDF-1.4 test"

    @pytest.mark.asyncio
    async def test_access_token_is_not_an_upload_token(self):
        token = create_access_token("someone", role="client")
        with pytest.raises(AuthenticationError):
            await self.service.store_signed_upload(token, b"data")

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self):
        with pytest.raises(AuthenticationError):
            await self.service.store_signed_upload("not-a-jwt", b"data")

    def test_resolve_existing_missing_file(self):
        with pytest.raises(NotFoundError):
            self.service.resolve_existing("avatars/nobody.png")


class TestCleanup:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    @pytest.mark.asyncio
    async def test_cleanup_removes_file(self):
        await self.service.store_file("tmp/a.png", b"x")
        await self.service.cleanup_file("tmp/a.png")
        with pytest.raises(NotFoundError):
            self.service.resolve_existing("tmp/a.png")

    @pytest.mark.asyncio
    async def test_cleanup_of_missing_file_is_silent(self):
        await self.service.cleanup_file("tmp/never-written.png")

    @pytest.mark.asyncio
    async def test_failed_write_raises_storage_error_and_cleans_up(self):
        with patch("aiofiles.open", side_effect=OSError("disk full")), \
             patch.object(self.service, "cleanup_file") as mock_cleanup:
            with pytest.raises(FileStorageError):
                await self.service.store_file("tmp/b.png", b"x")
        mock_cleanup.assert_awaited_once_with("tmp/b.png")
