"""Tests for sinalverde.adapters.whatsapp.credentials."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from sinalverde.adapters.whatsapp import CredentialStore, CredentialStoreError


class TestCredentialStore:
    @pytest.mark.asyncio
    async def test_open_creates_directory(self, tmp_path):
        store = CredentialStore(tmp_path / "nested" / "auth")
        assert not store.exists()

        path = await store.open()

        assert path == tmp_path / "nested" / "auth"
        assert store.exists()

    @pytest.mark.asyncio
    async def test_open_keeps_existing_files(self, tmp_path):
        store = CredentialStore(tmp_path / "auth")
        await store.open()
        (store.path / "creds.json").write_text("{}")

        await store.open()

        assert (store.path / "creds.json").read_text() == "{}"

    @pytest.mark.asyncio
    async def test_wipe_removes_everything(self, tmp_path):
        store = CredentialStore(tmp_path / "auth")
        await store.open()
        (store.path / "creds.json").write_text("{}")
        (store.path / "keys").mkdir()
        (store.path / "keys" / "pre-key-1.json").write_text("{}")

        await store.wipe()

        assert not store.exists()
        assert not store.path.exists()

    @pytest.mark.asyncio
    async def test_wipe_missing_directory_is_noop(self, tmp_path):
        store = CredentialStore(tmp_path / "never-created")
        await store.wipe()
        assert not store.exists()

    @pytest.mark.asyncio
    async def test_open_under_a_file_fails(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = CredentialStore(blocker / "auth")

        with pytest.raises(CredentialStoreError, match="cannot open"):
            await store.open()

    @pytest.mark.asyncio
    async def test_wipe_failure_raises(self, tmp_path):
        store = CredentialStore(tmp_path / "auth")
        await store.open()

        with patch(
            "sinalverde.adapters.whatsapp.credentials.shutil.rmtree",
            side_effect=PermissionError("read-only filesystem"),
        ):
            with pytest.raises(CredentialStoreError, match="read-only filesystem"):
                await store.wipe()

        assert store.exists()

    def test_accepts_str_path(self, tmp_path):
        store = CredentialStore(str(tmp_path / "auth"))
        assert store.path == tmp_path / "auth"
        assert "auth" in repr(store)
