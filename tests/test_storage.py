"""Tests for receipt image object stores."""

from unittest.mock import MagicMock, patch

import pytest

from niche.rewards.config import load_config
from niche.rewards.errors import UpstreamUnavailable
from niche.rewards.storage import create_object_store, make_image_key
from niche.rewards.storage.local import LocalObjectStore
from niche.rewards.storage.supabase_bucket import SupabaseObjectStore


def test_make_image_key():
    assert make_image_key("user-1", now_ms=1700000000123) == "user-1/receipt_1700000000123.jpg"


def test_make_image_key_uses_clock():
    key = make_image_key("user-1")
    assert key.startswith("user-1/receipt_")
    assert key.endswith(".jpg")


class TestLocalObjectStore:
    def test_upload_and_resolve(self, tmp_path):
        src = tmp_path / "photo.jpg"
        src.write_bytes(b"jpeg")
        store = LocalObjectStore(root=tmp_path / "bucket")

        key = store.upload(src, "user-1/receipt_1.jpg")
        url = store.resolve_readable_url(key, expires_in=60)

        assert key == "user-1/receipt_1.jpg"
        assert url.startswith("file://")
        assert (tmp_path / "bucket" / "user-1" / "receipt_1.jpg").read_bytes() == b"jpeg"

    def test_resolve_missing_key(self, tmp_path):
        store = LocalObjectStore(root=tmp_path)
        with pytest.raises(UpstreamUnavailable, match="not found"):
            store.resolve_readable_url("user-1/receipt_404.jpg")

    def test_key_cannot_escape_root(self, tmp_path):
        (tmp_path / "secret.txt").write_text("x")
        store = LocalObjectStore(root=tmp_path / "bucket")
        with pytest.raises(UpstreamUnavailable, match="Invalid storage key"):
            store.resolve_readable_url("../secret.txt")

    def test_upload_missing_source(self, tmp_path):
        store = LocalObjectStore(root=tmp_path)
        with pytest.raises(FileNotFoundError):
            store.upload(tmp_path / "nope.jpg", "user-1/receipt_1.jpg")


class TestSupabaseObjectStore:
    def _store(self, bucket):
        client = MagicMock()
        client.storage.from_.return_value = bucket
        return SupabaseObjectStore(client, bucket="receipts-original"), client

    def test_signed_url(self):
        bucket = MagicMock()
        bucket.create_signed_url.return_value = {"signedURL": "https://x/sign?token=abc"}
        store, client = self._store(bucket)

        url = store.resolve_readable_url("user-1/receipt_1.jpg", expires_in=300)

        assert url == "https://x/sign?token=abc"
        client.storage.from_.assert_called_with("receipts-original")
        bucket.create_signed_url.assert_called_once_with("user-1/receipt_1.jpg", 300)

    def test_signed_url_camel_case_key(self):
        bucket = MagicMock()
        bucket.create_signed_url.return_value = {"signedUrl": "https://x/sign?token=def"}
        store, _ = self._store(bucket)
        assert store.resolve_readable_url("k") == "https://x/sign?token=def"

    def test_signed_url_failure(self):
        bucket = MagicMock()
        bucket.create_signed_url.side_effect = RuntimeError("Object not found")
        store, _ = self._store(bucket)
        with pytest.raises(UpstreamUnavailable, match="Object not found"):
            store.resolve_readable_url("user-1/missing.jpg")

    def test_signed_url_empty(self):
        bucket = MagicMock()
        bucket.create_signed_url.return_value = {}
        store, _ = self._store(bucket)
        with pytest.raises(UpstreamUnavailable):
            store.resolve_readable_url("user-1/receipt_1.jpg")

    def test_upload(self, tmp_path):
        src = tmp_path / "photo.jpg"
        src.write_bytes(b"jpeg")
        bucket = MagicMock()
        store, _ = self._store(bucket)

        assert store.upload(src, "user-1/receipt_1.jpg") == "user-1/receipt_1.jpg"
        bucket.upload.assert_called_once_with(
            "user-1/receipt_1.jpg", b"jpeg", {"content-type": "image/jpeg"}
        )


class TestCreateObjectStore:
    def test_local_default(self):
        assert isinstance(create_object_store(load_config()), LocalObjectStore)

    def test_supabase(self):
        config = load_config()
        config.storage.backend = "supabase"
        config.supabase.url = "https://example.supabase.co"
        config.supabase.key = "service-key"

        with patch(
            "niche.rewards.supabase_client.create_supabase_client"
        ) as mock_create:
            store = create_object_store(config)

        assert isinstance(store, SupabaseObjectStore)
        mock_create.assert_called_once_with("https://example.supabase.co", "service-key")

    def test_supabase_requires_credentials(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        config = load_config()
        config.storage.backend = "supabase"
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            create_object_store(config)

    def test_unknown(self):
        config = load_config()
        config.storage.backend = "s3"
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_object_store(config)
