"""Tests for the S3 object store client."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from castfeed.config.schema import PublishSettings, ShowConfig
from castfeed.media import FEED_CONTENT_TYPE
from castfeed.storage import S3ObjectStore
from castfeed.utils.errors import (
    InvalidConfigError,
    StoreAuthenticationError,
    StoreConnectionError,
    StoreNotFoundError,
    StoreTimeoutError,
    UploadError,
)
from castfeed.utils.retry import TEST_RETRY_CONFIG

BASE = "https://bkt.s3.us-east-1.amazonaws.com"


def client_error(status: int, code: str, message: str = "", operation: str = "PutObject"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_store(client: MagicMock):
    def _make(**kwargs) -> S3ObjectStore:
        kwargs.setdefault("retry_config", TEST_RETRY_CONFIG)
        return S3ObjectStore(bucket="bkt", base_url=BASE, client=client, **kwargs)

    return _make


class TestPut:
    """Tests for successful uploads."""

    def test_put_bytes(self, client: MagicMock, make_store) -> None:
        """Test byte bodies go through put_object."""
        store = make_store()

        url = store.put("feed.xml", b"<rss/>", "application/xml")

        assert url == f"{BASE}/feed.xml"
        client.put_object.assert_called_once_with(
            Bucket="bkt", Key="feed.xml", Body=b"<rss/>", ContentType="application/xml"
        )
        client.upload_file.assert_not_called()

    def test_put_file(self, client: MagicMock, make_store, tmp_path: Path) -> None:
        """Test file bodies are streamed with upload_file."""
        path = tmp_path / "ep 1.mp3"
        path.write_bytes(b"\x00" * 10)
        store = make_store()

        url = store.put("shows/ep 1.mp3", path, "audio/mpeg")

        assert url == f"{BASE}/shows/ep%201.mp3"
        client.upload_file.assert_called_once_with(
            str(path), "bkt", "shows/ep 1.mp3", ExtraArgs={"ContentType": "audio/mpeg"}
        )

    def test_public_read_acl(self, client: MagicMock, make_store) -> None:
        """Test the canned ACL is sent when enabled."""
        store = make_store(public_read=True)

        store.put("ep.mp3", b"x", "audio/mpeg")

        assert client.put_object.call_args.kwargs["ACL"] == "public-read"

    def test_feed_cache_control(self, client: MagicMock, make_store) -> None:
        """Test Cache-Control is only set on the feed."""
        store = make_store(feed_cache_control="max-age=60")

        store.put("feed.xml", b"<rss/>", FEED_CONTENT_TYPE)
        store.put("ep.mp3", b"x", "audio/mpeg")

        feed_call, media_call = client.put_object.call_args_list
        assert feed_call.kwargs["CacheControl"] == "max-age=60"
        assert "CacheControl" not in media_call.kwargs

    def test_url_for(self, make_store) -> None:
        assert make_store().url_for("a b.mp3") == f"{BASE}/a%20b.mp3"


class TestErrors:
    """Tests for error translation and retries."""

    def test_access_denied_not_retried(self, client: MagicMock, make_store) -> None:
        """Test auth failures surface immediately."""
        client.put_object.side_effect = client_error(403, "AccessDenied", "Access Denied")

        with pytest.raises(StoreAuthenticationError, match="Access Denied") as exc_info:
            make_store().put("ep.mp3", b"x", "audio/mpeg")

        assert exc_info.value.key == "ep.mp3"
        assert client.put_object.call_count == 1

    def test_missing_bucket(self, client: MagicMock, make_store) -> None:
        """Test NoSuchBucket is reported and not retried."""
        client.put_object.side_effect = client_error(404, "NoSuchBucket")

        with pytest.raises(StoreNotFoundError):
            make_store().put("ep.mp3", b"x", "audio/mpeg")

        assert client.put_object.call_count == 1

    def test_server_error_retried_then_succeeds(self, client: MagicMock, make_store) -> None:
        """Test a transient 503 is retried."""
        client.put_object.side_effect = [client_error(503, "SlowDown"), {"ETag": '"abc"'}]

        url = make_store().put("ep.mp3", b"x", "audio/mpeg")

        assert url == f"{BASE}/ep.mp3"
        assert client.put_object.call_count == 2

    def test_server_error_exhausts_attempts(self, client: MagicMock, make_store) -> None:
        """Test the last error is raised after all attempts."""
        client.put_object.side_effect = client_error(500, "InternalError")

        with pytest.raises(StoreConnectionError):
            make_store().put("ep.mp3", b"x", "audio/mpeg")

        assert client.put_object.call_count == TEST_RETRY_CONFIG.max_attempts

    def test_endpoint_unreachable(self, client: MagicMock, make_store) -> None:
        """Test connection failures are retryable connection errors."""
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.test")

        with pytest.raises(StoreConnectionError, match="Connection failed"):
            make_store().put("ep.mp3", b"x", "audio/mpeg")

        assert client.put_object.call_count == TEST_RETRY_CONFIG.max_attempts

    def test_read_timeout(self, client: MagicMock, make_store) -> None:
        """Test socket timeouts map to StoreTimeoutError."""
        client.put_object.side_effect = ReadTimeoutError(endpoint_url="https://s3.test")

        with pytest.raises(StoreTimeoutError):
            make_store().put("ep.mp3", b"x", "audio/mpeg")

    def test_no_credentials(self, client: MagicMock, make_store) -> None:
        """Test a missing credential chain is an auth error."""
        client.put_object.side_effect = NoCredentialsError()

        with pytest.raises(StoreAuthenticationError, match="credentials"):
            make_store().put("ep.mp3", b"x", "audio/mpeg")

        assert client.put_object.call_count == 1

    def test_upload_failed_wrapping_client_error(
        self, client: MagicMock, make_store, tmp_path: Path
    ) -> None:
        """Test the ClientError behind an S3UploadFailedError is classified."""
        path = tmp_path / "ep.mp3"
        path.write_bytes(b"x")

        def fail(*args, **kwargs):
            try:
                raise client_error(403, "AccessDenied")
            except ClientError as e:
                raise S3UploadFailedError("Failed to upload") from e

        client.upload_file.side_effect = fail

        with pytest.raises(StoreAuthenticationError):
            make_store().put("ep.mp3", path, "audio/mpeg")

    def test_unreadable_local_file(self, client: MagicMock, make_store, tmp_path: Path) -> None:
        """Test local read errors become upload errors for that key."""
        client.upload_file.side_effect = FileNotFoundError("no such file")

        with pytest.raises(UploadError, match="Cannot read local file"):
            make_store().put("ep.mp3", tmp_path / "gone.mp3", "audio/mpeg")


class TestLifecycle:
    """Tests for construction and closing."""

    def test_close_idempotent(self, client: MagicMock, make_store) -> None:
        """Test close releases the client once."""
        store = make_store()

        store.close()
        store.close()

        client.close.assert_called_once_with()

    def test_context_manager(self, client: MagicMock, make_store) -> None:
        with make_store() as store:
            store.put("ep.mp3", b"x", "audio/mpeg")

        client.close.assert_called_once_with()

    def test_from_show(self) -> None:
        """Test the boto3 client is configured from show and settings."""
        show = ShowConfig(
            title="X", bucket="pods", region="eu-west-1", endpoint_url="http://localhost:9000"
        )
        settings = PublishSettings(public_read=True, upload_concurrency=16)

        with patch("castfeed.storage.s3.boto3.session.Session") as session_cls:
            store = S3ObjectStore.from_show(show, settings)

        kwargs = session_cls.return_value.client.call_args.kwargs
        assert session_cls.return_value.client.call_args.args == ("s3",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["config"].max_pool_connections == 16
        assert kwargs["config"].read_timeout == 200.0
        assert store.bucket == "pods"
        assert store.base_url == "http://localhost:9000/pods"
        assert store.public_read is True

    def test_from_show_requires_bucket(self) -> None:
        with pytest.raises(ValueError, match="bucket"):
            S3ObjectStore.from_show(ShowConfig(title="X"), PublishSettings())

    def test_from_show_bad_base_url_template(self) -> None:
        """Test an unknown placeholder is a config error before any client is built."""
        show = ShowConfig(title="X", bucket="pods", base_url="https://cdn.test/{foo}")

        with patch("castfeed.storage.s3.boto3.session.Session") as session_cls:
            with pytest.raises(InvalidConfigError) as exc_info:
                S3ObjectStore.from_show(show, PublishSettings())

        assert exc_info.value.field == "base_url"
        session_cls.assert_not_called()
