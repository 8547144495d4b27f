"""S3-compatible object store client using boto3.

Works against AWS S3 and S3-compatible services (DigitalOcean Spaces,
MinIO, R2) through ``endpoint_url``. Credentials come from the standard
boto3 chain (environment, shared config, instance role).
"""

import logging
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from castfeed.config.schema import PublishSettings, ShowConfig
from castfeed.storage.base import Body, ObjectStoreClient
from castfeed.utils.errors import (
    StoreAuthenticationError,
    StoreConnectionError,
    StoreTimeoutError,
    UploadError,
)
from castfeed.utils.retry import RetryConfig, classify_http_error, with_retry
from castfeed.utils.urls import public_url

logger = logging.getLogger(__name__)

FEED_CONTENT_PREFIX = "application/rss+xml"


def _classify_client_error(error: ClientError, key: str) -> UploadError:
    response = error.response or {}
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    code = response.get("Error", {}).get("Code", "")
    message = response.get("Error", {}).get("Message", str(error))
    return classify_http_error(int(status or 0), key, code, message)


class S3ObjectStore(ObjectStoreClient):
    """Upload objects to an S3 bucket.

    Transient failures (timeouts, connection drops, throttling, 5xx) are
    retried with exponential backoff; botocore's own retries are disabled so
    there is exactly one retry policy.

    Example:
        >>> store = S3ObjectStore(bucket="my-show", base_url="https://my-show.s3.amazonaws.com")
        >>> store.put("ep1.mp3", Path("ep1.mp3"), "audio/mpeg")
        'https://my-show.s3.amazonaws.com/ep1.mp3'
    """

    def __init__(
        self,
        bucket: str,
        base_url: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        public_read: bool = False,
        feed_cache_control: str | None = None,
        connect_timeout: float = 10.0,
        read_timeout: float = 60.0,
        max_pool_connections: int = 10,
        retry_config: RetryConfig | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            bucket: Bucket name
            base_url: Public URL objects are served under
            region: Bucket region
            endpoint_url: Custom endpoint for S3-compatible services
            public_read: Upload with the ``public-read`` canned ACL
            feed_cache_control: Cache-Control header for RSS objects
            connect_timeout: Seconds to wait for a connection
            read_timeout: Seconds to wait on a socket read
            max_pool_connections: HTTP pool size (match upload concurrency)
            retry_config: Backoff settings (defaults to 3 attempts)
            client: Pre-built boto3 S3 client (mainly for tests)
        """
        self.bucket = bucket
        self.base_url = base_url
        self.public_read = public_read
        self.feed_cache_control = feed_cache_control

        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint_url,
                config=Config(
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    max_pool_connections=max_pool_connections,
                    retries={"total_max_attempts": 1},
                ),
            )
        self.client = client
        self._closed = False
        self._put_with_retry = with_retry(config=retry_config)(self._put_once)

    @classmethod
    def from_show(cls, show: ShowConfig, settings: PublishSettings) -> "S3ObjectStore":
        """Build a store for a show's destination.

        The upload timeout bounds all attempts of one put together, so each
        attempt gets an equal share of it as its socket read timeout.
        """
        if not show.bucket:
            raise ValueError("ShowConfig.bucket is required to build an S3 store")
        return cls(
            bucket=show.bucket,
            base_url=show.resolved_base_url(),
            region=show.region,
            endpoint_url=show.endpoint_url,
            public_read=settings.public_read,
            feed_cache_control=settings.feed_cache_control,
            connect_timeout=settings.connect_timeout_seconds,
            read_timeout=settings.upload_timeout_seconds / settings.max_upload_attempts,
            max_pool_connections=max(10, settings.upload_concurrency),
            retry_config=RetryConfig(
                max_attempts=settings.max_upload_attempts,
                max_total_seconds=settings.upload_timeout_seconds,
            ),
        )

    def put(self, key: str, body: Body, content_type: str) -> str:
        self._put_with_retry(key, body, content_type)
        url = self.url_for(key)
        logger.debug("Stored s3://%s/%s", self.bucket, key)
        return url

    def url_for(self, key: str) -> str:
        return public_url(self.base_url, key)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self.client, "close", None)
        if close is not None:
            close()

    def _extra_args(self, content_type: str) -> dict[str, str]:
        extra = {"ContentType": content_type}
        if self.public_read:
            extra["ACL"] = "public-read"
        if self.feed_cache_control and content_type.startswith(FEED_CONTENT_PREFIX):
            extra["CacheControl"] = self.feed_cache_control
        return extra

    def _put_once(self, key: str, body: Body, content_type: str) -> None:
        """Single upload attempt, translating boto errors to UploadError types."""
        extra = self._extra_args(content_type)
        try:
            if isinstance(body, Path):
                self.client.upload_file(str(body), self.bucket, key, ExtraArgs=extra)
            else:
                self.client.put_object(Bucket=self.bucket, Key=key, Body=body, **extra)
        except ClientError as e:
            raise _classify_client_error(e, key) from e
        except S3UploadFailedError as e:
            cause = e.__cause__ or e.__context__
            if isinstance(cause, ClientError):
                raise _classify_client_error(cause, key) from e
            raise UploadError(f"Upload of {key} failed: {e}", key) from e
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            raise StoreTimeoutError(f"Timed out uploading {key}: {e}", key) from e
        except (EndpointConnectionError, ConnectionClosedError) as e:
            raise StoreConnectionError(f"Connection failed uploading {key}: {e}", key) from e
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise StoreAuthenticationError(f"No usable credentials: {e}", key) from e
        except BotoCoreError as e:
            raise UploadError(f"Upload of {key} failed: {e}", key) from e
        except OSError as e:
            raise UploadError(f"Cannot read local file for {key}: {e}", key) from e
