"""Publishing pipeline orchestration.

Runs a publication through its stages:

    planning -> extracting -> assembling -> (done | uploading -> done)

Media files are uploaded before the feed, and the feed is only uploaded
when every media upload succeeded, so a client polling the feed URL never
sees an episode whose audio hasn't landed.
"""

import asyncio
import logging
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from castfeed.config.schema import PublishSettings, ShowConfig
from castfeed.feeds.assembler import FeedAssembler, check_image_url
from castfeed.feeds.models import EpisodeFact, FeedDocument, PublicationTarget
from castfeed.media.extractor import MetadataExtractor
from castfeed.publish.models import (
    OutcomeStatus,
    ProgressCallback,
    RunResult,
    RunState,
    RunStatus,
    TargetOutcome,
)
from castfeed.publish.targets import feed_target, object_key, plan_targets
from castfeed.storage.base import Body, ObjectStoreClient
from castfeed.utils.errors import (
    ContractViolationError,
    InvalidConfigError,
    MediaIOError,
    UploadError,
)
from castfeed.utils.urls import is_http_url

logger = logging.getLogger(__name__)


def _ignore_progress(step_name: str, step_data: dict[str, Any]) -> None:
    pass


class _OrderedProgress:
    """Emit one ``target_complete`` event per target, in upload order.

    Uploads may finish out of order when run concurrently; an event is held
    back until every earlier target has been reported.
    """

    def __init__(self, callback: ProgressCallback, total: int) -> None:
        self.callback = callback
        self.total = total
        self._pending: dict[int, TargetOutcome] = {}
        self._next = 0

    def complete(self, index: int, outcome: TargetOutcome) -> None:
        self._pending[index] = outcome
        while self._next in self._pending:
            done = self._pending.pop(self._next)
            self.callback(
                "target_complete",
                {
                    "index": self._next,
                    "total": self.total,
                    "kind": done.target.kind.value,
                    "key": done.target.key,
                    "status": done.status.value,
                    "url": done.url,
                    "error": done.error,
                },
            )
            self._next += 1


class Publisher:
    """Turn an ordered list of audio files into a feed and publish it.

    The publisher owns the object store session for the duration of one
    run and closes it on every exit path.

    Example:
        >>> publisher = Publisher(show, store=S3ObjectStore.from_show(show, settings))
        >>> result = asyncio.run(publisher.run(paths, publish=True))
        >>> result.ok
        True
    """

    def __init__(
        self,
        show: ShowConfig,
        settings: PublishSettings | None = None,
        store: ObjectStoreClient | None = None,
        extractor: MetadataExtractor | None = None,
        assembler: FeedAssembler | None = None,
    ) -> None:
        """Initialize the publisher.

        Args:
            show: Show-level configuration
            settings: Concurrency and timeout settings (defaults if None)
            store: Object store used when publishing
            extractor: Metadata extractor (defaults to mutagen-based one)
            assembler: Feed assembler (defaults to wall-clock build date)
        """
        self.show = show
        self.settings = settings or PublishSettings()
        self.store = store
        self.extractor = extractor or MetadataExtractor()
        self.assembler = assembler or FeedAssembler()
        self.state = RunState.PLANNING
        self._cancel_event = threading.Event()
        self._stragglers: set[asyncio.Future[str]] = set()

    def cancel(self) -> None:
        """Stop issuing uploads. In-flight uploads are allowed to finish.

        Safe to call from any thread, e.g. a signal handler.
        """
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested; no new uploads will start")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def run(
        self,
        paths: Sequence[Path],
        publish: bool = False,
        output_path: Path | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> RunResult:
        """Run the pipeline.

        Args:
            paths: Input audio files, in the order episodes should appear
            publish: Upload media and feed to the object store
            output_path: Also write the feed to this local file
            progress_callback: Receives ``(step_name, step_data)`` events

        Returns:
            RunResult describing every upload

        Raises:
            InvalidConfigError: If the show config or input list is invalid
            MediaIOError: If an input file can't be read
            UnsupportedFormatError: If an input file isn't a supported format
            ContractViolationError: If an internal invariant is broken
        """
        notify = progress_callback or _ignore_progress
        paths = [Path(p) for p in paths]

        try:
            self.state = RunState.PLANNING
            self._plan(paths, publish)

            self.state = RunState.EXTRACTING
            notify("extraction_start", {"file_count": len(paths)})
            facts = await self._extract_all(paths)
            notify(
                "extraction_complete",
                {
                    "file_count": len(facts),
                    "unknown_durations": sum(1 for f in facts if f.duration_seconds is None),
                },
            )

            self.state = RunState.ASSEMBLING
            media_targets = plan_targets(self.show, facts)
            feed = feed_target(self.show, source=output_path)
            document = self.assembler.assemble(
                self.show, facts, media_targets, feed_url=feed.url
            )
            notify(
                "assembly_complete",
                {"entry_count": document.entry_count, "size_bytes": len(document.content)},
            )

            if output_path is not None:
                document.write(output_path)
                logger.info("Wrote feed to %s", output_path)
                notify("feed_written", {"path": str(output_path)})

            if not publish:
                self.state = RunState.DONE
                return RunResult(
                    status=RunStatus.SUCCESS,
                    feed=document,
                    output_path=output_path,
                    published=False,
                )

            self.state = RunState.UPLOADING
            outcomes = await self._upload(media_targets, feed, document, notify)
            status = self._overall_status(outcomes)

            self.state = RunState.DONE
            return RunResult(
                status=status,
                feed=document,
                outcomes=tuple(outcomes),
                output_path=output_path,
                published=status is RunStatus.SUCCESS,
            )
        finally:
            if self.store is not None:
                try:
                    await self._drain_stragglers()
                finally:
                    self.store.close()

    def _plan(self, paths: Sequence[Path], publish: bool) -> None:
        """Validate configuration and inputs before touching any file."""
        show = self.show

        if not show.title.strip():
            raise InvalidConfigError("Show title must not be empty", field="title")
        if not show.bucket or not show.bucket.strip():
            raise InvalidConfigError("A destination bucket is required", field="bucket")
        if not show.region.strip():
            raise InvalidConfigError("A destination region is required", field="region")
        if not show.feed_filename.strip() or "/" in show.feed_filename:
            raise InvalidConfigError(
                f"Invalid feed filename: {show.feed_filename!r}", field="feed_filename"
            )

        base_url = show.resolved_base_url()
        if not is_http_url(base_url):
            raise InvalidConfigError(
                f"Base URL must be an absolute http(s) URL, got {base_url!r}", field="base_url"
            )
        check_image_url(show.image_url)

        if not paths:
            raise InvalidConfigError("No input files given", field="files")

        seen_paths: dict[Path, int] = {}
        seen_keys: dict[str, int] = {object_key(show, show.feed_filename): -1}
        for index, path in enumerate(paths):
            resolved = path.resolve()
            if resolved in seen_paths:
                raise InvalidConfigError(
                    f"Duplicate input file: {path} "
                    f"(same file as input #{seen_paths[resolved] + 1})",
                    field="files",
                )
            seen_paths[resolved] = index

            try:
                path.name.encode("utf-8")
            except UnicodeEncodeError as e:
                raise InvalidConfigError(
                    f"Input file name is not valid UTF-8: {path!r}", field="files"
                ) from e

            key = object_key(show, path.name)
            if key in seen_keys:
                clash = "the feed" if seen_keys[key] < 0 else f"input #{seen_keys[key] + 1}"
                raise InvalidConfigError(
                    f"Input {path} would be published to the same key '{key}' as {clash}",
                    field="files",
                )
            seen_keys[key] = index

        if publish and self.store is None:
            raise InvalidConfigError("Publishing requested but no object store configured")

        logger.debug("Planned %d episodes under %s", len(paths), base_url)

    async def _extract_all(self, paths: Sequence[Path]) -> list[EpisodeFact]:
        """Extract every file with bounded parallelism.

        All files are attempted; the first failure in input order is raised.
        """
        semaphore = asyncio.Semaphore(self.settings.extract_concurrency)
        timeout = self.settings.extract_timeout_seconds

        async def extract_one(path: Path) -> EpisodeFact:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        asyncio.to_thread(self.extractor.extract, path), timeout=timeout
                    )
                except asyncio.TimeoutError as e:
                    raise MediaIOError(
                        f"Timed out after {timeout:.0f}s reading {path}", path
                    ) from e

        results = await asyncio.gather(*(extract_one(p) for p in paths), return_exceptions=True)

        facts: list[EpisodeFact] = []
        for path, result in zip(paths, results):
            if isinstance(result, BaseException):
                logger.error("Metadata extraction failed for %s: %s", path, result)
                raise result
            facts.append(result)
        return facts

    async def _upload(
        self,
        media_targets: Sequence[PublicationTarget],
        feed: PublicationTarget,
        document: FeedDocument,
        notify: ProgressCallback,
    ) -> list[TargetOutcome]:
        """Upload media in input order, then the feed if nothing failed."""
        if self.store is None:
            raise ContractViolationError("Upload stage reached without an object store")

        total = len(media_targets) + 1
        progress = _OrderedProgress(notify, total)
        semaphore = asyncio.Semaphore(self.settings.upload_concurrency)
        notify("upload_start", {"target_count": total})

        async def upload_one(index: int, target: PublicationTarget) -> TargetOutcome:
            async with semaphore:
                if self.cancelled:
                    outcome = TargetOutcome(
                        target=target,
                        status=OutcomeStatus.SKIPPED,
                        error="Cancelled before upload started",
                    )
                else:
                    outcome = await self._put(target, target.source)
            progress.complete(index, outcome)
            return outcome

        tasks = [
            asyncio.create_task(upload_one(index, target))
            for index, target in enumerate(media_targets)
        ]
        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            # Let in-flight uploads settle; queued ones see the flag and skip
            self.cancel()
            await asyncio.wait(tasks)
            raise

        outcomes = [task.result() for task in tasks]

        failed = [o for o in outcomes if o.status is OutcomeStatus.FAILED]
        if failed or self.cancelled:
            reason = (
                f"{len(failed)} media upload(s) failed" if failed else "Run was cancelled"
            )
            logger.warning("Not uploading feed: %s", reason)
            feed_outcome = TargetOutcome(target=feed, status=OutcomeStatus.SKIPPED, error=reason)
        else:
            feed_outcome = await self._put(feed, document.content)

        progress.complete(len(media_targets), feed_outcome)
        outcomes.append(feed_outcome)

        notify(
            "upload_complete",
            {
                "succeeded": sum(1 for o in outcomes if o.status is OutcomeStatus.SUCCEEDED),
                "failed": sum(1 for o in outcomes if o.status is OutcomeStatus.FAILED),
                "skipped": sum(1 for o in outcomes if o.status is OutcomeStatus.SKIPPED),
            },
        )
        return outcomes

    async def _put(self, target: PublicationTarget, body: Body | None) -> TargetOutcome:
        """Upload one target; upload errors become a failed outcome.

        A put that outlives the timeout can't be interrupted; its worker
        thread is tracked and awaited before the store is closed.
        """
        if self.store is None:
            raise ContractViolationError(f"No object store to upload {target.key}")
        if body is None:
            raise ContractViolationError(f"No content for target {target.key}")

        timeout = self.settings.upload_timeout_seconds
        put = asyncio.ensure_future(
            asyncio.to_thread(self.store.put, target.key, body, target.content_type)
        )
        try:
            done, _ = await asyncio.wait({put}, timeout=timeout)
        except asyncio.CancelledError:
            self._stragglers.add(put)
            raise

        if not done:
            self._stragglers.add(put)
            error = f"Timed out after {timeout:.0f}s"
            logger.error("Upload of %s failed: %s", target.key, error)
            return TargetOutcome(target=target, status=OutcomeStatus.FAILED, error=error)

        try:
            url = put.result()
        except UploadError as e:
            logger.error("Upload of %s failed: %s", target.key, e)
            return TargetOutcome(target=target, status=OutcomeStatus.FAILED, error=str(e))

        logger.info("Uploaded %s", url)
        return TargetOutcome(target=target, status=OutcomeStatus.SUCCEEDED, url=url)

    async def _drain_stragglers(self) -> None:
        """Wait for timed-out puts still running in worker threads."""
        if not self._stragglers:
            return
        logger.warning(
            "Waiting for %d timed-out upload(s) to finish before closing the store",
            len(self._stragglers),
        )
        done, _ = await asyncio.wait(self._stragglers)
        self._stragglers.clear()
        for put in done:
            if not put.cancelled() and put.exception() is not None:
                logger.debug("Timed-out upload ended with: %s", put.exception())

    def _overall_status(self, outcomes: Sequence[TargetOutcome]) -> RunStatus:
        if any(o.status is OutcomeStatus.FAILED for o in outcomes):
            return RunStatus.PARTIAL_FAILURE
        if self.cancelled:
            return RunStatus.CANCELLED
        return RunStatus.SUCCESS
