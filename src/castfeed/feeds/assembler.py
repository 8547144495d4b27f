"""Podcast RSS assembly using feedgen.

The assembler is a pure function of its inputs: for the same show config,
episode facts and target URLs it renders byte-identical XML, except for the
channel ``lastBuildDate``, which comes from the injected clock.
"""

import logging
import re
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from feedgen.feed import FeedGenerator

from castfeed.config.schema import ShowConfig
from castfeed.feeds.models import (
    EpisodeFact,
    FeedDocument,
    FeedEntry,
    PublicationTarget,
    TargetKind,
)
from castfeed.utils.errors import ContractViolationError, InvalidConfigError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

GENERATOR_NAME = "castfeed"

# C0 controls other than tab/LF/CR, plus DEL
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# Extensions feedgen accepts for itunes:image (case-sensitive)
IMAGE_EXTENSIONS = (".jpg", ".png")


def utc_now() -> datetime:
    """Current time in UTC, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def check_text(field: str, value: str | None) -> None:
    """Reject text containing control characters.

    Args:
        field: Field name reported on failure
        value: Text to check (None is accepted)

    Raises:
        InvalidConfigError: If value contains a control character
    """
    if value is None:
        return
    match = _CONTROL_CHARS.search(value)
    if match:
        raise InvalidConfigError(
            f"Field '{field}' contains control character "
            f"{match.group()!r} at position {match.start()}",
            field=field,
        )


def check_image_url(value: str | None) -> None:
    """Reject cover art URLs the iTunes image tag can't carry.

    feedgen only emits ``itunes:image`` for URLs ending in ``.jpg`` or
    ``.png`` and drops anything else without an error.

    Raises:
        InvalidConfigError: If value doesn't end with a supported extension
    """
    if not value:
        return
    if not value.endswith(IMAGE_EXTENSIONS):
        raise InvalidConfigError(
            f"Cover image URL must end with .jpg or .png, got {value!r}", field="image_url"
        )


class FeedAssembler:
    """Build the podcast feed document for a show.

    Example:
        >>> assembler = FeedAssembler(clock=lambda: fixed_time)
        >>> document = assembler.assemble(show, facts, targets, feed_url=url)
        >>> document.entry_count
        2
    """

    def __init__(self, clock: Clock | None = None) -> None:
        """Initialize the assembler.

        Args:
            clock: Source of ``lastBuildDate`` (defaults to current UTC time)
        """
        self.clock = clock or utc_now

    def assemble(
        self,
        show: ShowConfig,
        facts: Sequence[EpisodeFact],
        targets: Sequence[PublicationTarget],
        feed_url: str | None = None,
    ) -> FeedDocument:
        """Assemble the feed.

        Args:
            show: Show-level configuration
            facts: Episode facts in publication order
            targets: Media targets, positionally matching ``facts``
            feed_url: Public URL of the feed itself (adds ``atom:link rel=self``)

        Returns:
            FeedDocument with entries in the order given

        Raises:
            ContractViolationError: If facts and targets don't line up
            InvalidConfigError: If a text field contains control characters
        """
        if len(facts) != len(targets):
            raise ContractViolationError(
                f"Got {len(facts)} episode facts but {len(targets)} publication targets"
            )
        for index, target in enumerate(targets):
            if target.kind is not TargetKind.MEDIA:
                raise ContractViolationError(
                    f"Target {index} ({target.key}) is a {target.kind.value} target, "
                    f"expected media"
                )

        self._validate_text(show, facts)

        description = show.description or show.title
        link = show.link or show.resolved_base_url()
        last_build_date = self.clock()
        pub_date = max((fact.published for fact in facts), default=None)

        entries = tuple(
            FeedEntry(
                title=fact.title,
                url=target.url,
                size_bytes=fact.size_bytes,
                media_type=fact.media_type,
                duration_seconds=fact.duration_seconds,
                published=fact.published,
            )
            for fact, target in zip(facts, targets)
        )

        try:
            content = self._render(
                show, entries, description, link, feed_url, pub_date, last_build_date
            )
        except ValueError as e:
            raise InvalidConfigError(f"Could not render feed: {e}") from e

        logger.debug("Assembled feed with %d entries (%d bytes)", len(entries), len(content))

        return FeedDocument(
            title=show.title,
            description=description,
            link=link,
            feed_url=feed_url,
            author=show.author,
            image_url=show.image_url,
            pub_date=pub_date,
            last_build_date=last_build_date,
            entries=entries,
            content=content,
        )

    def _validate_text(self, show: ShowConfig, facts: Sequence[EpisodeFact]) -> None:
        for field in ("title", "description", "author", "image_url", "link", "language"):
            check_text(field, getattr(show, field))
        check_image_url(show.image_url)
        for index, fact in enumerate(facts):
            check_text(f"episodes[{index}].title", fact.title)

    def _render(
        self,
        show: ShowConfig,
        entries: Sequence[FeedEntry],
        description: str,
        link: str,
        feed_url: str | None,
        pub_date: datetime | None,
        last_build_date: datetime,
    ) -> bytes:
        """Render the RSS 2.0 document with the iTunes namespace."""
        fg = FeedGenerator()
        fg.load_extension("podcast")

        fg.title(show.title)
        fg.description(description)
        fg.link(href=link, rel="alternate")
        if feed_url:
            fg.link(href=feed_url, rel="self")
        if show.language:
            fg.language(show.language)
        fg.generator(GENERATOR_NAME)

        if show.author:
            fg.podcast.itunes_author(show.author)
        if show.image_url:
            fg.image(url=show.image_url, title=show.title, link=link)
            fg.podcast.itunes_image(show.image_url)
        if show.explicit:
            fg.podcast.itunes_explicit(show.explicit)
        fg.podcast.itunes_block(show.block)

        if pub_date is not None:
            fg.pubDate(pub_date)
        fg.lastBuildDate(last_build_date)

        for entry in entries:
            fe = fg.add_entry(order="append")
            fe.title(entry.title)
            fe.guid(entry.url, permalink=True)
            fe.enclosure(entry.url, str(entry.size_bytes), entry.media_type)
            fe.published(entry.published)
            if entry.duration_seconds is not None:
                fe.podcast.itunes_duration(entry.duration_seconds)

        return fg.rss_str(pretty=True, encoding="UTF-8", xml_declaration=True)
