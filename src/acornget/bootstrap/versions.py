"""Release version resolution.

Resolution order:
1. A configured commit (developer builds from commit-scoped storage)
2. A configured version tag, used verbatim
3. The channel endpoint, whose redirect target ends in the version tag
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from acornget.bootstrap.transport import Transport
from acornget.config.models import InstallConfig
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedVersion:
    """The release tag or commit every download URL is built from."""

    tag: Optional[str] = None
    commit: Optional[str] = None

    @property
    def is_commit(self) -> bool:
        return self.commit is not None

    def __str__(self) -> str:
        if self.commit is not None:
            return f"commit {self.commit}"
        return self.tag or ""


def resolve_version(config: InstallConfig, transport: Transport) -> ResolvedVersion:
    """Determine which release to install.

    The tag returned by a channel lookup is not validated. An empty or
    malformed tag produces URLs that fail to download later on.
    """
    if config.commit:
        resolved = ResolvedVersion(commit=config.commit)
    elif config.version:
        resolved = ResolvedVersion(tag=config.version)
    else:
        LOGGER.info(f"Finding release for channel {config.channel}")
        version_url = f"{config.channel_url}/{config.channel}"
        resolved = ResolvedVersion(tag=tag_from_url(transport.effective_url(version_url)))
        if not resolved.tag:
            LOGGER.warning(f"Channel {config.channel} did not resolve to a release")

    LOGGER.info(f"Using {resolved} as release")
    return resolved


def tag_from_url(url: str) -> str:
    """Return the final path segment of a URL."""
    return url.strip().rsplit("/", 1)[-1]
