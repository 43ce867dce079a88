"""
Monitored targets and the short-form URL pattern set.

A target is either a native app (offending while its process runs) or a
browser host (offending while one of its tabs matches the pattern set).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternSet:
    """Ordered URL substrings that mark short-form content."""
    patterns: Tuple[str, ...] = config.SHORT_FORM_URL_PATTERNS

    def matches(self, url: str) -> bool:
        """True if any pattern is a substring of the URL (case-sensitive)."""
        return any(pattern in url for pattern in self.patterns)

    def matching(self, urls: Sequence[str]) -> List[str]:
        """Return the URLs that match, preserving order."""
        return [url for url in urls if self.matches(url)]

    def __iter__(self):
        return iter(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)


@dataclass(frozen=True)
class NativeApp:
    """A short-form app that is blocked outright while it runs."""
    name: str
    bundle_id: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name

    @property
    def category(self) -> str:
        return config.CATEGORY_APP


@dataclass(frozen=True)
class BrowserHost:
    """
    A browser whose tabs are checked against the pattern set.

    Attributes:
        name: Short browser name ("Safari", "Chrome")
        application: AppleScript application name ("Google Chrome")
        process_names: Process match texts used to check the browser runs
    """
    name: str
    application: str
    process_names: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.process_names:
            object.__setattr__(self, "process_names", (self.application,))

    @property
    def label(self) -> str:
        return f"{self.name}{config.BROWSER_LABEL_SUFFIX}"

    @property
    def category(self) -> str:
        return config.CATEGORY_BROWSER


Target = Union[NativeApp, BrowserHost]


def default_targets() -> List[Target]:
    """
    Build the configured target list: native apps first, then browsers.

    Returns:
        Targets in the fixed order a detection pass evaluates them.
    """
    targets: List[Target] = [
        NativeApp(name=name, bundle_id=bundle_id)
        for name, bundle_id in config.SHORT_FORM_APPS
    ]
    targets.extend(
        BrowserHost(name=name, application=application, process_names=tuple(process_names))
        for name, application, process_names in config.BROWSERS
    )
    logger.debug(f"Configured targets: {[t.label for t in targets]}")
    return targets
