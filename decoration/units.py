"""
Decoration - Built-in Activation Units.

============================================================
RESPONSIBILITY
============================================================
Activation units shipped with the decorator. Each one polls a
real-time feed over HTTP and keeps the latest payload in the
feed store of the runtime context.

- bike-rental       : bike-share station availability (JSON)
- stop-time-updater : trip/stop-time updates (raw bytes)
- real-time-alerts  : service alerts (raw bytes)

============================================================
SECTION KEYS
============================================================
url              required
frequencySec     seconds between polls (default per unit)
initialDelaySec  seconds before the first poll (default 0)
timeoutSec       HTTP timeout (default 30)

Unit-specific keys are copied to the snapshot attributes.

============================================================
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

import aiohttp

from core.exceptions import InvalidConfigError, MissingConfigError
from core.services import FeedStore
from .sources import ConfigSource

if TYPE_CHECKING:
    from core.context import RuntimeContext


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 30.0


def _read_seconds(section: ConfigSource, key: str, default: float) -> float:
    raw = section.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise InvalidConfigError(key, raw, "not a number", section=section.path)


# ============================================================
# FEED POLLER
# ============================================================

class FeedPoller:
    """Fetches one URL and stores the decoded body."""

    def __init__(
        self,
        name: str,
        url: str,
        store: FeedStore,
        decoder: Callable[[bytes], Any],
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        attributes: Optional[Dict[str, str]] = None,
    ) -> None:
        self.name = name
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.attributes = attributes or {}
        self._store = store
        self._decoder = decoder

    def poll(self) -> bool:
        """
        Fetch and store the feed once.

        Runs on a scheduler worker thread, so it owns its event loop.

        Returns:
            True if a new snapshot was stored
        """
        body = asyncio.run(self._fetch())
        if body is None:
            return False

        try:
            payload = self._decoder(body)
        except ValueError as e:
            logger.error(f"[{self.name}] Can't decode feed from {self.url}: {e}")
            return False

        self._store.update(
            self.name,
            payload,
            source_url=self.url,
            attributes=self.attributes,
        )
        logger.debug(f"[{self.name}] Stored {len(body)} bytes from {self.url}")
        return True

    async def _fetch(self) -> Optional[bytes]:
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.url) as response:
                    if response.status != 200:
                        logger.error(f"[{self.name}] HTTP error {response.status} from {self.url}")
                        return None
                    return await response.read()
        except aiohttp.ClientError as e:
            logger.error(f"[{self.name}] Network error: {type(e).__name__}: {e}")
            return None
        except asyncio.TimeoutError:
            logger.warning(f"[{self.name}] Request timeout after {self.timeout_seconds}s")
            return None


# ============================================================
# BASE UNIT
# ============================================================

class FeedPollingUnit:
    """Base unit: validate the section, then schedule a FeedPoller."""

    kind = "feed"
    default_frequency_seconds = 60.0
    attribute_keys: Tuple[str, ...] = ()

    def __init__(self) -> None:
        self.poller: Optional[FeedPoller] = None

    def decode(self, body: bytes) -> Any:
        return body

    def validate_attributes(self, attributes: Dict[str, str], section: ConfigSource) -> None:
        """Hook for unit-specific checks."""

    def configure(self, context: "RuntimeContext", section: ConfigSource) -> None:
        url = section.get("url")
        if not url:
            raise MissingConfigError("url", section=section.path or self.kind)

        frequency = _read_seconds(section, "frequencySec", self.default_frequency_seconds)
        if frequency <= 0:
            raise InvalidConfigError("frequencySec", frequency, "must be positive", section=section.path)

        initial_delay = _read_seconds(section, "initialDelaySec", 0.0)
        if initial_delay < 0:
            raise InvalidConfigError(
                "initialDelaySec", initial_delay, "must not be negative", section=section.path
            )

        timeout = _read_seconds(section, "timeoutSec", DEFAULT_TIMEOUT_SECONDS)
        if timeout <= 0:
            raise InvalidConfigError("timeoutSec", timeout, "must be positive", section=section.path)

        attributes = {}
        for key in self.attribute_keys:
            value = section.get(key)
            if value is not None:
                attributes[key] = value
        self.validate_attributes(attributes, section)

        feed_name = section.name or self.kind
        self.poller = FeedPoller(
            name=feed_name,
            url=url,
            store=context.get_feed_store(create=True),
            decoder=self.decode,
            timeout_seconds=timeout,
            attributes=attributes,
        )

        scheduler = context.get_periodic_scheduler(create=True)
        scheduler.add_task(feed_name, self.poller.poll, frequency, initial_delay)

        logger.info(f"{self.kind} feed '{feed_name}' polling {url} every {frequency}s")


# ============================================================
# CONCRETE UNITS
# ============================================================

class BikeRentalUnit(FeedPollingUnit):
    """Bike-share station availability, JSON payload."""

    kind = "bike-rental"
    attribute_keys = ("network",)

    def decode(self, body: bytes) -> Any:
        return json.loads(body)


class StopTimeUpdaterUnit(FeedPollingUnit):
    """Trip and stop-time updates, kept as raw bytes."""

    kind = "stop-time-updater"
    attribute_keys = ("defaultAgencyId",)


class RealTimeAlertsUnit(FeedPollingUnit):
    """Service alerts, kept as raw bytes."""

    kind = "real-time-alerts"
    attribute_keys = ("defaultAgencyId", "earlyStartSec")

    def validate_attributes(self, attributes: Dict[str, str], section: ConfigSource) -> None:
        early_start = attributes.get("earlyStartSec")
        if early_start is None:
            return
        try:
            int(early_start)
        except ValueError:
            raise InvalidConfigError(
                "earlyStartSec", early_start, "not an integer", section=section.path
            )


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "FeedPoller",
    "FeedPollingUnit",
    "BikeRentalUnit",
    "StopTimeUpdaterUnit",
    "RealTimeAlertsUnit",
]
