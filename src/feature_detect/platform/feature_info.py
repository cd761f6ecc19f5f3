"""Device feature information from client-side feature detection.

A small script running in the browser measures the device (screen size,
pixel density, touch support, connection quality, battery level) and stores
the results as a JSON object in a cookie. This module parses that cookie
into a read-only feature set and exposes typed accessors over it.

When the cookie is missing or cannot be decoded, every value falls back to
a permissive default so rendering never depends on detection having run.
"""

from __future__ import annotations

import json
import logging
import warnings
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union
from urllib.parse import unquote

from feature_detect.config.settings import Settings, get_settings

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "d"
DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 768


class FeatureName(str, Enum):
    """Feature keys written by the detection script."""

    HIDPI = "hidpi"
    WIDTH = "width"
    HEIGHT = "height"
    LOW_SPEED = "low_speed"
    METERED = "metered"
    BROWSER = "browser"
    LOW_BATTERY = "low_battery"
    TOUCH = "touch"
    ANDROID = "android"
    IOS = "ios"
    COOKIES = "cookies"


class BrowserTier(str, Enum):
    """Browser capability tier reported under ``browser``."""

    MODERN = "modern"
    FALLBACK = "fallback"
    BASELINE = "baseline"


class FeatureCookieError(ValueError):
    """Raised when the feature cookie payload cannot be decoded."""


def decode_feature_cookie(raw: str) -> dict[str, Any]:
    """Decode a feature cookie payload into a key/value record.

    The payload is a JSON object. Browsers that stored it through
    ``encodeURIComponent`` deliver it percent-encoded, so the unquoted form
    is tried when the raw text is not valid JSON.

    Args:
        raw: Cookie value as received from the client.

    Returns:
        The decoded record.

    Raises:
        FeatureCookieError: If the payload is not a JSON object.
    """
    if not isinstance(raw, str):
        raise FeatureCookieError(f"cookie value must be text, got {type(raw).__name__}")

    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, RecursionError):
        try:
            decoded = json.loads(unquote(raw))
        except json.JSONDecodeError as e:
            raise FeatureCookieError(f"payload is not valid JSON: {e.msg}") from e
        except RecursionError as e:
            raise FeatureCookieError("payload is nested too deeply") from e

    if not isinstance(decoded, dict):
        raise FeatureCookieError(
            f"payload must be a JSON object, got {type(decoded).__name__}"
        )
    return decoded


def coerce_flags(record: Mapping[str, Any]) -> dict[str, Any]:
    """Convert ``"true"``/``"false"`` strings to booleans.

    Any other value is left as it is.
    """
    coerced = {}
    for key, value in record.items():
        if value == "true":
            value = True
        elif value == "false":
            value = False
        coerced[key] = value
    return coerced


@dataclass(frozen=True)
class FeatureSet:
    """Read-only mapping of feature name to detected or default value.

    Args:
        values: Feature values keyed by name.
        from_cookie: True if the values were decoded from the feature cookie,
            False if they are the defaults.
    """

    values: Mapping[str, Any] = field(default_factory=dict)
    from_cookie: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @classmethod
    def defaults(cls, cookies_present: bool = False) -> FeatureSet:
        """Build the permissive default record.

        Args:
            cookies_present: Whether the request carried any cookie at all.
        """
        return cls(
            values={
                FeatureName.HIDPI.value: False,
                FeatureName.WIDTH.value: DEFAULT_WIDTH,
                FeatureName.HEIGHT.value: DEFAULT_HEIGHT,
                FeatureName.LOW_SPEED.value: False,
                FeatureName.METERED.value: False,
                FeatureName.BROWSER.value: BrowserTier.MODERN.value,
                FeatureName.LOW_BATTERY.value: False,
                FeatureName.TOUCH.value: False,
                FeatureName.ANDROID.value: False,
                FeatureName.IOS.value: False,
                FeatureName.COOKIES.value: cookies_present,
            },
            from_cookie=False,
        )

    def lookup(self, name: Union[FeatureName, str]) -> Any:
        """Return the stored value, or False if it is missing or null."""
        key = name.value if isinstance(name, FeatureName) else name
        value = self.values.get(key)
        if value is None:
            return False
        return value

    def __contains__(self, name: object) -> bool:
        key = name.value if isinstance(name, FeatureName) else name
        return key in self.values

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return dict(self.values)


def parse_feature_cookie(
    cookies: Optional[Mapping[str, str]],
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> FeatureSet:
    """Parse the feature cookie out of a request's cookies.

    Args:
        cookies: All cookies sent with the request.
        cookie_name: Name of the cookie written by the detection script.

    Returns:
        The decoded feature set, or the default record if the cookie is
        absent or malformed. ``cookies`` is always set: True when decoding
        succeeded, otherwise whether any other cookie was present.
    """
    cookies = cookies or {}

    if cookie_name in cookies:
        try:
            record = decode_feature_cookie(cookies[cookie_name])
        except FeatureCookieError as e:
            logger.debug("Ignoring malformed feature cookie %r: %s", cookie_name, e)
        else:
            record = coerce_flags(record)
            record[FeatureName.COOKIES.value] = True
            logger.debug(
                "Feature cookie %r decoded with %d values", cookie_name, len(record)
            )
            return FeatureSet(values=record, from_cookie=True)
    else:
        logger.debug("Feature cookie %r not present", cookie_name)

    others_present = any(name != cookie_name for name in cookies)
    return FeatureSet.defaults(cookies_present=others_present)


class DeviceFeatureInfo:
    """Device capabilities reported by client-side feature detection.

    One instance belongs to one request. The feature cookie is parsed on
    first access and the result is kept for the life of the instance.

    Args:
        cookies: Cookies sent with the request.
        default_width: Width reported when the client gave none.
        default_height: Height reported when the client gave none.
        cookie_name: Name of the feature cookie.
    """

    def __init__(
        self,
        cookies: Optional[Mapping[str, str]] = None,
        default_width: int = DEFAULT_WIDTH,
        default_height: int = DEFAULT_HEIGHT,
        cookie_name: str = DEFAULT_COOKIE_NAME,
    ) -> None:
        self._cookies = dict(cookies or {})
        self.default_width = default_width
        self.default_height = default_height
        self.cookie_name = cookie_name
        self._features: Optional[FeatureSet] = None

    @classmethod
    def from_request(
        cls, request: Request, settings: Optional[Settings] = None
    ) -> DeviceFeatureInfo:
        """Build from the cookies of an incoming Starlette/FastAPI request."""
        settings = settings or get_settings()

        return cls(
            cookies=request.cookies,
            default_width=settings.default_width,
            default_height=settings.default_height,
            cookie_name=settings.feature_cookie_name,
        )

    @property
    def features(self) -> FeatureSet:
        """The parsed feature set, parsed on first access."""
        if self._features is None:
            self._features = parse_feature_cookie(self._cookies, self.cookie_name)
        return self._features

    def get(self, item: Union[FeatureName, str, None] = None) -> Any:
        """Return one detected value, or all of them.

        Args:
            item: Feature name. If omitted, the full feature set is returned.

        Returns:
            The stored value, False if the feature is missing, or a dict of
            every feature when no item was given.
        """
        if not item:
            return self.features.to_dict()
        return self.features.lookup(item)

    def get_device_max_width(self) -> int:
        """Maximum width of the device's screen.

        This is the width the browser could reach when maximized, not the
        current viewport, and it ignores scroll bars.
        """
        return self.get(FeatureName.WIDTH) or self.default_width

    def get_device_max_height(self) -> int:
        """Maximum height of the device's screen."""
        return self.get(FeatureName.HEIGHT) or self.default_height

    def is_low_battery(self) -> bool:
        """True if the Battery API reported a charge below 30%."""
        return bool(self.get(FeatureName.LOW_BATTERY))

    def is_low_speed(self) -> Any:
        """Whether the Network Information API reported a 2G/3G or sub-1Mbit link."""
        return self.get(FeatureName.LOW_SPEED)

    def is_metered(self) -> bool:
        """Whether the Network Information API reported a metered connection."""
        return bool(self.get(FeatureName.METERED))

    def is_hidpi(self) -> bool:
        """True if the display has a pixel density above 1.

        Retina and scaled 2k/4k/5k displays upscale normal images, so
        callers use this to pick higher resolution assets. Agrees with
        ``get("hidpi")`` on truthiness.
        """
        return bool(self.get(FeatureName.HIDPI))

    def is_modern(self) -> bool:
        """True unless the client was classed as fallback or baseline."""
        return self.get(FeatureName.BROWSER) not in (
            BrowserTier.FALLBACK.value,
            BrowserTier.BASELINE.value,
        )

    def is_fallback(self) -> bool:
        return self.get(FeatureName.BROWSER) == BrowserTier.FALLBACK.value

    def is_baseline(self) -> bool:
        return self.get(FeatureName.BROWSER) == BrowserTier.BASELINE.value

    def is_touch(self) -> Any:
        """Whether the device reported a touch screen.

        A touch screen does not imply a mobile device, nor that the user
        actually touches it.
        """
        return self.get(FeatureName.TOUCH)

    def get_detect(self) -> dict[str, Any]:
        """Deprecated alias for ``get()``."""
        warnings.warn(
            "get_detect() is deprecated, use get() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.get()
