"""Feature Detect - device capability data from client-side feature detection."""

__version__ = "0.1.0"

from .config import Settings, get_settings, configure_logging
from .platform import (
    BrowserTier,
    DeviceFeatureInfo,
    FeatureName,
    FeatureSet,
    get_device_features,
    parse_feature_cookie,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "BrowserTier",
    "DeviceFeatureInfo",
    "FeatureName",
    "FeatureSet",
    "get_device_features",
    "parse_feature_cookie",
]
