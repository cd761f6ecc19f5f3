"""Device capability data from client-side feature detection.

Provides:
- Parsing of the feature detection cookie into a read-only feature set
- Typed accessors with permissive defaults
- A FastAPI dependency scoping one snapshot to each request
"""

from feature_detect.platform.dependencies import get_device_features
from feature_detect.platform.feature_info import (
    BrowserTier,
    DeviceFeatureInfo,
    FeatureCookieError,
    FeatureName,
    FeatureSet,
    coerce_flags,
    decode_feature_cookie,
    parse_feature_cookie,
)

__all__ = [
    "BrowserTier",
    "DeviceFeatureInfo",
    "FeatureCookieError",
    "FeatureName",
    "FeatureSet",
    "coerce_flags",
    "decode_feature_cookie",
    "get_device_features",
    "parse_feature_cookie",
]
