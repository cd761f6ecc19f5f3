"""FastAPI dependency exposing device features for the current request."""

from __future__ import annotations

import logging

from starlette.requests import Request

from feature_detect.platform.feature_info import DeviceFeatureInfo

logger = logging.getLogger(__name__)

_STATE_KEY = "device_features"


def get_device_features(request: Request) -> DeviceFeatureInfo:
    """Return the device feature snapshot for this request.

    The snapshot is stored on ``request.state`` so every dependency and
    handler in the same request sees one lazily parsed feature set.

    Usage::

        @app.get("/gallery")
        async def gallery(features: DeviceFeatureInfo = Depends(get_device_features)):
            ...
    """
    info = getattr(request.state, _STATE_KEY, None)
    if info is None:
        info = DeviceFeatureInfo.from_request(request)
        setattr(request.state, _STATE_KEY, info)
        logger.debug(
            "Device features attached to request",
            extra={"path": request.url.path, "cookie_name": info.cookie_name},
        )
    return info
