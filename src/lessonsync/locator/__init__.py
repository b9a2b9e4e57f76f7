"""Asset locator - Finds the lesson video to transfer on the source site."""

from lessonsync.locator.browser import (
    AssetLocator,
    BrowserAssetLocator,
    build_cookie_header,
)

__all__ = [
    "AssetLocator",
    "BrowserAssetLocator",
    "build_cookie_header",
]
