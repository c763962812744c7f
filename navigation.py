"""Navigation service that opens site routes in the default browser."""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable
from urllib.parse import urljoin

log = logging.getLogger(__name__)


class BrowserNavigationService:
    def __init__(
        self,
        base_url: str,
        open_url: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._open_url = open_url

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_base_url(self, base_url: str) -> None:
        self._base_url = base_url.rstrip("/") + "/"

    def url_for(self, route_key: str) -> str:
        return urljoin(self._base_url, route_key.lstrip("/"))

    def go_to(self, route_key: str) -> None:
        url = self.url_for(route_key)
        if not self._open_url(url):
            log.warning("No browser accepted %s", url)
            return
        log.info("Opened %s", url)
