"""Edge cache invalidation for widgets, pages and URLs."""

import logging

from django.conf import settings

from .dispatcher import DEFAULT_TIMEOUT, InvalidationDispatcher
from .fragments import esi_widget
from .patterns import EXACT_SUFFIX, QUERY_SUFFIX, ban_pattern, page_suffix, strip_query, widget_suffix
from .registry import get_server_registry

logger = logging.getLogger(__name__)

DEFAULT_BAN_METHOD = "BAN"


class CacheManager:
    """Expires cached pages and ESI fragments on the edge cache servers.

    Holds no state between calls: each expiration builds its own patterns and
    reads the current live servers through the dispatcher.
    """

    def __init__(self, dispatcher: InvalidationDispatcher, ban_method: str = DEFAULT_BAN_METHOD):
        self.dispatcher = dispatcher
        self.ban_method = ban_method

    def expire(self, widget, *, loose: bool = False, page=None, **url_options):
        """Expire every cached URL where ``widget`` content appears.

        Args:
            widget: Widget whose content changed
            loose: Also match deeper paths sharing the page URL as prefix
                (e.g. /my/url/extended when the page is at /my/url)
            page: Page to expire the widget in, defaults to the owning page
            **url_options: Passed to ``page.absolute_url``
        """
        logger.debug("Expiring widget #%s in edge cache", widget.id)

        page = page or widget.page
        base_url = page.absolute_url(**url_options)
        widget_url = strip_query(widget.url) if widget.has_unique_url else None

        # Widget fragments of this page, e.g. /url/of/page?param=4&widget=42
        widget_ban = (widget_url or base_url, widget_suffix(widget.id, loose))

        # The full page in all its query variants, but not the fragments of
        # its other widgets: /url/of/page?param=4 goes, /url/of/page?param=4&widget=1 stays
        page_ban = (base_url, page_suffix(loose))

        # Widget first, or the page could be recomputed from the stale fragment
        if esi_widget(widget):
            self.ban(*widget_ban)

        # Widgets with their own URL are not part of any page render
        if not widget.has_unique_url:
            self.ban(*page_ban)

    def expire_page(self, page, **url_options):
        """Expire a page with all its possible URLs and params."""
        logger.debug("Expiring page #%s in edge cache", page.id)
        self.expire_url(page.absolute_url(**url_options))

    def expire_url(self, url: str, regexp: str | None = None):
        """Expire ``url`` with params and with or without trailing slash.

        ``url*`` is never banned since url could be a segment of another page.
        """
        logger.debug("Expiring url '%s' in edge cache", url)
        if regexp:
            self.ban(url, regexp)
        self.ban(url, QUERY_SUFFIX)
        self.ban(url, EXACT_SUFFIX)

    def ban(self, url: str, suffix: str):
        """Ban every cached URL matching ``url`` (escaped) followed by ``suffix`` (a regex)."""
        pattern, host = ban_pattern(url, suffix)
        return self.dispatcher.dispatch(self.ban_method, pattern, host)


def get_cache_manager() -> CacheManager:
    """Build a CacheManager from settings."""
    dispatcher = InvalidationDispatcher(
        get_server_registry(),
        timeout=getattr(settings, "EDGE_CACHE_BAN_TIMEOUT", DEFAULT_TIMEOUT),
    )
    return CacheManager(dispatcher, ban_method=getattr(settings, "EDGE_CACHE_BAN_METHOD", DEFAULT_BAN_METHOD))
