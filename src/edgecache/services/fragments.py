"""ESI fragment resolution for page rendering."""

import json
import logging

from django.conf import settings

from .patterns import WIDGET_PARAM

logger = logging.getLogger(__name__)


def esi_widget(widget) -> bool:
    """True unless the widget opts out of edge fragment caching."""
    return not getattr(widget, "skip_esi", False)


def esi_include(url: str) -> str:
    """ESI include tag for ``url``."""
    return f"<esi:include src={json.dumps(url)} />"


class FragmentResolver:
    """Decides which widgets are served as ESI fragments and how they are included."""

    def __init__(self, esi_enabled: bool = False):
        self.esi_enabled = esi_enabled

    def render_esi_widget(self, widget) -> bool:
        """True if ESI rendering is enabled and the widget takes part in it."""
        return self.esi_enabled and esi_widget(widget)

    def esi_url(self, widget, request) -> str:
        """URL the edge cache fetches to render ``widget``.

        The dedicated URL if the widget has one, else the current request URL
        with its query params plus ``widget=<id>``.
        """
        if widget.has_unique_url:
            return widget.url

        params = request.GET.copy()
        params[WIDGET_PARAM] = str(widget.id)
        return f"{request.build_absolute_uri(request.path)}?{params.urlencode()}"

    def multi_get(self, page, request) -> dict:
        """Map widget ids of ``page`` to their ESI include tags.

        Widgets that are not rendered as ESI are left out and rendered inline.
        """
        fragments = {}
        for block in page.blocks.all():
            for widget in block.real_block.widgets.all():
                if self.render_esi_widget(widget):
                    fragments[widget.id] = esi_include(self.esi_url(widget, request))
        return fragments

    def cache(self, widget_id, contents, **options):
        # Nothing to store: the edge cache keeps the fragment response itself
        return None


def get_fragment_resolver() -> FragmentResolver:
    """Build a FragmentResolver with the configured ESI toggle."""
    esi_enabled = getattr(settings, "ESI_RENDERING_ENABLED", False)
    logger.debug("ESI rendering %s", "enabled" if esi_enabled else "disabled")
    return FragmentResolver(esi_enabled=bool(esi_enabled))
