"""Response freshness for widget (ESI fragment) requests."""

from django.conf import settings
from django.utils.cache import patch_cache_control

from .services.patterns import WIDGET_PARAM

DEFAULT_WIDGET_TTL = 300  # 5 minutes


def is_widget_request(request) -> bool:
    """True if the request renders a single widget as an ESI fragment."""
    return bool(request.GET.get(WIDGET_PARAM))


class WidgetTTLMiddleware:
    """Sets the edge cache lifetime of widget responses to the default widget TTL."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if is_widget_request(request) and "max-age" not in response.get("Cache-Control", ""):
            ttl = getattr(settings, "EDGE_CACHE_WIDGET_TTL", DEFAULT_WIDGET_TTL)
            patch_cache_control(response, max_age=ttl)
        return response
