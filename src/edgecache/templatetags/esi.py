"""Template filters for ESI fragments."""

from django import template
from django.utils.safestring import mark_safe

register = template.Library()


@register.filter
def esi_fragment(fragments: dict | None, widget_id) -> str:
    """Return the ESI include tag for a widget, or empty string if rendered inline.

    Usage in templates:
        {% load esi %}
        {{ fragments|esi_fragment:widget.id }}
    """
    if not fragments:
        return ""
    markup = fragments.get(widget_id)
    if markup is None:
        try:
            markup = fragments.get(int(widget_id))
        except (TypeError, ValueError):
            return ""
    return mark_safe(markup) if markup else ""
