"""Celery tasks for edge cache invalidation."""

import logging

from celery import shared_task

from .models import Page, Widget
from .services.invalidation import get_cache_manager

logger = logging.getLogger(__name__)


@shared_task
def expire_widget(widget_id: int, loose: bool = False) -> int:
    """Expire a widget on every page embedding it. Returns the page count."""
    widget = Widget.objects.select_related("block__page").filter(pk=widget_id).first()
    if widget is None:
        logger.info("Widget #%s no longer exists, nothing to expire", widget_id)
        return 0

    manager = get_cache_manager()
    pages = widget.embedding_pages()
    for page in pages:
        manager.expire(widget, loose=loose, page=page)
    return len(pages)


@shared_task
def expire_page(page_id: int) -> bool:
    """Expire all cached representations of a page."""
    page = Page.objects.filter(pk=page_id).first()
    if page is None:
        logger.info("Page #%s no longer exists, nothing to expire", page_id)
        return False

    get_cache_manager().expire_page(page)
    return True


@shared_task
def expire_url(url: str, regexp: str | None = None):
    """Expire a URL (and its params/trailing slash variants)."""
    get_cache_manager().expire_url(url, regexp)
