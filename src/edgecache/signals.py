"""Queue edge cache invalidation when content changes."""

from functools import partial

from django.db import transaction
from django.db.models.signals import post_save, pre_delete
from django.dispatch import receiver

from .models import Page, Widget
from .tasks import expire_url, expire_widget


def _queue_expire_urls(urls):
    for url in dict.fromkeys(urls):
        transaction.on_commit(partial(expire_url.delay, url))


@receiver(post_save, sender=Widget, dispatch_uid="edgecache_widget_saved")
def widget_saved(sender, instance, **kwargs):
    """Expire the widget everywhere it is rendered, after the write commits."""
    transaction.on_commit(partial(expire_widget.delay, instance.pk))


@receiver(pre_delete, sender=Widget, dispatch_uid="edgecache_widget_deleted")
def widget_deleted(sender, instance, origin=None, **kwargs):
    """Expire every page that rendered the deleted widget.

    URLs are resolved now: the rows are gone by the time the task runs.
    A page being deleted itself is left to ``page_deleted``.
    """
    pages = instance.embedding_pages()
    if isinstance(origin, Page):
        pages = [page for page in pages if page.pk != origin.pk]
    _queue_expire_urls(page.absolute_url() for page in pages)


@receiver(pre_delete, sender=Page, dispatch_uid="edgecache_page_deleted")
def page_deleted(sender, instance, **kwargs):
    """Expire all cached representations of a deleted page."""
    _queue_expire_urls([instance.absolute_url()])
