"""Content and cache-server models used by edge cache invalidation."""

from django.conf import settings
from django.db import models

# Constants
NAME_MAX_LENGTH = 255
URL_MAX_LENGTH = 1024
TYPE_MAX_LENGTH = 100
HOST_MAX_LENGTH = 255
DEFAULT_CACHE_PORT = 80


class Page(models.Model):
    """A page composed of blocks, addressed by a canonical URL."""

    name = models.CharField(max_length=NAME_MAX_LENGTH)
    url_path = models.CharField(max_length=URL_MAX_LENGTH, blank=True, db_index=True)
    is_modified = models.BooleanField(default=False)

    class Meta:
        ordering = ["url_path"]

    def __str__(self):
        return self.name

    def absolute_url(self, request=None, site_url: str | None = None) -> str:
        """Return the canonical absolute URL of the page.

        Args:
            request: Current request; its scheme and host are used when given
            site_url: Explicit origin, overriding SITE_URL

        Returns:
            Absolute URL without query string
        """
        path = "/" + self.url_path.strip("/")
        if request is not None:
            return request.build_absolute_uri(path)

        origin = (site_url or settings.SITE_URL).rstrip("/")
        return f"{origin}{path}"

    def update_modified(self, value: bool = True):
        """Set the modified flag (content changed since last publish)."""
        self.is_modified = value
        self.save(update_fields=["is_modified"])


class Block(models.Model):
    """A slot within a page, private or aliasing a shared block."""

    page = models.ForeignKey(Page, on_delete=models.CASCADE, related_name="blocks")
    block_type = models.CharField(max_length=TYPE_MAX_LENGTH)
    is_shared = models.BooleanField(default=False)
    shared = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.SET_NULL, related_name="block_uses"
    )
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.block_type} on {self.page}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        self._mark_page_modified()

    def delete(self, *args, **kwargs):
        result = super().delete(*args, **kwargs)
        self._mark_page_modified()
        return result

    @property
    def real_block(self) -> "Block":
        """The block whose widgets are rendered (the shared one if aliased)."""
        return self.shared if self.shared_id else self

    @property
    def is_used_by_other_blocks(self) -> bool:
        return self.block_uses.exists()

    def _mark_page_modified(self):
        # Reload: self.page may be a stale cached instance
        page = Page.objects.filter(pk=self.page_id).first()
        if page and not page.is_modified:
            page.update_modified(True)


class Widget(models.Model):
    """A renderable unit inside a block.

    ``url`` holds the dedicated URL for widgets served on their own; it is blank
    for widgets only reachable through their page. ``skip_esi`` opts the widget
    out of edge fragment caching.
    """

    block = models.ForeignKey(Block, on_delete=models.CASCADE, related_name="widgets")
    name = models.CharField(max_length=NAME_MAX_LENGTH)
    widget_type = models.CharField(max_length=TYPE_MAX_LENGTH, default="generic")
    position = models.PositiveIntegerField(default=0)
    url = models.CharField(max_length=URL_MAX_LENGTH, blank=True, default="")
    skip_esi = models.BooleanField(default=False)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.name} ({self.widget_type})"

    @property
    def has_unique_url(self) -> bool:
        return bool(self.url)

    @property
    def page(self) -> Page:
        """The page owning this widget's block."""
        return self.block.page

    def embedding_pages(self) -> list[Page]:
        """Pages rendering this widget: the owner plus every page aliasing its block."""
        pages = [self.page]
        seen = {self.page.pk}
        for block_use in self.block.block_uses.select_related("page"):
            if block_use.page_id not in seen:
                seen.add(block_use.page_id)
                pages.append(block_use.page)
        return pages


class CacheServerQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(is_alive=True)


class CacheServer(models.Model):
    """An edge cache server receiving invalidation requests."""

    host = models.CharField(max_length=HOST_MAX_LENGTH)
    port = models.PositiveIntegerField(default=DEFAULT_CACHE_PORT)
    is_alive = models.BooleanField(default=True, db_index=True)

    objects = CacheServerQuerySet.as_manager()

    class Meta:
        ordering = ["host", "port"]
        constraints = [
            models.UniqueConstraint(fields=["host", "port"], name="unique_cache_server_address"),
        ]

    def __str__(self):
        return f"{self.host}:{self.port}"
