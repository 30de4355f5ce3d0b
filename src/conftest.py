"""Global pytest fixtures."""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def news_page(db):
    """Page at /news with no blocks yet."""
    from edgecache.models import Page

    return Page.objects.create(name="News", url_path="news")


@pytest.fixture
def news_block(news_page):
    from edgecache.models import Block

    return Block.objects.create(page=news_page, block_type="main")


@pytest.fixture
def news_widget(news_block):
    """Widget without a dedicated URL, rendered as ESI fragment."""
    from edgecache.models import Widget

    return Widget.objects.create(block=news_block, name="Headlines", position=1)


@pytest.fixture
def dispatcher():
    """Dispatcher double recording every ban."""
    from edgecache.services.dispatcher import DispatchResult, InvalidationDispatcher

    mock_dispatcher = MagicMock(spec=InvalidationDispatcher)
    mock_dispatcher.dispatch.return_value = DispatchResult()
    return mock_dispatcher


@pytest.fixture
def cache_manager(dispatcher):
    from edgecache.services.invalidation import CacheManager

    return CacheManager(dispatcher)
