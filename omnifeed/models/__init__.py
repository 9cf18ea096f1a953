from omnifeed.models.feed_item import FeedItemRecord
from omnifeed.models.items import FeedItem, StreamPage

__all__ = ["FeedItemRecord", "FeedItem", "StreamPage"]
