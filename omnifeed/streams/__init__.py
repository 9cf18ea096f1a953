from omnifeed.streams.core import PageFetcher, Stream
from omnifeed.streams.seen import SeenSet
from omnifeed.streams.hackernews import hackernews_stream
from omnifeed.streams.reddit import reddit_stream
from omnifeed.streams.rss import rss_stream

__all__ = ["PageFetcher", "Stream", "SeenSet", "hackernews_stream", "reddit_stream", "rss_stream"]
