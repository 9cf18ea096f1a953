import argparse
import asyncio
import signal

from loguru import logger

from omnifeed.core.config import settings
from omnifeed.core.db import make_engine
from omnifeed.core.logging import setup_logging
from omnifeed.services.fetcher import Fetcher
from omnifeed.services.normalizer import FeedNormalizer
from omnifeed.services.poller import FeedPoller
from omnifeed.services.store import FeedStore


def build_parser():
    parser = argparse.ArgumentParser(description="omnifeed feed service")
    parser.add_argument("--log-level", default=settings.log_level)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API (poller included unless POLLER_ENABLED=false)")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)

    poll = sub.add_parser("poll", help="Run the feed poller without the HTTP API")
    poll.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    poll.add_argument("--interval", type=int, default=settings.poll_interval_seconds)
    poll.add_argument("--concurrency", type=int, default=settings.poll_concurrency)
    return parser


async def _poll(args):
    store = FeedStore(make_engine(settings.database_url))
    await store.initialize()
    normalizer = FeedNormalizer(Fetcher(settings.user_agent, settings.request_timeout_seconds))
    poller = FeedPoller(store, normalizer, interval_seconds=args.interval, concurrency=args.concurrency)
    try:
        if args.once:
            stats = await poller.run_cycle()
            return 1 if stats.errors else 0
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, poller.stop)
            except NotImplementedError:
                # Windows
                pass
        await poller.run()
        return 0
    finally:
        await store.close()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        import uvicorn

        logger.info("serving on {}:{}", args.host, args.port)
        uvicorn.run("omnifeed.main:app", host=args.host, port=args.port, log_config=None)
        return 0
    if args.command == "poll":
        return asyncio.run(_poll(args))
    parser.error(f"unknown command {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
