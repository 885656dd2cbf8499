#!/usr/bin/env python3
import argparse
import asyncio
import json
import logging
import signal
import sys
import uvicorn
from contextlib import asynccontextmanager

from erp_news.pipeline import CrawlPipeline
from erp_news.scheduler import CrawlScheduler
from erp_news.scraper.news_sources import SourceRegistry
from erp_news.storage.database import DatabaseManager
from erp_news.utils.config import Config, ConfigurationError, get_config
from erp_news.web.app import app, get_settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

scheduler = None

def build_pipeline(config: Config) -> CrawlPipeline:
    db_manager = DatabaseManager(config.get_database_path())
    added = SourceRegistry(db_manager).sync_from_config(config.get_sources())
    if added:
        logger.info(f"Registered {added} new sources from configuration")
    return CrawlPipeline(
        db_manager,
        http_config=config.get_http_config(),
        crawler_config=config.get_crawler_config()
    )

def log_new_articles(items):
    for item in items:
        logger.info(f"New article: {item['title']} ({item['url']})")

@asynccontextmanager
async def lifespan(app):
    global scheduler
    pipeline = None
    try:
        config = get_settings()
        # the scheduler gets its own fetcher session, separate from the request handlers
        pipeline = build_pipeline(config)
        scheduler = CrawlScheduler(pipeline, config, on_new_articles=log_new_articles)
        scheduler.start()
        logger.info("ERP news crawler started successfully")
        yield
    except Exception as e:
        logger.error(f"Error starting application: {e}")
        raise
    finally:
        if scheduler:
            scheduler.shutdown()
        if pipeline:
            pipeline.close()
        logger.info("ERP news crawler shut down")

app.router.lifespan_context = lifespan

def signal_handler(signum, frame):
    logger.info(f"Received signal {signum}, shutting down...")
    if scheduler:
        scheduler.shutdown()
    sys.exit(0)

def run_crawl(args) -> int:
    try:
        pipeline = build_pipeline(get_config())
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        if args.new_items:
            output = pipeline.run_new_items(batch_size=args.batch_size, source_id=args.source_id)
        else:
            results = pipeline.run(batch_size=args.batch_size, source_id=args.source_id)
            output = [result.to_dict() for result in results]
        print(json.dumps(output, indent=2))
        logger.info("Crawler finished successfully")
        return 0
    except Exception as e:
        logger.error(f"Crawler failed: {e}", exc_info=True)
        return 1
    finally:
        pipeline.close()

def run_serve(args) -> int:
    try:
        web_config = get_config().get_web_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    host = web_config.get('host', '127.0.0.1')
    port = web_config.get('port', 8000)
    reload = web_config.get('reload', False)

    logger.info(f"Starting ERP news crawler on {host}:{port}")
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )
    return 0

def run_schedule(args) -> int:
    global scheduler
    try:
        config = get_config()
        pipeline = build_pipeline(config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    async def serve_forever():
        global scheduler
        scheduler = CrawlScheduler(pipeline, config, on_new_articles=log_new_articles)
        scheduler.start()
        await asyncio.Event().wait()

    try:
        asyncio.run(serve_forever())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        pipeline.close()
    return 0

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="ERP vendor news crawler")
    subparsers = parser.add_subparsers(dest='command', required=True)

    crawl_parser = subparsers.add_parser('crawl', help='Crawl sources once and print the results as JSON')
    crawl_parser.add_argument('--source-id', type=int, help='Crawl only this source')
    crawl_parser.add_argument('--batch-size', type=int, help='Crawl only the first N active sources')
    crawl_parser.add_argument('--new-items', action='store_true', help='Print the newly created articles instead of per-source status')
    crawl_parser.set_defaults(handler=run_crawl)

    serve_parser = subparsers.add_parser('serve', help='Start the HTTP API with the scheduler')
    serve_parser.set_defaults(handler=run_serve)

    schedule_parser = subparsers.add_parser('schedule', help='Run the periodic crawl job')
    schedule_parser.set_defaults(handler=run_schedule)

    return parser.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)
    if args.command != 'crawl':
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
    return args.handler(args)

if __name__ == "__main__":
    sys.exit(main())
