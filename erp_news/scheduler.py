import logging
from datetime import datetime
from typing import Dict, Any, Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .pipeline import CrawlPipeline
from .utils.config import Config

NewItemsCallback = Callable[[List[Dict[str, str]]], Any]

class CrawlScheduler:
    """Runs a new-items crawl every ``scheduling.crawl_interval_hours``.

    The blocking crawl is added as a plain function so APScheduler hands it
    to its thread pool executor instead of the event loop.
    """

    def __init__(self, pipeline: CrawlPipeline, config: Config, on_new_articles: Optional[NewItemsCallback] = None):
        self.pipeline = pipeline
        self.config = config
        self.on_new_articles = on_new_articles
        self.scheduler = AsyncIOScheduler()
        self.logger = logging.getLogger('scheduler')

        self._setup_jobs()

    def _setup_jobs(self):
        scheduling_config = self.config.get_scheduling_config()
        crawl_interval = scheduling_config.get('crawl_interval_hours', 6)

        self.scheduler.add_job(
            self.crawl_new_items,
            IntervalTrigger(hours=crawl_interval),
            id='crawl_news',
            name='Crawl ERP vendor news',
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        self.logger.info(f"Scheduled crawling every {crawl_interval} hours")

    def crawl_new_items(self) -> List[Dict[str, str]]:
        self.logger.info("Starting scheduled crawl")
        start_time = datetime.now()
        try:
            batch_size = self.config.get_crawler_config().get('batch_size')
            items = self.pipeline.run_new_items(batch_size=batch_size)
        except Exception as e:
            self.logger.error(f"Error during scheduled crawl: {e}")
            return []

        duration = datetime.now() - start_time
        self.logger.info(f"Crawl completed in {duration.total_seconds():.1f}s. New articles: {len(items)}")

        if items and self.on_new_articles:
            try:
                self.on_new_articles(items)
            except Exception as e:
                self.logger.error(f"Error delivering new articles: {e}")

        return items

    def start(self):
        self.logger.info("Starting crawl scheduler")
        self.scheduler.start()

    def shutdown(self):
        self.logger.info("Shutting down crawl scheduler")
        self.scheduler.shutdown()

    def get_job_status(self) -> Dict[str, Any]:
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, 'next_run_time', None)
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': next_run.isoformat() if next_run else None,
                'trigger': str(job.trigger)
            })

        return {
            'running': self.scheduler.running,
            'jobs': jobs,
            'status_time': datetime.now().isoformat()
        }
