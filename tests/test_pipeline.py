import os
import tempfile
from unittest.mock import Mock, patch

from erp_news.pipeline import CrawlPipeline
from erp_news.scraper.fetcher import FetchResult
from erp_news.scraper.news_sources import SourceRegistry
from erp_news.storage.database import DatabaseManager
from erp_news.storage.models import Source

FEED_XML = b'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Vendor feed</title>
<item>
    <title>Partner ecosystem grows</title>
    <link>https://good.example/news/partners</link>
    <description>A new alliance.</description>
    <pubDate>Fri, 08 Mar 2024 14:00:00 GMT</pubDate>
</item>
</channel></rss>
'''

class TestCrawlPipeline:
    def setup_method(self):
        self.temp_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.temp_db.close()
        self.db_manager = DatabaseManager(self.temp_db.name)
        self.fetcher = Mock()
        self.fetcher.fetch.side_effect = self.fetch
        self.pipeline = CrawlPipeline(self.db_manager, fetcher=self.fetcher)

    def teardown_method(self):
        os.unlink(self.temp_db.name)

    def fetch(self, url):
        if url == 'https://good.example/feed':
            return FetchResult(url=url, content=FEED_XML, status_code=200)
        return FetchResult(url=url, status_code=503, error="503 Server Error")

    def add_source(self, **kwargs) -> int:
        return self.db_manager.add_source(Source(**kwargs))

    def test_no_sources(self):
        assert self.pipeline.run() == []
        self.fetcher.fetch.assert_not_called()

    def test_inactive_source_id_is_not_crawled(self):
        self.add_source(url='https://a.example/feed', vendor='SAP')
        inactive_id = self.add_source(url='https://b.example/feed', vendor='Oracle', active=False)

        assert self.pipeline.run(source_id=inactive_id) == []
        self.fetcher.fetch.assert_not_called()

    def test_failing_source_does_not_stop_siblings(self):
        self.add_source(url='https://bad.example/feed', vendor='Infor', name='Infor News')
        self.add_source(url='https://good.example/feed', vendor='SAP', name='SAP News')

        results = self.pipeline.run()

        assert [r.status for r in results] == ['error', 'success']
        assert results[0].source == 'Infor'
        assert '503' in results[0].error
        assert results[1].articles == 1
        assert self.db_manager.get_article_count() == 1

    def test_unexpected_exception_becomes_error_result(self):
        self.add_source(url='https://good.example/feed', vendor='SAP')

        with patch.object(self.pipeline.scrapers['rss'], 'crawl', side_effect=RuntimeError("parser exploded")):
            results = self.pipeline.run()

        assert results[0].status == 'error'
        assert results[0].error == "parser exploded"

    def test_unknown_type_is_reported(self):
        result = self.pipeline.crawl_source(Source(id=9, url='https://x.example/', vendor='X', type='api'))

        assert result.status == 'error'
        assert 'api' in result.error
        self.fetcher.fetch.assert_not_called()

    def test_batch_size_limits_sources(self):
        for index in range(5):
            self.add_source(url=f'https://bad{index}.example/feed', vendor=f'V{index}')

        results = self.pipeline.run(batch_size=2)

        assert [r.url for r in results] == ['https://bad0.example/feed', 'https://bad1.example/feed']

    def test_without_arguments_crawls_all(self):
        for index in range(5):
            self.add_source(url=f'https://bad{index}.example/feed', vendor=f'V{index}')

        assert len(self.pipeline.run()) == 5

    def test_source_id_ignores_batch_size(self):
        self.add_source(url='https://bad.example/feed', vendor='Infor')
        good_id = self.add_source(url='https://good.example/feed', vendor='SAP')

        results = self.pipeline.run(batch_size=1, source_id=good_id)

        assert [r.url for r in results] == ['https://good.example/feed']

    def test_run_new_items(self):
        self.add_source(url='https://good.example/feed', vendor='SAP')

        items = self.pipeline.run_new_items()

        assert items == [{
            'title': 'Partner ecosystem grows',
            'url': 'https://good.example/news/partners',
            'content': 'A new alliance.',
        }]
        assert self.pipeline.run_new_items() == []

    def test_run_new_items_default_batch(self):
        pipeline = CrawlPipeline(self.db_manager, fetcher=self.fetcher, crawler_config={'batch_size': 1})

        with patch.object(pipeline, 'run', return_value=[]) as mock_run:
            pipeline.run_new_items()

        mock_run.assert_called_once_with(batch_size=1, source_id=None)

    def test_close(self):
        self.pipeline.close()
        self.fetcher.close.assert_called_once()

class TestSourceRegistry:
    def setup_method(self):
        self.temp_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.temp_db.close()
        self.db_manager = DatabaseManager(self.temp_db.name)
        self.registry = SourceRegistry(self.db_manager)

    def teardown_method(self):
        os.unlink(self.temp_db.name)

    def test_sync_from_config(self):
        configs = [
            {'name': 'SAP News', 'vendor': 'SAP', 'type': 'rss', 'url': 'https://news.sap.com/feed/'},
            {'name': 'Forterro', 'vendor': 'Forterro', 'type': 'HTML', 'url': 'https://www.forterro.com/en/news',
             'selectors': {'date': '.news-date'}},
            {'name': 'Broken', 'type': 'rss'},
            {'name': 'Odd', 'vendor': 'Odd', 'type': 'api', 'url': 'https://odd.example/'},
            {'name': 'Paused', 'vendor': 'Unit4', 'url': 'https://www.unit4.com/rss.xml', 'active': False},
        ]

        assert self.registry.sync_from_config(configs) == 3
        assert self.registry.sync_from_config(configs) == 0

        active = self.registry.list_active_sources()
        assert [s.vendor for s in active] == ['SAP', 'Forterro']
        assert active[1].type == 'html'
        assert active[1].selectors == {'date': '.news-date'}

    def test_list_single_source(self):
        self.registry.sync_from_config([
            {'vendor': 'SAP', 'url': 'https://news.sap.com/feed/'},
            {'vendor': 'Oracle', 'url': 'https://www.oracle.com/news/', 'type': 'html'},
        ])
        oracle = self.registry.list_active_sources()[1]

        assert self.registry.list_active_sources(oracle.id) == [oracle]
        assert self.registry.list_active_sources(999) == []
