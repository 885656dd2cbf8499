from datetime import datetime, timezone
from bs4 import BeautifulSoup

from erp_news.scraper.content_extractor import ContentExtractor
from erp_news.scraper.strategies import (
    GenericStrategy, SAPStrategy, OracleStrategy, ForterroStrategy,
    VendorStrategy, get_strategy, register_strategy, registered_vendors
)
from erp_news.storage.models import Source

ORACLE_INDEX = '''
<html><body>
    <nav><a href="/news/">News home</a></nav>
    <div class="results">
        <a href="/news/announcement/oracle-fusion-ai-agents-2024-03-08/">Fusion AI agents</a>
        <a href="https://www.oracle.com/news/announcement/oracle-fusion-ai-agents-2024-03-08">Duplicate</a>
        <a href="/news/announcement/netsuite-release-2024-03-01/">NetSuite release</a>
        <a href="/fr/news/announcement/netsuite-release-2024-03-01/">NetSuite (FR)</a>
        <a href="/news/tag/cloud/">Cloud tag</a>
        <a href="https://twitter.com/oracle/news/announcement/x">Twitter</a>
        <a href="mailto:press@oracle.com">Press</a>
    </div>
</body></html>
'''

ARTICLE_PAGE = '''
<html>
<head>
    <title>Fallback title | Oracle</title>
    <meta name="description" content="Oracle introduces AI agents in Fusion Applications.">
    <meta property="og:image" content="https://www.oracle.com/a/ocom/img/oracle-logo.png">
</head>
<body>
    <main>
        <h1>Oracle Fusion adds AI agents</h1>
        <div class="date">March 8, 2024</div>
        <article>
            <img src="/img/oracle-logo.svg">
            <img src="/a/ocom/img/fusion-ai-hero.jpg">
            <div class="article-content">
                <p>Oracle today announced new AI agents.</p>
                <script>track()</script>
            </div>
        </article>
    </main>
</body>
</html>
'''

def make_source(vendor, url="https://www.oracle.com/news/", selectors=None):
    return Source(id=1, url=url, vendor=vendor, type='html', selectors=selectors or {})

class TestStrategyRegistry:
    def test_lookup_is_case_insensitive(self):
        assert isinstance(get_strategy(make_source('oracle')), OracleStrategy)
        assert isinstance(get_strategy(make_source('SAP')), SAPStrategy)

    def test_unknown_vendor_falls_back_to_generic(self):
        assert type(get_strategy(make_source('Acme ERP'))) is GenericStrategy

    def test_registered_vendors(self):
        vendors = registered_vendors()
        for vendor in ('sap', 'oracle', 'microsoft', 'workday', 'unit4', 'infor', 'forterro', 'epicor', 'ifs'):
            assert vendor in vendors

    def test_register_new_vendor(self):
        @register_strategy('Acumatica-Test')
        class AcumaticaStrategy(VendorStrategy):
            link_patterns = [r'/acumatica-news/']

        assert isinstance(get_strategy(make_source('acumatica-test')), AcumaticaStrategy)

class TestLinkDiscovery:
    def test_oracle_links(self):
        strategy = get_strategy(make_source('Oracle'))
        soup = BeautifulSoup(ORACLE_INDEX, 'html.parser')

        links = strategy.discover_links(soup, 'https://www.oracle.com/news/')

        assert 'https://www.oracle.com/news/announcement/oracle-fusion-ai-agents-2024-03-08/' in links
        assert 'https://www.oracle.com/news/announcement/netsuite-release-2024-03-01/' in links
        assert not any('/tag/' in link for link in links)
        assert not any('twitter.com' in link for link in links)
        assert 'https://www.oracle.com/news/' not in links

    def test_link_pattern_hint_overrides_defaults(self):
        source = make_source('Acme', url='https://acme.example/press', selectors={'link_pattern': r'/press/\d+'})
        strategy = get_strategy(source)
        soup = BeautifulSoup(
            '<a href="/press/42">Story</a><a href="/news/43">Other</a>', 'html.parser'
        )

        assert strategy.discover_links(soup, source.url) == ['https://acme.example/press/42']

    def test_article_links_selector_on_container(self):
        source = make_source('Forterro', url='https://www.forterro.com/en/news',
                             selectors={'article_links': '.news-item'})
        strategy = get_strategy(source)
        soup = BeautifulSoup(
            '<div class="news-item"><a href="/en/news/forterro-acquires-x">X</a></div>'
            '<div class="other"><a href="/en/news/ignored">Y</a></div>',
            'html.parser'
        )

        assert strategy.discover_links(soup, source.url) == ['https://www.forterro.com/en/news/forterro-acquires-x']
        assert isinstance(strategy, ForterroStrategy)

    def test_invalid_selector_yields_no_links(self):
        source = make_source('Acme', selectors={'article_links': 'a[[['})
        strategy = get_strategy(source)

        assert strategy.discover_links(BeautifulSoup(ORACLE_INDEX, 'html.parser'), source.url) == []

class TestArticleExtraction:
    def setup_method(self):
        self.strategy = get_strategy(make_source('Oracle'), ContentExtractor())
        self.url = 'https://www.oracle.com/news/announcement/oracle-fusion-ai-agents/'

    def test_extract_article(self):
        soup = BeautifulSoup(ARTICLE_PAGE, 'html.parser')

        draft = self.strategy.extract_article(soup, self.url)

        assert draft.title == 'Oracle Fusion adds AI agents'
        assert draft.summary == 'Oracle introduces AI agents in Fusion Applications.'
        assert draft.published_at == datetime(2024, 3, 8, tzinfo=timezone.utc)
        assert draft.image_url == 'https://www.oracle.com/a/ocom/img/fusion-ai-hero.jpg'
        assert 'Oracle today announced new AI agents.' in draft.content
        assert 'track()' not in draft.content

    def test_title_falls_back_to_meta_then_title_tag(self):
        meta_soup = BeautifulSoup(
            '<html><head><meta property="og:title" content="From OG"><title>From tag</title></head></html>',
            'html.parser'
        )
        title_soup = BeautifulSoup('<html><head><title>From tag</title></head></html>', 'html.parser')

        assert self.strategy.extract_title(meta_soup) == 'From OG'
        assert self.strategy.extract_title(title_soup) == 'From tag'

    def test_summary_falls_back_to_paragraph_after_heading(self):
        soup = BeautifulSoup(
            '<h1>Title</h1><p>Short</p><article><p>This paragraph is long enough to be a summary.</p></article>',
            'html.parser'
        )

        assert self.strategy.extract_summary(soup) == 'This paragraph is long enough to be a summary.'

    def test_date_from_url_wins(self):
        soup = BeautifulSoup('<div class="date">January 1, 2023</div>', 'html.parser')

        published_at = self.strategy.extract_date(soup, 'https://www.oracle.com/news/2024/03/08/story/')

        assert published_at == datetime(2024, 3, 8, tzinfo=timezone.utc)

    def test_date_from_meta(self):
        soup = BeautifulSoup(
            '<meta property="article:published_time" content="2024-02-29T09:00:00Z">', 'html.parser'
        )

        published_at = self.strategy.extract_date(soup, self.url)

        assert published_at == datetime(2024, 2, 29, 9, 0, tzinfo=timezone.utc)

    def test_missing_date_falls_back_to_now(self):
        before = datetime.now(timezone.utc)
        published_at = self.strategy.extract_date(BeautifulSoup('<p>No date</p>', 'html.parser'), self.url)

        assert published_at >= before

    def test_yearless_time_element_falls_back_to_now(self):
        before = datetime.now(timezone.utc)
        soup = BeautifulSoup('<time>Tuesday</time>', 'html.parser')

        published_at = self.strategy.extract_date(soup, self.url)

        assert published_at >= before

    def test_vendor_logo_is_never_the_image(self):
        soup = BeautifulSoup(
            '<article><img src="/img/o-logo-red.png"><img src="/img/story.jpg"></article>', 'html.parser'
        )

        assert self.strategy.extract_image(soup, self.url) == 'https://www.oracle.com/img/story.jpg'
