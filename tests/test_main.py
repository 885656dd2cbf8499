import pytest
from unittest.mock import Mock, patch

import main

class TestLifespan:
    def teardown_method(self):
        main.scheduler = None

    @pytest.mark.asyncio
    async def test_scheduler_owns_its_pipeline(self):
        config = Mock()
        scheduler_pipeline = Mock()

        with patch('main.get_settings', return_value=config), \
             patch('main.build_pipeline', return_value=scheduler_pipeline) as mock_build, \
             patch('main.CrawlScheduler') as mock_scheduler, \
             patch('erp_news.web.app.get_pipeline') as api_pipeline:
            async with main.lifespan(main.app):
                mock_scheduler.return_value.start.assert_called_once()

        mock_build.assert_called_once_with(config)
        mock_scheduler.assert_called_once_with(scheduler_pipeline, config, on_new_articles=main.log_new_articles)
        api_pipeline.assert_not_called()
        mock_scheduler.return_value.shutdown.assert_called_once()
        scheduler_pipeline.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_startup_failure_is_raised(self):
        with patch('main.get_settings', return_value=Mock()), \
             patch('main.build_pipeline', side_effect=RuntimeError("no database")), \
             patch('main.CrawlScheduler') as mock_scheduler:
            with pytest.raises(RuntimeError):
                async with main.lifespan(main.app):
                    pass

        mock_scheduler.assert_not_called()
