import logging
from typing import List, Dict, Any, Optional

from ..storage.database import DatabaseManager
from ..storage.models import Source, SOURCE_TYPES

class SourceRegistry:
    """Reads the configured sources from the store on every call."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.logger = logging.getLogger('sources')

    def list_active_sources(self, source_id: Optional[int] = None) -> List[Source]:
        sources = self.db_manager.get_sources(active_only=True, source_id=source_id)
        if source_id is not None and not sources:
            self.logger.info(f"Source {source_id} is missing or inactive")
        return sources

    def sync_from_config(self, source_configs: List[Dict[str, Any]]) -> int:
        """Insert configured sources that are not stored yet; returns how many were added."""
        added = 0
        for source_config in source_configs:
            source = self._source_from_config(source_config)
            if source is None:
                continue
            if self.db_manager.add_source(source):
                added += 1
                self.logger.info(f"Registered source {source.display_name} ({source.url})")
        return added

    def _source_from_config(self, source_config: Dict[str, Any]) -> Optional[Source]:
        url = (source_config.get('url') or '').strip()
        vendor = (source_config.get('vendor') or source_config.get('name') or '').strip()
        source_type = (source_config.get('type') or 'rss').strip().lower()

        if not url or not vendor:
            self.logger.warning(f"Skipping source config without url or vendor: {source_config}")
            return None
        if source_type not in SOURCE_TYPES:
            self.logger.warning(f"Skipping source {vendor}: unknown type {source_type!r}")
            return None

        return Source(
            url=url,
            vendor=vendor,
            type=source_type,
            active=bool(source_config.get('active', True)),
            name=source_config.get('name', vendor),
            selectors=source_config.get('selectors') or {}
        )
