import logging
import traceback
from datetime import datetime
from functools import lru_cache
from typing import List, Optional, Dict, Any

from fastapi import FastAPI, Query, Depends, Body, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..pipeline import CrawlPipeline
from ..storage.database import DatabaseManager
from ..storage.models import Article
from ..utils.config import Config, ConfigurationError, get_config

app = FastAPI(title="ERP News Crawler", version="1.0.0")

logger = logging.getLogger('web')

@lru_cache(maxsize=1)
def get_settings() -> Config:
    return get_config()

@lru_cache(maxsize=1)
def get_db() -> DatabaseManager:
    return DatabaseManager(get_settings().get_database_path())

@lru_cache(maxsize=1)
def get_pipeline() -> CrawlPipeline:
    settings = get_settings()
    return CrawlPipeline(
        get_db(),
        http_config=settings.get_http_config(),
        crawler_config=settings.get_crawler_config()
    )

def get_environment() -> str:
    try:
        return get_settings().get_web_config().get('environment', 'production')
    except ConfigurationError:
        return 'production'

class CrawlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_id: Optional[int] = Field(None, alias='sourceId', ge=1)
    batch_size: Optional[int] = Field(None, alias='batchSize', ge=1)
    new_items: bool = Field(False, alias='newItems')

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"success": False, "error": f"Invalid request: {errors}"})

def serialize_article(article: Article) -> Dict[str, Any]:
    return {
        "id": article.id,
        "title": article.title,
        "summary": article.summary,
        "url": article.url,
        "image_url": article.image_url,
        "vendor": article.vendor,
        "source": article.source,
        "published_at": article.published_at.isoformat() if article.published_at else None,
        "categories": article.categories,
        "is_ai_related": article.is_ai_related
    }

@app.post("/api/crawl")
async def trigger_crawl(crawl_request: Optional[CrawlRequest] = Body(None)):
    crawl_request = crawl_request or CrawlRequest()
    try:
        pipeline = get_pipeline()
        if crawl_request.new_items:
            results = await run_in_threadpool(
                pipeline.run_new_items,
                batch_size=crawl_request.batch_size,
                source_id=crawl_request.source_id
            )
        else:
            source_results = await run_in_threadpool(
                pipeline.run,
                batch_size=crawl_request.batch_size,
                source_id=crawl_request.source_id
            )
            results = [result.to_dict() for result in source_results]

        return {"success": True, "results": results}

    except Exception as e:
        logger.error(f"Crawl request failed: {e}", exc_info=True)
        content = {"success": False, "error": str(e)}
        if get_environment() != 'production':
            content["trace"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=content)

@app.get("/api/articles", response_model=List[Dict[str, Any]])
async def get_articles(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    vendor: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    ai_only: bool = Query(False),
    db: DatabaseManager = Depends(get_db)
):
    articles = db.get_articles(limit=limit, offset=offset, vendor=vendor, category=category, ai_only=ai_only)
    return [serialize_article(article) for article in articles]

@app.get("/api/sources")
async def get_sources(db: DatabaseManager = Depends(get_db)):
    sources = db.get_sources(active_only=False)
    return [
        {
            "id": source.id,
            "name": source.display_name,
            "vendor": source.vendor,
            "type": source.type,
            "url": source.url,
            "active": source.active,
            "last_crawled": source.last_crawled.isoformat() if source.last_crawled else None
        }
        for source in sources
    ]

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0"
    }
