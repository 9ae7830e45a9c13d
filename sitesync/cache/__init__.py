from .invalidation import (
    CacheInvalidationHook, ARTICLES,
    section_cache_key, collection_cache_key, article_cache_key
)
from .article_cache import ArticleCache, CacheState
