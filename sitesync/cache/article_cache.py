"""
文章读穿缓存 (Article Cache)

进程级缓存，按 slug 存放已发布文章快照：
- 启动后通过一次批量列表请求建立，初始化是单飞 (single-flight) 的，
  并发调用方共享同一次加载；
- 未命中时直接请求公共接口，网络失败时按顺序尝试备用地址；
- 不主动感知其他进程的写入，页面通过 reconcile() 比对刷新，
  或者等待条目超过 max_age 后自然失效。
"""
import enum
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from sitesync.exceptions import TransientFetchError
from .invalidation import ARTICLES

logger = logging.getLogger(__name__)

# SEO / 列表页只需要的轻量字段
METADATA_FIELDS = (
    'title', 'metaTitle', 'metaDescription', 'metaKeywords', 'slug', 'author',
    'publishedAt', 'featuredImage', 'excerpt', 'tags', 'category',
)


class CacheState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZING = 'initializing'
    READY = 'ready'


@dataclass(frozen=True)
class CacheEntry:
    article: dict
    fetched_at: float


def article_identity(article):
    """用于比对新旧快照的身份：id + 更新时间"""
    if not article:
        return None
    return article.get('id'), article.get('updatedAt')


class ArticleCache:
    """按 slug 缓存已发布文章，通过依赖注入传给读取方"""

    def __init__(self, base_url: str, fallback_urls: Iterable[str] = (),
                 client: Optional[httpx.Client] = None, timeout: float = 2.5,
                 max_age: Optional[float] = 1800, listing_limit: int = 1000,
                 clock: Callable[[], float] = time.monotonic):
        self.base_url = base_url.rstrip('/')
        self.fallback_urls = [u.rstrip('/') for u in fallback_urls]
        self.timeout = timeout
        self.max_age = max_age
        self.listing_limit = listing_limit
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, headers={'Accept': 'application/json'})

        self._lock = threading.Lock()
        self._state = CacheState.UNINITIALIZED
        self._init_future: Optional[Future] = None
        self._entries: Dict[str, CacheEntry] = {}
        self.loaded_at: Optional[float] = None

    @classmethod
    def from_config(cls, config, client=None):
        """从 Flask 配置构建缓存实例"""
        return cls(
            base_url=config['ARTICLE_API_URL'],
            fallback_urls=config.get('ARTICLE_API_FALLBACK_URLS') or (),
            client=client,
            timeout=config.get('ARTICLE_FETCH_TIMEOUT', 2.5),
            max_age=config.get('ARTICLE_CACHE_MAX_AGE', 1800),
            listing_limit=config.get('ARTICLE_LISTING_LIMIT', 1000),
        )

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is CacheState.READY

    @property
    def base_urls(self) -> List[str]:
        return [self.base_url] + [u for u in self.fallback_urls if u != self.base_url]

    # ------------------------------------------------------------------
    # 初始化
    # ------------------------------------------------------------------

    def initialize(self) -> int:
        """
        建立缓存：UNINITIALIZED -> INITIALIZING -> READY
        并发调用共享同一次加载；失败时回到 UNINITIALIZED 并抛出 TransientFetchError，
        以便稍后重试。
        :return: 缓存中的文章数量
        """
        with self._lock:
            if self._state is CacheState.READY:
                return len(self._entries)
            if self._init_future is not None:
                future, owner = self._init_future, False
            else:
                future, owner = Future(), True
                self._init_future = future
                self._state = CacheState.INITIALIZING

        if not owner:
            return future.result()

        try:
            articles = self._load_all_articles()
        except Exception as exc:
            with self._lock:
                self._state = CacheState.UNINITIALIZED
                self._init_future = None
            future.set_exception(exc)
            logger.error('Failed to load articles for cache: %s', exc)
            raise

        now = self._clock()
        entries = {a['slug']: CacheEntry(a, now) for a in articles if a.get('slug')}
        with self._lock:
            # 整体替换，读者不会看到半填充的缓存
            self._entries = entries
            self.loaded_at = now
            self._state = CacheState.READY
            self._init_future = None
        future.set_result(len(entries))
        logger.info('Cached %d articles', len(entries))
        return len(entries)

    def refresh(self) -> int:
        """丢弃现有快照并重新加载"""
        with self._lock:
            if self._state is not CacheState.INITIALIZING:
                self._state = CacheState.UNINITIALIZED
                self._entries = {}
                self.loaded_at = None
        return self.initialize()

    def invalidate(self, slug: Optional[str] = None):
        """使单篇（或全部）缓存失效，后续读取走网络"""
        with self._lock:
            if slug is not None:
                self._entries.pop(slug, None)
                return
            if self._state is CacheState.READY:
                self._state = CacheState.UNINITIALIZED
            self._entries = {}
            self.loaded_at = None

    def on_content_written(self, collection, keys=None):
        """CacheInvalidationHook 监听器：文章写入后失效对应 slug"""
        if collection != ARTICLES:
            return
        if keys is None:
            self.invalidate()
        else:
            for slug in keys:
                self.invalidate(slug)

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def get_article(self, slug: str) -> Optional[dict]:
        """仅查缓存，不发起网络请求；未就绪、未命中或条目过期时返回 None"""
        if self._state is not CacheState.READY:
            return None
        entry = self._entries.get(slug)
        if entry is None or self._is_expired(entry):
            return None
        return entry.article

    def has_article(self, slug: str) -> bool:
        return self.get_article(slug) is not None

    def get_article_metadata(self, slug: str) -> Optional[dict]:
        article = self.get_article(slug)
        if article is None:
            return None
        return {field: article.get(field) for field in METADATA_FIELDS}

    def get_all_articles(self) -> List[dict]:
        if self._state is not CacheState.READY:
            return []
        return [e.article for e in self._entries.values() if not self._is_expired(e)]

    def get_all_metadata(self) -> List[dict]:
        return [{field: a.get(field) for field in METADATA_FIELDS} for a in self.get_all_articles()]

    def get_article_with_fallback(self, slug: str) -> Optional[dict]:
        """
        先查缓存，未命中再请求 /blogs/post/<slug>。
        网络失败时依次尝试备用地址；全部失败视为未找到 (None)。
        """
        article = self.get_article(slug)
        if article is not None:
            logger.debug('Article "%s" served from cache', slug)
            return article

        try:
            article = self._fetch_article(slug)
        except TransientFetchError as exc:
            logger.warning('Article "%s" unavailable: %s', slug, exc)
            return None

        if article is not None:
            self._store(slug, article)
        return article

    def reconcile(self, slug: str, snapshot: Optional[dict]) -> Optional[dict]:
        """
        页面侧的新鲜度检查：绕过缓存抓取最新版本，与当前快照比对身份，
        不同则替换缓存条目并返回新版本。抓取失败时保留原快照。
        """
        try:
            fresh = self._fetch_article(slug)
        except TransientFetchError as exc:
            logger.warning('Reconcile skipped for "%s": %s', slug, exc)
            return snapshot

        if fresh is None:
            # 已下线或被删除
            self.invalidate(slug)
            return None
        if article_identity(fresh) != article_identity(snapshot):
            logger.info('Article "%s" changed upstream, replacing cached snapshot', slug)
            self._store(slug, fresh)
            return fresh
        return snapshot

    def get_stats(self) -> dict:
        return {
            'state': self._state.value,
            'isInitialized': self.is_ready,
            'totalArticles': len(self._entries),
            'articles': sorted(self._entries.keys()),
            'loadedAt': self.loaded_at,
        }

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------------
    # 内部方法
    # ------------------------------------------------------------------

    def _is_expired(self, entry: CacheEntry) -> bool:
        if not self.max_age:
            return False
        return self._clock() - entry.fetched_at > self.max_age

    def _store(self, slug: str, article: dict):
        # 未就绪时不写入，避免出现部分填充的缓存
        with self._lock:
            if self._state is CacheState.READY:
                self._entries[slug] = CacheEntry(article, self._clock())

    def _load_all_articles(self) -> List[dict]:
        response = self._request('/blogs', params={'limit': self.listing_limit, 'published': 'true'})
        if response.status_code != 200:
            raise TransientFetchError(f'Failed to fetch articles: {response.status_code}')
        data = response.json()
        if isinstance(data, dict):
            data = data.get('blogs') or data.get('data') or []
        if not isinstance(data, list):
            raise TransientFetchError(f'Invalid article listing: {type(data).__name__}')
        return [a for a in data if isinstance(a, dict)]

    def _fetch_article(self, slug: str) -> Optional[dict]:
        response = self._request(f'/blogs/post/{quote(slug, safe="")}')
        if response.status_code != 200:
            # 404 等明确应答：文章不存在
            return None
        article = response.json()
        if not isinstance(article, dict):
            logger.warning('Article "%s" returned a non-object body, treated as missing', slug)
            return None
        return article

    def _request(self, path: str, params=None) -> httpx.Response:
        """
        按 base_url -> fallback_urls 顺序串行请求，遇到网络错误 / 超时 / 5xx / 非 JSON 的 200 才换下一个地址，
        返回第一个明确应答。全部失败抛出 TransientFetchError。
        """
        errors = []
        for base in self.base_urls:
            url = f'{base}{path}'
            try:
                response = self._client.get(url, params=params, timeout=self.timeout)
            except httpx.TransportError as exc:
                logger.warning('Fetch %s failed: %s', url, exc)
                errors.append(f'{url}: {exc.__class__.__name__}')
                continue
            if response.status_code >= 500:
                logger.warning('Fetch %s returned %s', url, response.status_code)
                errors.append(f'{url}: HTTP {response.status_code}')
                continue
            if response.status_code == 200:
                # 代理或开发服务器返回的 HTML 页面，按失败处理并换下一个地址
                try:
                    response.json()
                except ValueError:
                    logger.warning('Fetch %s returned a non-JSON body', url)
                    errors.append(f'{url}: invalid JSON')
                    continue
            return response
        raise TransientFetchError('All article endpoints failed', payload={'attempts': errors})
