"""
后台编辑端客户端
加载区块时保存快照，保存时通过 DiffEngine 计算变更，只提交变化的字段：
键值内容合并为一次批量 PUT，有序集合整体替换。
"""
import copy
import logging

import httpx

from sitesync.exceptions import SiteSyncException, TransientFetchError
from sitesync.services.diff_engine import diff_collection, diff_content, diff_sections

logger = logging.getLogger(__name__)


def _accepted(changes, result):
    """
    服务端确认写入的变更；被拒绝的项不进入快照，下次保存会重新提交。
    响应中没有逐项结果时视为全部成功（请求失败已在 _request 中抛出）。
    """
    results = result.get('results') if isinstance(result, dict) else None
    if not isinstance(results, list):
        return list(changes.changes)
    ok = {(r.get('section'), r.get('key')) for r in results
          if isinstance(r, dict) and r.get('success')}
    return [c for c in changes.changes if (c.section, c.key) in ok]


class AdminContentClient:
    """内容管理 API 客户端（单写者模型，一次保存一个区块）"""

    def __init__(self, base_url, client=None, timeout=10.0, token=None):
        self.base_url = base_url.rstrip('/')
        self._owns_client = client is None
        headers = {'Accept': 'application/json'}
        if token:
            headers['Authorization'] = f'Bearer {token}'
        self._client = client or httpx.Client(timeout=timeout, headers=headers)
        self.timeout = timeout
        self._snapshots = {}

    def snapshot(self, name):
        """加载时保存的快照；加载失败或尚未加载时为 None"""
        return copy.deepcopy(self._snapshots.get(name))

    # --- 键值内容 ---

    def load_section(self, collection):
        """
        读取区块内容并保存快照
        :return: 可编辑的副本 {key: {value, type, ...}}；加载失败时为空字典
        """
        try:
            data = self._request('GET', f'/content/{collection}')
        except SiteSyncException as e:
            logger.warning('Load %s failed, every field will be treated as changed: %s', collection, e.message)
            self._snapshots[collection] = None
            return {}
        self._snapshots[collection] = copy.deepcopy(data)
        return data

    def load_page(self, page, sections):
        """多区块页面：按 {page}_{section} 逐个加载，返回 {section: {key: item}}"""
        content = {}
        snapshot = {}
        failed = False
        for section in sections:
            items = self.load_section(f'{page}_{section}')
            if self._snapshots.get(f'{page}_{section}') is None:
                failed = True
            content[section] = items
            snapshot[section] = copy.deepcopy(items)
        self._snapshots[page] = None if failed else snapshot
        return content

    def save_section(self, collection, current):
        """
        只提交变化的字段
        :return: 服务端逐项结果；没有变化时返回 None 且不发请求
        """
        changes = diff_content(self._snapshots.get(collection), current, section=collection)
        if not changes:
            return None
        result = self._request('PUT', '/content/bulk', json=changes.to_payload())
        snapshot = copy.deepcopy(self._snapshots.get(collection) or {})
        for change in _accepted(changes, result):
            snapshot[change.key] = copy.deepcopy(current[change.key])
        self._snapshots[collection] = snapshot
        return result

    def save_page(self, page, current):
        """多区块页面保存：所有区块的变化合并为一次 PUT"""
        changes = diff_sections(self._snapshots.get(page), current)
        if not changes:
            return None
        result = self._request('PUT', '/content/bulk', params={'page': page}, json=changes.to_payload())
        snapshot = copy.deepcopy(self._snapshots.get(page) or {})
        for change in _accepted(changes, result):
            section = snapshot.setdefault(change.section, {})
            section[change.key] = copy.deepcopy(current[change.section][change.key])
        self._snapshots[page] = snapshot
        return result

    # --- 有序集合 ---

    def load_collection(self, name):
        try:
            data = self._request('GET', f'/collections/{name}')
        except SiteSyncException as e:
            logger.warning('Load collection %s failed: %s', name, e.message)
            self._snapshots[f'collection:{name}'] = None
            return []
        items = data.get('items', [])
        self._snapshots[f'collection:{name}'] = copy.deepcopy(items)
        return items

    def save_collection(self, name, items):
        """集合有任何变化即整体替换；返回服务端结果，无变化返回 None"""
        changes = diff_collection(self._snapshots.get(f'collection:{name}'), items)
        if not changes:
            return None
        result = self._request('PUT', f'/collections/{name}', json=changes.to_payload())
        self._snapshots[f'collection:{name}'] = copy.deepcopy(list(items))
        return result

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method, path, **kwargs):
        url = f'{self.base_url}{path}'
        try:
            response = self._client.request(method, url, timeout=self.timeout, **kwargs)
        except httpx.TransportError as exc:
            raise TransientFetchError(f'{method} {url} failed: {exc}')
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.is_error:
            message = data.get('message') if isinstance(data, dict) else None
            raise SiteSyncException(message or f'{method} {url} returned {response.status_code}',
                                    code=response.status_code, payload=data if isinstance(data, dict) else None)
        return data
