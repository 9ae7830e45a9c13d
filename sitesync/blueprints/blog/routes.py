"""博客文章接口"""
import math
from flask import jsonify, request, current_app
from sitesync.extensions import cache
from sitesync.blueprints import json_body
from sitesync.blueprints.blog import blog_bp
from sitesync.cache.invalidation import article_cache_key
from sitesync.services.article_service import ArticleService


def _pagination(page, limit, total):
    return {'page': page, 'limit': limit, 'total': total, 'pages': math.ceil(total / limit) if limit else 0}


def _paging_args():
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = request.args.get('limit', 10, type=int) or 10
    limit = min(max(limit, 1), current_app.config.get('ARTICLE_LISTING_LIMIT', 1000))
    return page, limit


@blog_bp.route('', methods=['GET'])
def index():
    """已发布文章列表（文章缓存的批量加载也走这里）"""
    page, limit = _paging_args()
    articles, total = ArticleService.list_published(
        page=page,
        limit=limit,
        category=request.args.get('category', '', type=str) or None,
        search=request.args.get('search', '', type=str) or None
    )
    return jsonify({'blogs': [a.to_dict() for a in articles], 'pagination': _pagination(page, limit, total)})


@blog_bp.route('/post/<slug>', methods=['GET'])
def post_detail(slug):
    """单篇已发布文章，写入后由失效钩子清理缓存"""
    cache_key = article_cache_key(slug)
    data = cache.get(cache_key)
    if data is None:
        data = ArticleService.get_published(slug).to_dict()
        cache.set(cache_key, data)
    return jsonify(data)


@blog_bp.route('/post/<slug>/view', methods=['POST'])
def post_view(slug):
    """阅读数 +1，不经过缓存"""
    view_count = ArticleService.increment_view_count(slug)
    return jsonify({'success': True, 'viewCount': view_count})


@blog_bp.route('/admin/all', methods=['GET'])
def admin_index():
    """后台文章列表（含草稿）"""
    page, limit = _paging_args()
    articles, total = ArticleService.list_all(page=page, limit=limit)
    return jsonify({'blogs': [a.to_dict() for a in articles], 'pagination': _pagination(page, limit, total)})


@blog_bp.route('', methods=['POST'])
def create():
    article = ArticleService.create(json_body())
    current_app.logger.info(f'文章已创建: {article.slug}')
    return jsonify({'success': True, 'message': 'Blog created successfully', 'blog': article.to_dict()}), 201


@blog_bp.route('/<int:id>', methods=['PUT'])
def update(id):
    article = ArticleService.update(id, json_body())
    return jsonify({'success': True, 'message': 'Blog updated successfully', 'blog': article.to_dict()})


@blog_bp.route('/<int:id>', methods=['DELETE'])
def delete(id):
    ArticleService.delete(id)
    return jsonify({'success': True, 'message': 'Blog deleted successfully'})


@blog_bp.route('/categories/all', methods=['GET'])
def categories():
    return jsonify({'categories': [c.to_dict() for c in ArticleService.list_categories()]})


@blog_bp.route('/categories', methods=['POST'])
def create_category():
    data = json_body()
    category = ArticleService.create_category(data.get('name'), data.get('slug'), data.get('description'))
    return jsonify({'success': True, 'category': category.to_dict()}), 201
