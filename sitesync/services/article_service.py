"""文章服务 - 文章生命周期、发布时间戳与阅读计数"""
from datetime import datetime
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sitesync.extensions import db, invalidation_hook
from sitesync.exceptions import ConflictError, NotFound, ValidationError
from sitesync.models.blog import Article, Category
from sitesync.cache.invalidation import ARTICLES

# 允许编辑的字段（snake_case 属性 -> 请求中的 camelCase 键）
EDITABLE_FIELDS = {
    'title': 'title',
    'content': 'content',
    'slug': 'slug',
    'excerpt': 'excerpt',
    'featured_image': 'featuredImage',
    'author': 'author',
    'meta_title': 'metaTitle',
    'meta_description': 'metaDescription',
    'meta_keywords': 'metaKeywords',
    'tags': 'tags',
    'category_id': 'categoryId',
}


def _parse_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f'Invalid datetime: {value!r}')


def _pick(data, attr):
    """同时接受 snake_case 与 camelCase 键"""
    camel = EDITABLE_FIELDS[attr]
    if camel in data:
        return True, data[camel]
    if attr in data:
        return True, data[attr]
    return False, None


class ArticleService:

    @staticmethod
    def list_published(page=1, limit=10, category=None, search=None):
        """
        已发布文章列表
        :return: (articles, total)
        """
        query = Article.query.filter(Article.is_published.is_(True))
        if category:
            query = query.join(Category).filter(Category.slug == category)
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(Article.title.ilike(pattern), Article.excerpt.ilike(pattern)))
        total = query.count()
        articles = query.order_by(Article.published_at.desc(), Article.id.desc()) \
            .offset((page - 1) * limit).limit(limit).all()
        return articles, total

    @staticmethod
    def list_all(page=1, limit=10):
        """后台：包含草稿"""
        query = Article.query
        total = query.count()
        articles = query.order_by(Article.created_at.desc(), Article.id.desc()) \
            .offset((page - 1) * limit).limit(limit).all()
        return articles, total

    @staticmethod
    def get_published(slug):
        article = Article.query.filter_by(slug=slug).first()
        if article is None or not article.is_published:
            raise NotFound('Blog not found')
        return article

    @staticmethod
    def get(article_id):
        article = db.session.get(Article, article_id)
        if article is None:
            raise NotFound('Blog not found')
        return article

    @staticmethod
    def create(data):
        """
        创建文章（默认草稿）
        发布状态创建时写入 published_at
        """
        for field in ('title', 'content', 'slug'):
            value = data.get(field)
            if not value or not str(value).strip():
                raise ValidationError(f'{field} is required', payload={'field': field})

        slug = data['slug'].strip()
        if Article.query.filter_by(slug=slug).first():
            raise ConflictError('Slug already exists', payload={'slug': slug})

        explicit = _parse_datetime(data.get('publishedAt', data.get('published_at')))
        article = Article(view_count=0, tags=[])
        ArticleService._apply_fields(article, data)
        article.slug = slug
        db.session.add(article)

        is_published = bool(data.get('isPublished', data.get('is_published', False)))
        article.is_published = is_published
        if is_published:
            article.published_at = explicit or datetime.utcnow()

        ArticleService._commit(slug)
        invalidation_hook.notify(ARTICLES, [slug])
        return article

    @staticmethod
    def update(article_id, data):
        """
        更新文章
        - slug 变更时检查唯一性，冲突抛出 ConflictError
        - 首次发布写入 published_at，之后的编辑不覆盖，除非显式提供
        """
        article = ArticleService.get(article_id)
        old_slug = article.slug

        has_slug, new_slug = _pick(data, 'slug')
        if has_slug and new_slug and new_slug != old_slug:
            if Article.query.filter_by(slug=new_slug).first():
                raise ConflictError('Slug already exists', payload={'slug': new_slug})

        # 先解析时间，校验失败时文章未被修改
        has_published_at = 'publishedAt' in data or 'published_at' in data
        published_at = _parse_datetime(data.get('publishedAt', data.get('published_at')))

        try:
            ArticleService._apply_fields(article, data)
        except ValidationError:
            db.session.rollback()
            raise

        if 'isPublished' in data or 'is_published' in data:
            is_published = bool(data.get('isPublished', data.get('is_published')))
            article.is_published = is_published
            if is_published and article.published_at is None:
                article.published_at = datetime.utcnow()
        if has_published_at:
            article.published_at = published_at

        ArticleService._commit(article.slug)
        invalidation_hook.notify(ARTICLES, {old_slug, article.slug})
        return article

    @staticmethod
    def delete(article_id):
        article = ArticleService.get(article_id)
        slug = article.slug
        try:
            db.session.delete(article)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        invalidation_hook.notify(ARTICLES, [slug])

    @staticmethod
    def increment_view_count(slug):
        """
        阅读数 +1
        直接执行计数更新，不经过 diff / 缓存失效，也不刷新 updated_at
        :return: 新的阅读数
        """
        updated = Article.query.filter_by(slug=slug, is_published=True).update(
            {Article.view_count: Article.view_count + 1, Article.updated_at: Article.updated_at},
            synchronize_session=False
        )
        if not updated:
            db.session.rollback()
            raise NotFound('Blog not found')
        db.session.commit()
        return db.session.query(Article.view_count).filter_by(slug=slug).scalar()

    # --- 分类 ---

    @staticmethod
    def list_categories():
        return Category.query.order_by(Category.name.asc()).all()

    @staticmethod
    def create_category(name, slug, description=None):
        if not name or not slug:
            raise ValidationError('name and slug are required')
        if Category.query.filter_by(slug=slug).first():
            raise ConflictError('Category slug already exists', payload={'slug': slug})
        category = Category(name=name, slug=slug, description=description)
        db.session.add(category)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Category slug already exists', payload={'slug': slug})
        return category

    # --- 内部方法 ---

    @staticmethod
    def _apply_fields(article, data):
        for attr in EDITABLE_FIELDS:
            present, value = _pick(data, attr)
            if not present:
                continue
            if attr in ('title', 'content', 'slug') and not value:
                # 空值不覆盖必填字段
                continue
            if attr == 'tags' and not isinstance(value, list):
                raise ValidationError('tags must be a list')
            if attr == 'category_id' and value is not None \
                    and db.session.get(Category, value) is None:
                raise ValidationError('Category not found', payload={'categoryId': value})
            setattr(article, attr, value)

    @staticmethod
    def _commit(slug):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Slug already exists', payload={'slug': slug})
        except SQLAlchemyError:
            db.session.rollback()
            raise
