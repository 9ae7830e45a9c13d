from sitesync.extensions import db
from .base import BaseModel


class Category(BaseModel):
    """博客分类"""
    __tablename__ = 'blog_categories'

    name = db.Column(db.String(64), nullable=False)
    slug = db.Column(db.String(128), unique=True, index=True, nullable=False)
    description = db.Column(db.Text)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'slug': self.slug, 'description': self.description}


class Article(BaseModel):
    """博客文章"""
    __tablename__ = 'blog_articles'

    slug = db.Column(db.String(191), unique=True, index=True, nullable=False)
    title = db.Column(db.String(256), nullable=False)
    content = db.Column(db.Text, nullable=False)  # HTML 内容
    excerpt = db.Column(db.Text)
    featured_image = db.Column(db.String(512))
    author = db.Column(db.String(128))

    # SEO
    meta_title = db.Column(db.String(256))
    meta_description = db.Column(db.Text)
    meta_keywords = db.Column(db.String(512))

    is_published = db.Column(db.Boolean, default=False, index=True)
    published_at = db.Column(db.DateTime)  # 首次发布时写入一次

    view_count = db.Column(db.Integer, default=0, nullable=False)
    tags = db.Column(db.JSON, default=list)

    category_id = db.Column(db.Integer, db.ForeignKey('blog_categories.id'))
    category = db.relationship('Category', backref=db.backref('articles', lazy='dynamic'))

    def to_dict(self):
        """与公共 API 一致的 camelCase 结构，文章缓存直接消费该格式"""
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'content': self.content,
            'excerpt': self.excerpt,
            'featuredImage': self.featured_image,
            'author': self.author,
            'metaTitle': self.meta_title,
            'metaDescription': self.meta_description,
            'metaKeywords': self.meta_keywords,
            'isPublished': bool(self.is_published),
            'publishedAt': self.published_at.isoformat() if self.published_at else None,
            'viewCount': self.view_count or 0,
            'tags': list(self.tags or []),
            'category': {'name': self.category.name, 'slug': self.category.slug} if self.category else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Article {self.slug}>'
