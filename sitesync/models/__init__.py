# 按照依赖顺序导入
from .base import BaseModel
from .content import ContentRecord
from .blog import Category, Article
from .collection import (
    OrderedItem, ExpertiseItem, Testimonial, ArticleWidget, ServicePackage,
    ORDERED_COLLECTIONS
)
