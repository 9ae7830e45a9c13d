from datetime import datetime
from sqlalchemy import inspect
from sitesync.extensions import db


class BaseModel(db.Model):
    """
    SiteSync 模型基类
    包含：ID主键, 创建时间, 更新时间, 序列化方法
    """
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def save(self):
        """保存到数据库"""
        db.session.add(self)
        db.session.commit()

    def to_dict(self):
        """
        通用序列化方法：将模型转换为字典，便于 API 返回 JSON。
        以映射属性名为键（列名可能与属性名不同，如 metadata 列）。
        """
        data = {}
        for attr in inspect(self.__class__).column_attrs:
            if attr.key.startswith('_'):
                continue
            val = getattr(self, attr.key)
            if isinstance(val, datetime):
                data[attr.key] = val.isoformat()
            else:
                data[attr.key] = val
        return data
