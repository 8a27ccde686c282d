# models/category.py
from notecards.extensions import db


class Category(db.Model):
    __tablename__ = 'categories'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'name', name='uniq_category_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    cards = db.relationship('Card', backref='category', lazy=True, passive_deletes=True)
    favorites = db.relationship('Favorite', backref='category', lazy=True, passive_deletes=True)

    def __repr__(self):
        return f"<Category {self.name} (user {self.user_id})>"
