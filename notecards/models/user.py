# models/user.py
from notecards.extensions import db


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(190), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    # unloaded rows are removed by the database (ON DELETE CASCADE)
    categories = db.relationship('Category', backref='user', lazy=True, cascade="all, delete", passive_deletes=True)
    cards = db.relationship('Card', backref='user', lazy=True, cascade="all, delete", passive_deletes=True)
    favorites = db.relationship('Favorite', backref='user', lazy=True, cascade="all, delete", passive_deletes=True)

    def __repr__(self):
        return f"<User {self.email}>"
