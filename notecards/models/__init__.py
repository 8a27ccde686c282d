from notecards.extensions import db

from .user import User
from .category import Category
from .card import Card
from .favorite import Favorite
