"""
Accounts, categories and cards.

Every component is built around an explicit SQLAlchemy session (``store``) and
every resource operation takes the owner's ``user_id``; queries always filter on
it, so a known primary key alone never reaches another user's row.
"""
import logging
from dataclasses import dataclass

import bcrypt
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from notecards.config import Config
from notecards.errors import (
    DatabaseUnavailable,
    DuplicateEmailError,
    InvalidCredentialsError,
    ValidationError,
)
from notecards.models import Card, Category, User

logger = logging.getLogger(__name__)

SESSION_KEY = "user_id"

# compared against when the email is unknown so both failure paths cost a hash check
_DUMMY_HASH = generate_password_hash("not-a-real-password")


@dataclass(frozen=True)
class Skipped:
    """A mutation that was declined without an error (empty or oversized input, duplicate, not owned)."""

    reason: str


EMPTY = Skipped("empty")
DUPLICATE = Skipped("duplicate")
NOT_FOUND = Skipped("not_found")
TOO_LONG = Skipped("too_long")

# legacy accounts carry bcrypt hashes ($2a$ is written by bcryptjs)
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _clean(value):
    return (value or "").strip()


# INT primary keys
_MAX_ID = 2**31 - 1


def _valid_id(value):
    return 0 < value <= _MAX_ID


def _too_long(value, column):
    return len(value) > column.type.length


# MySQL TEXT limit, in bytes
_TEXT_MAX_BYTES = 65535


def _content_too_long(content):
    return len(content.encode("utf-8")) > _TEXT_MAX_BYTES


def verify_password(password_hash, password):
    """Check a werkzeug or bcrypt hash; an unreadable hash never matches."""
    try:
        if password_hash.startswith(_BCRYPT_PREFIXES):
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        return check_password_hash(password_hash, password)
    except ValueError:
        logger.warning("Stored password hash could not be read")
        return False


# ------------------ SESSION ------------------
def require_auth(session):
    """Return the authenticated user id, or None for an anonymous session."""
    user_id = session.get(SESSION_KEY)
    if isinstance(user_id, int) and not isinstance(user_id, bool):
        return user_id
    return None


def establish_session(session, user_id):
    session.clear()
    session[SESSION_KEY] = user_id


def logout(session):
    session.clear()


# ------------------ ACCOUNTS ------------------
class Accounts:
    def __init__(self, store, default_category_name=Config.DEFAULT_CATEGORY_NAME):
        self.store = store
        self.default_category_name = default_category_name

    def register(self, name, email, password):
        """Create a user and their default category in one transaction.

        Raises ValidationError, DuplicateEmailError or DatabaseUnavailable.
        """
        name, email = _clean(name), _clean(email)
        if not name or not email or not password:
            raise ValidationError()
        if _too_long(name, User.__table__.c.name) or _too_long(email, User.__table__.c.email):
            raise ValidationError("Name or email is too long.")

        try:
            existing = self.store.execute(
                select(User.id).where(User.email == email)
            ).first()
            if existing:
                logger.warning("Registration refused, email already in use")
                raise DuplicateEmailError()

            user = User(name=name, email=email, password_hash=generate_password_hash(password))
            self.store.add(user)
            self.store.flush()
            user_id = user.id
            self.store.add(Category(user_id=user_id, name=self.default_category_name))
            self.store.commit()
        except IntegrityError as exc:
            # lost a race with a concurrent registration for the same email
            self.store.rollback()
            raise DuplicateEmailError() from exc
        except SQLAlchemyError as exc:
            self.store.rollback()
            logger.exception("Registration failed")
            raise DatabaseUnavailable() from exc

        logger.info("User registered: id=%s", user_id)
        return user_id

    def login(self, email, password):
        """Return the user id matching the credentials.

        Raises ValidationError, InvalidCredentialsError or DatabaseUnavailable.
        """
        email = _clean(email)
        if not email or not password:
            raise ValidationError("Please enter your email and password.")

        try:
            row = self.store.execute(
                select(User.id, User.password_hash).where(User.email == email)
            ).first()
        except SQLAlchemyError as exc:
            self.store.rollback()
            logger.exception("Login lookup failed")
            raise DatabaseUnavailable() from exc

        if row is None:
            check_password_hash(_DUMMY_HASH, password)
            logger.warning("Failed login attempt")
            raise InvalidCredentialsError()
        if not verify_password(row.password_hash, password):
            logger.warning("Failed login attempt for user id=%s", row.id)
            raise InvalidCredentialsError()

        logger.info("User logged in: id=%s", row.id)
        return row.id


# ------------------ CATEGORIES ------------------
class Categories:
    def __init__(self, store):
        self.store = store

    def create(self, user_id, name):
        """Insert-or-ignore: returns the new id, or a Skipped outcome."""
        name = _clean(name)
        if not name:
            return EMPTY
        if _too_long(name, Category.__table__.c.name):
            return TOO_LONG

        exists = self.store.execute(
            select(Category.id).where(Category.user_id == user_id, Category.name == name)
        ).first()
        if exists:
            return DUPLICATE

        category = Category(user_id=user_id, name=name)
        self.store.add(category)
        try:
            self.store.commit()
        except IntegrityError:
            self.store.rollback()
            return DUPLICATE
        logger.debug("Category %s created for user %s", category.id, user_id)
        return category.id

    def list(self, user_id):
        return self.store.execute(
            select(Category).where(Category.user_id == user_id).order_by(Category.name.asc())
        ).scalars().all()

    def owned_id(self, user_id, category_id):
        """``category_id`` if ``user_id`` owns it, else None."""
        if category_id is None or not _valid_id(category_id):
            return None
        return self.store.execute(
            select(Category.id).where(Category.id == category_id, Category.user_id == user_id)
        ).scalar()


# ------------------ CARDS ------------------
@dataclass(frozen=True)
class CardView:
    id: int
    title: str
    content: str
    created_at: object
    category_id: object
    category_name: object


class Cards:
    def __init__(self, store):
        self.store = store
        self.categories = Categories(store)

    def create(self, user_id, title, content, category_id=None):
        title = _clean(title)
        if not title or not _clean(content):
            return EMPTY
        if _too_long(title, Card.__table__.c.title) or _content_too_long(content):
            return TOO_LONG

        card = Card(
            user_id=user_id,
            category_id=self.categories.owned_id(user_id, category_id),
            title=title,
            content=content,
        )
        self.store.add(card)
        self.store.commit()
        logger.debug("Card %s created for user %s", card.id, user_id)
        return card.id

    def update(self, user_id, card_id, title, content, category_id=None):
        """Update a card owned by ``user_id``; another user's card is NOT_FOUND."""
        title = _clean(title)
        if not title or not _clean(content):
            return EMPTY
        if _too_long(title, Card.__table__.c.title) or _content_too_long(content):
            return TOO_LONG
        if not _valid_id(card_id):
            return NOT_FOUND

        result = self.store.execute(
            update(Card)
            .where(Card.id == card_id, Card.user_id == user_id)
            .values(
                title=title,
                content=content,
                category_id=self.categories.owned_id(user_id, category_id),
            )
        )
        self.store.commit()
        if result.rowcount == 0:
            logger.info("Card %s not updated: no such card for user %s", card_id, user_id)
            return NOT_FOUND
        return card_id

    def list(self, user_id):
        rows = self.store.execute(
            select(
                Card.id,
                Card.title,
                Card.content,
                Card.created_at,
                Category.id.label("category_id"),
                Category.name.label("category_name"),
            )
            .outerjoin(Category, Card.category_id == Category.id)
            .where(Card.user_id == user_id)
            .order_by(Card.created_at.desc(), Card.id.desc())
        ).all()
        return [CardView(**row._asdict()) for row in rows]
