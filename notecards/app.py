# app.py
import logging
import sys
from functools import wraps

import click
from flask import Flask, current_app, redirect, render_template, request, session, url_for
from sqlalchemy import func, select

from notecards import services
from notecards.config import INSECURE_SECRET, Config
from notecards.errors import DatabaseUnavailable, NotecardsError
from notecards.extensions import db
from notecards.logging_config import setup_logging
from notecards.models import Card, Category, User
from notecards.schema import bootstrap

logger = logging.getLogger(__name__)


def login_required(f):
    """Pass the session's user id as the view's first argument, or redirect to /login."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = services.require_auth(session)
        if user_id is None:
            return redirect(url_for('login'))
        return f(user_id, *args, **kwargs)
    return decorated_function


def _category_id_from_form():
    raw = request.form.get('categoryId', '').strip()
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


def _accounts():
    return services.Accounts(db.session, current_app.config['DEFAULT_CATEGORY_NAME'])


def register_routes(app):

    @app.route('/')
    def home():
        if services.require_auth(session) is not None:
            return redirect(url_for('dashboard'))
        return redirect(url_for('login'))

    # ------------------ AUTH ------------------
    @app.route('/login', methods=['GET', 'POST'])
    def login():
        if request.method == 'POST':
            try:
                user_id = _accounts().login(
                    request.form.get('email'), request.form.get('password')
                )
            except NotecardsError as e:
                return render_template('login.html', error=e.message)
            services.establish_session(session, user_id)
            return redirect(url_for('dashboard'))

        return render_template('login.html', error=None)

    @app.route('/register', methods=['GET', 'POST'])
    def register():
        if request.method == 'POST':
            try:
                user_id = _accounts().register(
                    request.form.get('name'),
                    request.form.get('email'),
                    request.form.get('password'),
                )
            except NotecardsError as e:
                return render_template('register.html', error=e.message)
            services.establish_session(session, user_id)
            return redirect(url_for('dashboard'))

        return render_template('register.html', error=None)

    @app.route('/logout', methods=['POST'])
    def logout():
        services.logout(session)
        return redirect(url_for('login'))

    # ------------------ DASHBOARD ------------------
    @app.route('/dashboard')
    @login_required
    def dashboard(user_id):
        cards = services.Cards(db.session).list(user_id)
        categories = services.Categories(db.session).list(user_id)
        return render_template('dashboard.html', cards=cards, categories=categories)

    # ------------------ CARDS ------------------
    @app.route('/cards', methods=['POST'])
    @login_required
    def create_card(user_id):
        services.Cards(db.session).create(
            user_id,
            request.form.get('title'),
            request.form.get('content'),
            _category_id_from_form(),
        )
        return redirect(url_for('dashboard'))

    @app.route('/cards/<card_id>', methods=['POST'])
    @login_required
    def update_card(user_id, card_id):
        # unknown ids, like cards owned by someone else, fall through to the dashboard
        try:
            card_id = int(card_id)
        except ValueError:
            return redirect(url_for('dashboard'))
        services.Cards(db.session).update(
            user_id,
            card_id,
            request.form.get('title'),
            request.form.get('content'),
            _category_id_from_form(),
        )
        return redirect(url_for('dashboard'))

    # ------------------ CATEGORIES ------------------
    @app.route('/categories', methods=['POST'])
    @login_required
    def create_category(user_id):
        services.Categories(db.session).create(user_id, request.form.get('name'))
        return redirect(url_for('dashboard'))

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled error on %s %s", request.method, request.path)
        return "Server error, please try again.", 500


def register_commands(app):

    @app.cli.command('init-db')
    def init_db():
        """Connect to the database and run the schema bootstrap."""
        report = bootstrap(app)
        click.echo(f"Tables created: {', '.join(report.tables_created) or 'none'}")
        click.echo(f"Columns added: {', '.join(report.columns_added) or 'none'}")
        click.echo(f"Default categories backfilled: {report.categories_backfilled}")

    @app.cli.command('check-db')
    def check_db():
        """List users with their category and card counts."""
        category_count = (
            select(func.count(Category.id)).where(Category.user_id == User.id).scalar_subquery()
        )
        card_count = (
            select(func.count(Card.id)).where(Card.user_id == User.id).scalar_subquery()
        )
        rows = db.session.execute(
            select(User.id, User.email, User.created_at, category_count, card_count)
            .order_by(User.id)
        ).all()

        click.echo(f"Users in database: {len(rows)}")
        for user_id, email, created_at, categories, cards in rows:
            click.echo(f"{user_id}\t{email}\t{created_at}\tcategories={categories}\tcards={cards}")


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    if app.config['SECRET_KEY'] == INSECURE_SECRET and not app.testing:
        logger.warning("SESSION_SECRET is not set; using the insecure development secret")

    db.init_app(app)
    register_routes(app)
    register_commands(app)
    return app


def main():
    setup_logging(Config.LOG_LEVEL, Config.LOG_DIR)
    app = create_app()
    try:
        bootstrap(app)
    except DatabaseUnavailable:
        logger.error("Failed to connect to database, giving up")
        sys.exit(1)
    logger.info("Server running on port %s", app.config['PORT'])
    app.run(host='0.0.0.0', port=app.config['PORT'])


if __name__ == "__main__":
    main()
