from flask import Flask
from flask.cli import AppGroup
from flask_cors import CORS
from datetime import timedelta
import click
import json
import logging
from mediatank.extensions.extension import jwt, db, migrate

def create_app(config_name='default'):
    from mediatank.config import config_by_name

    # Initialize app
    app = Flask(__name__)
    CORS(app)

    app.config.from_object(config_by_name[config_name])
    app.config.setdefault('JWT_ACCESS_TOKEN_EXPIRES', timedelta(hours=3))

    logging.basicConfig(
        level=logging.DEBUG if app.debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Initialize extensions with app
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    # Import JWT utils to register the loaders
    from mediatank.utils import jwt_utils

    # Register blueprints
    from mediatank.routes.auth.auth import auth_bp
    from mediatank.routes.auth.recovery import recovery_bp
    from mediatank.routes.user.user import user_bp
    from mediatank.routes.media.media import media_bp
    from mediatank.routes.media.ratings import ratings_bp
    from mediatank.routes.media.comments import comments_bp
    from mediatank.routes.media.saves import saves_bp
    from mediatank.routes.upload.upload import upload_bp
    from mediatank.routes.payments.stripe import payments_bp
    from mediatank.routes.payments.webhooks import webhook_bp
    from mediatank.routes.notifications.notifications import notifications_bp
    from mediatank.routes.messages.messages import messages_bp
    from mediatank.routes.cron.cron import cron_bp
    from mediatank.routes.admin.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(recovery_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(media_bp)
    app.register_blueprint(ratings_bp)
    app.register_blueprint(comments_bp)
    app.register_blueprint(saves_bp)
    app.register_blueprint(upload_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(messages_bp)
    app.register_blueprint(cron_bp)
    app.register_blueprint(admin_bp)

    app.cli.add_command(_jobs_cli())

    @app.route('/')
    def index():
        return "Welcome to the AI Media Tank API"

    from mediatank import models

    # Create database tables
    with app.app_context():
        db.create_all()

    return app

def _jobs_cli():
    from mediatank.services.job_runner import run_job, job_names

    jobs_cli = AppGroup('jobs', help='Run the periodic maintenance jobs.')

    def make_command(job_name):
        def command():
            summary = run_job(job_name, triggered_by='cli')
            click.echo(json.dumps(summary, indent=2, default=str))
        return click.command(job_name, help=f'Run the {job_name} job once.')(command)

    for job_name in job_names():
        jobs_cli.add_command(make_command(job_name))

    return jobs_cli

# Function to drop all tables (for reset operations)
def drop_all_tables(config_name='default'):
    with create_app(config_name).app_context():
        db.drop_all()
