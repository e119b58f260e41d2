import os
import logging
from flask import Flask, redirect, url_for, render_template
from dotenv import load_dotenv

from .config import DevConfig, ProdConfig, TestConfig
from .totals import format_currency


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    app = Flask(
        __name__,
        static_folder=os.path.join(project_root, 'static'),
        static_url_path='/static',
        instance_relative_config=True,
    )

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    if env == 'testing':
        cfg_cls = TestConfig
    elif env == 'development':
        cfg_cls = DevConfig
    else:
        cfg_cls = ProdConfig
    app.config.from_object(cfg_cls)

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)

    from proposal_builder.store import init_store
    init_store(app)

    @app.template_filter('currency')
    def currency_filter(amount, code='USD'):
        return format_currency(amount, code)

    @app.route('/')
    def index():
        return redirect(url_for('proposals.list_proposals'))

    @app.errorhandler(404)
    def not_found(_):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def server_error(_):
        return render_template('errors/500.html'), 500

    from proposal_builder.proposals.routes import bp as proposals_bp
    from proposal_builder.cli import proposal_cli

    app.register_blueprint(proposals_bp, url_prefix='/proposals')
    app.cli.add_command(proposal_cli)

    return app
