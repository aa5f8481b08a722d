"""Flask application factory."""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from app.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Order confirmation emails
    from app.services.email_service import init_mail
    init_mail(app)

    # Redis cache for the public catalog
    from app.services.cache_service import init_cache
    init_cache(app)

    # Prometheus instrumentation
    from app.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # HTTPS behind a reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    init_db(app)

    # API key and business context for each request
    from app.middleware import load_api_key_and_business

    @app.before_request
    def before_request_handler():
        load_api_key_and_business()

    # Error Handlers
    from app.exceptions import AppError

    @app.errorhandler(AppError)
    def handle_app_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"AppError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"AppError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'error': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method Not Allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'success': False, 'error': 'Uploaded file is too large'}), 413

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException) and error.code and error.code < 500:
            return jsonify({'success': False, 'error': error.description}), error.code
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'success': False, 'error': 'Internal Server Error'}), 500

    # Register blueprints
    from app.blueprints.main import main_bp
    from app.blueprints.metrics import metrics_bp
    from app.blueprints.invoices import invoices_bp
    from app.blueprints.catalog import catalog_bp
    from app.blueprints.submissions import submissions_bp
    from app.blueprints.business import business_bp
    from app.blueprints.suppliers import suppliers_bp
    from app.blueprints.reports import reports_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(metrics_bp)

    api_prefix = app.config.get('API_PREFIX', '/invoice-api')
    for blueprint in (invoices_bp, catalog_bp, submissions_bp, business_bp, suppliers_bp, reports_bp):
        app.register_blueprint(blueprint, url_prefix=api_prefix)

    # CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"MAIL_SERVER={app.config.get('MAIL_SERVER')}")
    app.logger.info(f"S3_ENDPOINT={app.config.get('S3_ENDPOINT')}")

    return app
