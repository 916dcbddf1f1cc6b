import os
import datetime
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()

def create_app(test_config=None):
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'a_default_secret_key')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///./vidshare.db') # SQLite unless DATABASE_URL is set
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = os.environ.get('JWT_SECRET_KEY', 'a_default_jwt_secret_key')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = datetime.timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', 24 * 7)))
    app.config['UPLOAD_FOLDER'] = os.environ.get('UPLOAD_FOLDER', os.path.join(os.getcwd(), 'uploads'))
    app.config['MAX_CONTENT_LENGTH'] = 100 * 1024 * 1024  # 100 MB max upload size
    app.config['AUTO_CREATE_TABLES'] = os.environ.get('AUTO_CREATE_TABLES', 'true').lower() == 'true'

    if test_config:
        app.config.update(test_config)

    # Ensure upload folder exists
    if not os.path.exists(app.config['UPLOAD_FOLDER']):
        os.makedirs(app.config['UPLOAD_FOLDER'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    from .videos import videos_bp, uploads_bp
    app.register_blueprint(videos_bp, url_prefix='/api')
    app.register_blueprint(uploads_bp, url_prefix='/uploads')

    @app.route('/api/health')
    def health():
        try:
            db.session.execute(text('SELECT 1'))
            database = 'connected'
        except SQLAlchemyError as e:
            app.logger.error(f"Health check could not reach the database: {e}")
            database = 'disconnected'
        return jsonify({
            "status": "ok",
            "database": database,
            "time": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }), 200

    if app.config['AUTO_CREATE_TABLES']:
        with app.app_context():
            from . import models  # noqa: F401 - registers tables on db.metadata
            try:
                db.create_all()
            except SQLAlchemyError as e:
                # Keep serving; requests touching the store report StorageError
                app.logger.error(f"Could not open the video store at startup: {e}")

    return app
