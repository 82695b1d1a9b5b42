from dotenv import load_dotenv # type: ignore
import os

# Load environment variables from .env file
load_dotenv()

DEFAULT_DATABASE_URI = 'sqlite:///clinic_management.db'


def config_app(app, overrides=None):
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('SQLALCHEMY_DATABASE_URI', DEFAULT_DATABASE_URI)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = os.getenv('SQLALCHEMY_TRACK_MODIFICATIONS') == 'True'
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY')
    # sample users, doctors, services, patient and rooms on startup
    app.config['SEED_SAMPLE_DATA'] = os.getenv('SEED_SAMPLE_DATA', 'True') == 'True'

    if overrides:
        app.config.update(overrides)
