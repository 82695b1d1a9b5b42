from flask import Flask
from database import db
from database.init_db import init_db
from database.commands import setup_commands
from config import config_app
import logging


def create_app(overrides=None):
  app = Flask(__name__)

  # Load config_app function from config and initialize
  config_app(app, overrides)

  # Initialize the database
  db.init_app(app)

  # Create tables and sample rows
  init_db(app, seed=app.config['SEED_SAMPLE_DATA'])

  setup_commands(app)
  return app


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
