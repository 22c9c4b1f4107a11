import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(BASE_DIR, 'database', 'fishinganoma.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Create the leaderboard table on startup when it is missing
    AUTO_CREATE_TABLES = os.environ.get('AUTO_CREATE_TABLES', '1') != '0'
    # Rows returned by GET /api/leaderboard
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '5'))
    # Matches the width of the name column
    PLAYER_NAME_MAX_LENGTH = int(os.environ.get('PLAYER_NAME_MAX_LENGTH', '64'))
    # Used by `flask simulate-round` when no --url is given
    LEADERBOARD_URL = os.environ.get('LEADERBOARD_URL', 'http://127.0.0.1:5000/api/leaderboard')
