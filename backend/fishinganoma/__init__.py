from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import asyncio
import os
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def _ensure_sqlite_dir(uri):
    prefix = 'sqlite:///'
    if uri and uri.startswith(prefix) and len(uri) > len(prefix):
        directory = os.path.dirname(uri[len(prefix):])
        if directory:
            os.makedirs(directory, exist_ok=True)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    _ensure_sqlite_dir(flask_app.config.get('SQLALCHEMY_DATABASE_URI'))
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from fishinganoma.main import main
    flask_app.register_blueprint(main)

    from fishinganoma.api.leaderboard import leaderboard
    # Mounted under /api to match the game client
    flask_app.register_blueprint(leaderboard, url_prefix='/api')

    from fishinganoma.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from fishinganoma.models import LeaderboardEntry

    if flask_app.config.get('AUTO_CREATE_TABLES'):
        with flask_app.app_context():
            LeaderboardEntry.__table__.create(db.engine, checkfirst=True)
            flask_app.logger.info("[db] leaderboard table ready")

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the leaderboard table."""
        from fishinganoma.services.leaderboard import reset_leaderboard
        with flask_app.app_context():
            reset_leaderboard()
            print('Leaderboard has been reset!')

    @click.command('simulate-round')
    @click.option('--name', required=True, help='Player name to submit the score under.')
    @click.option('--seed', type=int, default=None, help='Seed for the fish field.')
    @click.option('--url', default=None, help='Leaderboard endpoint (defaults to LEADERBOARD_URL).')
    def simulate_round_command(name, seed, url):
        """Plays one headless round with the autopilot and submits the score."""
        import random
        from fishinganoma.services.fishing import (
            GameLoop, InvalidPlayerName, LeaderboardClient, PlayerProfile,
            play_headless_round, validate_player_name,
        )

        try:
            player = validate_player_name(name)
        except InvalidPlayerName as exc:
            raise click.BadParameter(str(exc), param_hint='--name')

        async def _play():
            async with LeaderboardClient(url or flask_app.config['LEADERBOARD_URL']) as client:
                loop = GameLoop(PlayerProfile(player), client, rng=random.Random(seed))
                result = await play_headless_round(loop)
                # An empty round submits nothing, so fetch the standings explicitly
                await loop.refresh_leaderboard()
                return result, loop.leaderboard

        result, board = asyncio.run(_play())
        print(f"{result.player_name} scored {result.score} pts")
        for line in result.breakdown:
            print(f"  {line.fish_type.name} Shrimp: {line.count} x {line.fish_type.value} pts = {line.subtotal} pts")
        if board:
            print('Leaderboard:')
            for rank, entry in enumerate(board, start=1):
                print(f"  {rank}. {entry['name']} {entry['score']} pts")
        else:
            print('No scores yet!')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(simulate_round_command)

    return flask_app
