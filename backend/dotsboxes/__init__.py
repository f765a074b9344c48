from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config
from dotsboxes.services.games.errors import SessionNotFound
from dotsboxes.services.games.registry import SessionRegistry

sessions = SessionRegistry()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    sessions.init_app(flask_app)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from dotsboxes.main import main
    flask_app.register_blueprint(main)

    from dotsboxes.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from dotsboxes.socketio_events import register_socketio_handlers
    from dotsboxes.services.games.sync import attachments
    attachments.clear()
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('sessions')
    def sessions_command():
        """Lists live game rooms with phase and roster size."""
        codes = sessions.codes()
        if not codes:
            click.echo('No live games.')
            return
        for code in codes:
            try:
                snap = sessions.get(code).snapshot()
            except SessionNotFound:
                # Emptied since the listing was taken
                continue
            click.echo(
                f"{code}  phase={snap['phase']}  players={len(snap['players'])}/{snap['maxPlayers']}"
                f"  board={snap['board']['boardSize']}  version={snap['version']}"
            )

    flask_app.cli.add_command(sessions_command)

    return flask_app
