from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, simulation=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS') or []
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One raid service per process; handlers receive it explicitly
    from bossraid.services.raid import RaidService
    service = RaidService.from_app(flask_app, socketio, simulation=simulation)
    flask_app.extensions['bossraid'] = service

    from bossraid.main import main
    flask_app.register_blueprint(main)

    from bossraid.socketio_events import register_socketio_handlers
    register_socketio_handlers(service, namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    @click.command('serve')
    @click.option('--host', default=None, help='Bind address (defaults to HOST).')
    @click.option('--port', default=None, type=int, help='Listen port (defaults to PORT).')
    def serve_command(host, port):
        """Run the Socket.IO server."""
        socketio.run(
            flask_app,
            host=host or flask_app.config['HOST'],
            port=port or flask_app.config['PORT'],
            allow_unsafe_werkzeug=True,
        )

    flask_app.cli.add_command(serve_command)

    return flask_app
