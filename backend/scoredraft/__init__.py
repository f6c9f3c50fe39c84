from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Fixtures/results provider; tests swap this for a fake
    from scoredraft.services.football_data import FootballDataClient
    flask_app.extensions['football_data'] = FootballDataClient.from_config(flask_app.config)

    from scoredraft.errors import GameError

    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    # Import and register blueprints here
    from scoredraft.main import main
    flask_app.register_blueprint(main)

    from scoredraft.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from scoredraft.api.minigame import minigame
    flask_app.register_blueprint(minigame, url_prefix='/api/game')

    from scoredraft.api.fixtures import fixtures
    flask_app.register_blueprint(fixtures, url_prefix='/api')

    # Register Socket.IO event handlers
    from scoredraft.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo room."""
        from scoredraft.models import Room, RoomMember
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            room = Room(code='DEMO', leader_uid='testuser1')
            db.session.add(room)
            db.session.flush()
            for i, uid in enumerate(['testuser1', 'testuser2', 'testuser3']):
                db.session.add(RoomMember(
                    room_id=room.id,
                    uid=uid,
                    display_name=uid,
                    role='leader' if i == 0 else 'member',
                ))

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('score-gameweek')
    @click.argument('room_code')
    @click.argument('gameweek', type=int)
    def score_gameweek_command(room_code, gameweek):
        """Recalculates scores for one room's gameweek session."""
        from scoredraft.services.minigame.scoring import recalculate_session
        with flask_app.app_context():
            scored = recalculate_session(room_code.upper(), gameweek)
        click.echo(f'Scored {scored} players for {room_code.upper()} GW{gameweek}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(score_gameweek_command)

    return flask_app
