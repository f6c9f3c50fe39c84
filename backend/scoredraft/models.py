from scoredraft import db
from datetime import datetime, timezone
import enum
import json


def utcnow():
    return datetime.now(timezone.utc)


class SessionState(str, enum.Enum):
    LOBBY = 'LOBBY'
    DRAFT = 'DRAFT'
    GOLDEN = 'GOLDEN'
    REVEAL = 'REVEAL'


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, nullable=False, index=True)
    leader_uid = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    members = db.relationship('RoomMember', back_populates='room', cascade='all, delete-orphan')
    sessions = db.relationship('GameSession', back_populates='room')

    def member_uids(self):
        return {m.uid for m in self.members}

    def to_dict(self):
        return {
            'code': self.code,
            'leader_uid': self.leader_uid,
            'members': [m.to_dict() for m in sorted(self.members, key=lambda m: m.joined_at)],
        }


class RoomMember(db.Model):
    __tablename__ = 'room_member'
    __table_args__ = (db.UniqueConstraint('room_id', 'uid', name='uq_room_member'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    uid = db.Column(db.String(128), nullable=False)
    display_name = db.Column(db.String(64), nullable=False, default='Player')
    role = db.Column(db.String(16), nullable=False, default='member')  # leader, member
    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    room = db.relationship('Room', back_populates='members')

    def to_dict(self):
        return {
            'uid': self.uid,
            'display_name': self.display_name,
            'role': self.role,
        }


class GameSession(db.Model):
    """One room's mini-game for one gameweek.

    ``version_id`` is bumped by SQLAlchemy on every UPDATE of the row, so a
    transaction that read an older version fails at commit with
    ``StaleDataError``. Every mutating game action writes this row.
    """
    __tablename__ = 'game_session'
    __table_args__ = (db.UniqueConstraint('room_id', 'gameweek', name='uq_session_room_gameweek'),)
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    gameweek = db.Column(db.Integer, nullable=False)
    state = db.Column(db.String(16), nullable=False, default=SessionState.LOBBY.value)
    leader_uid = db.Column(db.String(128), nullable=True)
    play_order = db.Column(db.Text, nullable=True)  # JSON-encoded list of uids, the draft turn order
    fixture_ids = db.Column(db.Text, nullable=True)  # JSON-encoded list of fixture ids
    current_turn = db.Column(db.Integer, nullable=False, default=0)
    total_turns = db.Column(db.Integer, nullable=False, default=0)
    order_seed = db.Column(db.BigInteger, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    version_id = db.Column(db.Integer, nullable=False)

    room = db.relationship('Room', back_populates='sessions')
    lobby = db.relationship('LobbyEntry', back_populates='session', cascade='all, delete-orphan')

    __mapper_args__ = {'version_id_col': version_id}

    @property
    def players(self):
        return json.loads(self.play_order) if self.play_order else []

    @property
    def fixtures(self):
        return json.loads(self.fixture_ids) if self.fixture_ids else []

    def touch(self):
        self.updated_at = utcnow()

    def to_dict(self):
        return {
            'room_code': self.room.code if self.room else None,
            'gameweek': self.gameweek,
            'state': self.state,
            'leader_uid': self.leader_uid,
            'players': self.players,
            'fixture_ids': self.fixtures,
            'current_turn': self.current_turn,
            'total_turns': self.total_turns,
        }


class LobbyEntry(db.Model):
    __tablename__ = 'lobby_entry'
    __table_args__ = (db.UniqueConstraint('session_id', 'uid', name='uq_lobby_entry'),)
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False)
    uid = db.Column(db.String(128), nullable=False)
    display_name = db.Column(db.String(64), nullable=False, default='Player')
    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    last_seen_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    session = db.relationship('GameSession', back_populates='lobby')

    def to_dict(self):
        return {'uid': self.uid, 'display_name': self.display_name}


class Pick(db.Model):
    __tablename__ = 'pick'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'uid', 'fixture_id', name='uq_pick_player_fixture'),
        db.UniqueConstraint('session_id', 'fixture_id', 'score', name='uq_pick_fixture_score'),
    )
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    uid = db.Column(db.String(128), nullable=False)
    fixture_id = db.Column(db.Integer, nullable=False)
    score = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'uid': self.uid,
            'fixture_id': self.fixture_id,
            'score': self.score,
        }


class GoldenLock(db.Model):
    __tablename__ = 'golden_lock'
    __table_args__ = (db.UniqueConstraint('session_id', 'uid', name='uq_golden_player'),)
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    uid = db.Column(db.String(128), nullable=False)
    fixture_id = db.Column(db.Integer, nullable=False)
    score = db.Column(db.String(16), nullable=False)
    locked = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self, reveal=True):
        if not reveal:
            return {'uid': self.uid, 'locked': self.locked}
        return {
            'uid': self.uid,
            'fixture_id': self.fixture_id,
            'score': self.score,
            'locked': self.locked,
        }


class ScoreRecord(db.Model):
    __tablename__ = 'score_record'
    __table_args__ = (db.UniqueConstraint('session_id', 'uid', name='uq_score_player'),)
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    uid = db.Column(db.String(128), nullable=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    breakdown = db.Column(db.Text, nullable=False, default='{}')  # JSON: fixture id -> per-fixture entry
    computed_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'uid': self.uid,
            'points': self.points,
            'breakdown': json.loads(self.breakdown) if self.breakdown else {},
        }
