from collections import defaultdict

from flask import current_app

from scoredraft import db
from scoredraft.errors import NotFoundError, NotLeader, RoomExists, ValidationError
from scoredraft.models import GameSession, Room, RoomMember, ScoreRecord
from scoredraft.services.minigame.lifecycle import get_room
from scoredraft.services.store import run_transaction


def create_room(code: str, uid: str, display_name: str) -> Room:
    def work():
        if Room.query.filter_by(code=code).first():
            raise RoomExists('Room code already used.')
        room = Room(code=code, leader_uid=uid)
        room.members.append(RoomMember(uid=uid, display_name=display_name, role='leader'))
        db.session.add(room)
        return room

    room = run_transaction(work, label=f'room-create {code}')
    current_app.logger.info(f"[room] created {code} leader={uid}")
    return room


def join_room(code: str, uid: str, display_name: str) -> RoomMember:
    def work():
        room = get_room(code)
        member = next((m for m in room.members if m.uid == uid), None)
        if member is None:
            member = RoomMember(uid=uid, display_name=display_name, role='member')
            room.members.append(member)
        else:
            member.display_name = display_name
        return member

    return run_transaction(work, label=f'room-join {code}')


def kick_member(code: str, leader_uid: str, target_uid: str) -> None:
    def work():
        room = get_room(code)
        if room.leader_uid != leader_uid:
            raise NotLeader('Not leader')
        if target_uid == leader_uid:
            raise ValidationError('The leader cannot remove themselves')
        member = next((m for m in room.members if m.uid == target_uid), None)
        if member is None:
            raise NotFoundError('Member not found')
        room.members.remove(member)

    run_transaction(work, label=f'room-kick {code}')
    current_app.logger.info(f"[room] {code} removed {target_uid}")


def leaderboard(code: str) -> dict:
    """Season totals per member: sum of every scored gameweek, plus the per-GW split."""
    room = get_room(code)
    sessions = {s.id: s.gameweek for s in GameSession.query.filter_by(room_id=room.id).all()}
    by_gw = defaultdict(dict)
    totals = defaultdict(int)
    if sessions:
        for rec in ScoreRecord.query.filter(ScoreRecord.session_id.in_(list(sessions))).all():
            gw = sessions[rec.session_id]
            by_gw[rec.uid][gw] = rec.points
            totals[rec.uid] += rec.points

    rows = []
    for m in room.members:
        rows.append({
            'uid': m.uid,
            'display_name': m.display_name,
            'total': totals.get(m.uid, 0),
            'gameweeks': {str(gw): pts for gw, pts in sorted(by_gw.get(m.uid, {}).items())},
        })
    rows.sort(key=lambda r: (-r['total'], r['display_name']))
    return {
        'room_code': room.code,
        'gameweeks_played': sorted(set(sessions.values())),
        'standings': rows,
    }
