from flask import Blueprint, jsonify, request
from scoredraft.api import params
from scoredraft.services import rooms as room_service
from scoredraft.services.minigame.lifecycle import get_room


rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['POST'])
def create_room():
    data = request.get_json(silent=True) or {}
    code = params.room_code(data.get('code'))
    user_uid = params.uid(data.get('uid'))
    room = room_service.create_room(code, user_uid, params.display_name(data.get('display_name')))
    return jsonify(room.to_dict()), 201


@rooms.route('/<string:code>', methods=['GET'])
def get_room_state(code):
    return jsonify(get_room(params.room_code(code)).to_dict())


@rooms.route('/<string:code>/join', methods=['POST'])
def join_room(code):
    data = request.get_json(silent=True) or {}
    member = room_service.join_room(
        params.room_code(code),
        params.uid(data.get('uid')),
        params.display_name(data.get('display_name')),
    )
    return jsonify(member.to_dict())


@rooms.route('/<string:code>/kick', methods=['POST'])
def kick(code):
    data = request.get_json(silent=True) or {}
    room_service.kick_member(
        params.room_code(code),
        params.uid(data.get('uid')),
        params.uid(data.get('target_uid'), field='target_uid'),
    )
    return jsonify({'ok': True})


@rooms.route('/<string:code>/leaderboard', methods=['GET'])
def get_leaderboard(code):
    return jsonify(room_service.leaderboard(params.room_code(code)))
