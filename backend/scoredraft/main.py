from flask import Blueprint, jsonify
from sqlalchemy import text
from scoredraft import db

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the score draft game server!'})

@main.route('/healthz')
def healthz():
    db.session.execute(text('SELECT 1'))
    return jsonify({'ok': True})
