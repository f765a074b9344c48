from flask import Blueprint, jsonify
from dotsboxes import sessions

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Dots & Boxes game server', 'status': 'ok', 'games': len(sessions)})
