from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the scoreboard sync server!'})


@main.route('/health')
def health():
    cache = current_app.extensions['game_state_cache']
    return jsonify({'status': 'ok', 'cached_streams': len(cache)})
