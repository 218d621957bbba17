from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from scoreboard.services.auth import authenticate, create_streamer, rotate_stream_token

auth = Blueprint('auth', __name__)


@auth.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    display_name = (data.get('display_name') or '').strip()
    email_address = (data.get('email_address') or '').strip()
    password = data.get('password') or ''
    if not all([display_name, email_address, password]):
        return jsonify({'error': 'display_name, email_address and password are required'}), 400
    if len(password) < 8:
        return jsonify({'error': 'Password must be at least 8 characters'}), 400

    streamer = create_streamer(display_name[:100], email_address, password)
    login_user(streamer)
    payload = streamer.to_dict()
    payload['stream_token'] = streamer.stream_token
    return jsonify(payload), 201


@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    streamer = authenticate(data.get('email_address'), data.get('password'))
    if streamer is None:
        return jsonify({'error': 'Invalid email address or password'}), 401
    login_user(streamer, remember=True)
    return jsonify(streamer.to_dict())


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})


@auth.route('/me', methods=['GET'])
@login_required
def me():
    payload = current_user.to_dict()
    payload['stream_token'] = current_user.stream_token
    return jsonify(payload)


@auth.route('/token/rotate', methods=['POST'])
@login_required
def rotate_token():
    """Issue a new private overlay token; old overlay URLs with a token stop working."""
    return jsonify({'stream_token': rotate_stream_token(current_user._get_current_object())})
