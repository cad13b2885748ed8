from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return 'Boss raid server is running!'


@main.route('/health')
def health():
    service = current_app.extensions['bossraid']
    return jsonify({'ok': True, 'rooms': len(service.registry)})
