from flask import Blueprint, jsonify

from quiz_game.models import DIFFICULTY_POINTS

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the LLM quiz game server!'})

@main.route('/api/difficulties')
def difficulties():
    return jsonify([
        {'level': d.value, 'points': points, 'description': f"{d.value.capitalize()} ({points} point{'s' if points > 1 else ''})"}
        for d, points in DIFFICULTY_POINTS.items()
    ])
