"""
Socket.IO Event Handlers
Live results feed for admins watching a quiz
"""
from flask import current_app
from flask_socketio import join_room, leave_room

from quizlink.extensions import db, socketio
from quizlink.models import Quiz
from quizlink.utils import get_current_user
from quizlink.utils.validators import coerce_id


def results_room(quiz_id):
    return f'results_{quiz_id}'


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('join_results')
    def join_results(data):
        """Admin subscribes to attempt_completed events of a quiz"""
        user = get_current_user()
        if user is None or not user.is_admin:
            return {'error': 'Admin access required'}

        quiz_id = coerce_id((data or {}).get('quiz_id'))
        if quiz_id is None or db.session.get(Quiz, quiz_id) is None:
            return {'error': 'Quiz not found'}

        join_room(results_room(quiz_id))
        current_app.logger.debug("Profile %s watching results of quiz %s", user.id, quiz_id)
        return {'success': True, 'quiz_id': quiz_id}

    @socketio.on('leave_results')
    def leave_results(data):
        quiz_id = coerce_id((data or {}).get('quiz_id'))
        if quiz_id is not None:
            leave_room(results_room(quiz_id))
        return {'success': True}
