"""
Flask Extensions
Unbound instances shared by the app factory, models, services and sockets
"""
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO

db = SQLAlchemy()

# Emits attempt_completed to admins watching a quiz's results
socketio = SocketIO()
