"""
Socket.IO Package
"""
from quizlink.sockets.results_events import register_socket_events, results_room

__all__ = ['register_socket_events', 'results_room']
