"""
Production WSGI Entry Point
Used by gunicorn and other WSGI servers
"""
import os
from quizlink import create_app
from quizlink.extensions import socketio

# Create Flask app
app = create_app()

# For development server
if __name__ == '__main__':
    # In production, use: gunicorn --worker-class eventlet -w 1 wsgi:app
    port = int(os.getenv('PORT', 5000))

    socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=app.debug,
        use_reloader=False
    )
