"""
Routes Package
Exports all route blueprints
"""
from quizlink.routes.auth import auth_bp
from quizlink.routes.admin import admin_bp
from quizlink.routes.quiz import quiz_bp
from quizlink.routes.pages import pages_bp

__all__ = ['auth_bp', 'admin_bp', 'quiz_bp', 'pages_bp']
