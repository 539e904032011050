"""
Models Package
Exports all database models
"""
from quizlink.models.profile import Profile
from quizlink.models.quiz import Quiz
from quizlink.models.question import Question
from quizlink.models.attempt import Attempt
from quizlink.models.answer import Answer

__all__ = ['Profile', 'Quiz', 'Question', 'Attempt', 'Answer']
