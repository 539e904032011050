"""
Services Package
"""
from quizlink.services.scoring_service import ScoringService
from quizlink.services.attempt_service import AttemptService
from quizlink.services.results_service import ResultsService

__all__ = ['ScoringService', 'AttemptService', 'ResultsService']
