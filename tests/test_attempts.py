"""
Test cases for the student attempt lifecycle.
"""
from quizlink.extensions import db
from quizlink.models import Attempt, Answer
from quizlink.services import AttemptService


def start(client, quiz_id):
    return client.post('/api/quiz/start-attempt', json={'quiz_id': quiz_id})


class TestQuizByLink:
    """Public quiz lookup behind a shareable link."""

    def test_open_quiz(self, client, make_quiz):
        quiz = make_quiz(questions=3)
        response = client.get(f'/api/quiz/{quiz["link"]}')
        assert response.status_code == 200
        body = response.get_json()['quiz']
        assert body['id'] == quiz['id']
        assert body['question_count'] == 3

    def test_unknown_link(self, client):
        assert client.get('/api/quiz/not-a-real-link').status_code == 404

    def test_not_yet_open(self, client, make_quiz):
        quiz = make_quiz(starts_in=600, ends_in=1200)
        response = client.get(f'/api/quiz/{quiz["link"]}')
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Quiz not available'

    def test_closed(self, client, make_quiz):
        quiz = make_quiz(starts_in=-1200, ends_in=-600)
        assert client.get(f'/api/quiz/{quiz["link"]}').status_code == 403


class TestStartAttempt:
    """Starting and resuming attempts."""

    def test_requires_login(self, client, make_quiz):
        quiz = make_quiz()
        assert start(client, quiz['id']).status_code == 401

    def test_requires_quiz_or_attempt(self, client, student):
        response = client.post('/api/quiz/start-attempt', json={})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Quiz ID or Attempt ID required'

    def test_start_hides_correct_answers(self, client, student, make_quiz):
        quiz = make_quiz(questions=2)
        response = start(client, quiz['id'])
        assert response.status_code == 200
        body = response.get_json()
        assert body['quiz']['id'] == quiz['id']
        assert [q['id'] for q in body['questions']] == quiz['question_ids']
        assert all('correct_answer' not in q for q in body['questions'])
        assert body['answered_question_ids'] == []
        assert 'resumed' not in body

    def test_start_twice_resumes_same_attempt(self, client, student, make_quiz):
        quiz = make_quiz()
        first = start(client, quiz['id']).get_json()
        second = start(client, quiz['id']).get_json()
        assert second['attempt_id'] == first['attempt_id']
        assert second['resumed'] is True

    def test_resume_by_attempt_id(self, client, student, make_quiz):
        quiz = make_quiz()
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/start-attempt', json={'attempt_id': attempt_id})
        assert response.status_code == 200
        assert response.get_json()['resumed'] is True

    def test_resume_other_users_attempt(self, client, student, make_profile, make_quiz, make_attempt):
        other_id, _ = make_profile()
        quiz = make_quiz()
        attempt_id = make_attempt(other_id, quiz['id'])
        response = client.post('/api/quiz/start-attempt', json={'attempt_id': attempt_id})
        assert response.status_code == 404

    def test_unknown_quiz(self, client, student):
        response = start(client, 999)
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Quiz not found'

    def test_before_start_time(self, client, student, make_quiz):
        quiz = make_quiz(starts_in=600, ends_in=1200)
        response = start(client, quiz['id'])
        assert response.status_code == 403
        assert response.get_json()['error'].startswith('Quiz not yet available. Starts at ')

    def test_after_end_time(self, client, student, make_quiz):
        quiz = make_quiz(starts_in=-1200, ends_in=-600)
        response = start(client, quiz['id'])
        assert response.status_code == 403
        assert response.get_json()['error'].startswith('Quiz has expired. Ended at ')

    def test_completed_attempt_cannot_restart(self, client, student, make_quiz):
        quiz = make_quiz()
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        client.post('/api/quiz/submit-all-answers', json={'attempt_id': attempt_id, 'answers': []})

        response = start(client, quiz['id'])
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Already attempted'

        response = client.post('/api/quiz/start-attempt', json={'attempt_id': attempt_id})
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Attempt already completed'


class TestQuestionFlow:
    """get-question and submit-answer."""

    def test_get_question_by_index(self, client, student, make_quiz):
        quiz = make_quiz(questions=2)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/get-question', json={'attempt_id': attempt_id, 'question_index': 1})
        assert response.status_code == 200
        body = response.get_json()
        assert body['question']['id'] == quiz['question_ids'][1]
        assert body['question_count'] == 2
        assert 'correct_answer' not in body['question']

    def test_get_question_past_last_completes(self, app, client, student, make_quiz):
        quiz = make_quiz(questions=2)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/get-question', json={'attempt_id': attempt_id, 'question_index': 2})
        assert response.get_json() == {'completed': True, 'total_score': 0}

        with app.app_context():
            attempt = db.session.get(Attempt, attempt_id)
            assert attempt.is_completed is True
            assert len(attempt.answers) == 2

    def test_get_question_invalid_attempt(self, client, student):
        response = client.post('/api/quiz/get-question', json={'attempt_id': 999})
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Invalid attempt'

    def test_submit_answer_grades(self, app, client, student, make_quiz):
        quiz = make_quiz(questions=2, answers=[0, 1])
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        q1, q2 = quiz['question_ids']

        for question_id, option in ((q1, 0), (q2, 3)):
            response = client.post('/api/quiz/submit-answer', json={
                'attempt_id': attempt_id,
                'question_id': question_id,
                'selected_option': option,
                'time_taken_seconds': 5,
            })
            assert response.status_code == 200

        with app.app_context():
            answers = {a.question_id: a for a in Answer.query.filter_by(attempt_id=attempt_id)}
            assert answers[q1].is_correct is True
            assert answers[q1].marks_obtained == 1
            assert answers[q2].is_correct is False

    def test_submit_answer_after_time_limit_is_wrong(self, app, client, student, make_quiz):
        quiz = make_quiz(questions=1, time_limit=10)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        client.post('/api/quiz/submit-answer', json={
            'attempt_id': attempt_id,
            'question_id': quiz['question_ids'][0],
            'selected_option': 0,
            'time_taken_seconds': 11,
        })
        with app.app_context():
            answer = Answer.query.filter_by(attempt_id=attempt_id).one()
            assert answer.is_correct is False
            assert answer.marks_obtained == 0

    def test_submit_answer_twice_conflicts(self, client, student, make_quiz):
        quiz = make_quiz(questions=1)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        payload = {'attempt_id': attempt_id, 'question_id': quiz['question_ids'][0], 'selected_option': 0}
        assert client.post('/api/quiz/submit-answer', json=payload).status_code == 200
        assert client.post('/api/quiz/submit-answer', json=payload).status_code == 409

    def test_submit_answer_for_other_quiz_question(self, client, student, make_quiz):
        quiz = make_quiz(questions=1)
        other = make_quiz(questions=1)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/submit-answer', json={
            'attempt_id': attempt_id, 'question_id': other['question_ids'][0], 'selected_option': 0,
        })
        assert response.status_code == 404

    def test_answered_ids_returned_on_resume(self, client, student, make_quiz):
        quiz = make_quiz(questions=2)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        client.post('/api/quiz/submit-answer', json={
            'attempt_id': attempt_id, 'question_id': quiz['question_ids'][0], 'selected_option': 1,
        })
        body = start(client, quiz['id']).get_json()
        assert body['answered_question_ids'] == [quiz['question_ids'][0]]


class TestSubmitAll:
    """Final submission, scoring and auto-submit."""

    def test_score_equals_correct_answers(self, app, client, student, make_quiz):
        quiz = make_quiz(questions=4, answers=[0, 1, 2, 3])
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        ids = quiz['question_ids']
        answers = [
            {'question_id': ids[0], 'selected_option': 0, 'time_taken_seconds': 3},
            {'question_id': ids[1], 'selected_option': 1, 'time_taken_seconds': 4},
            {'question_id': ids[2], 'selected_option': 0, 'time_taken_seconds': 5},
        ]
        response = client.post('/api/quiz/submit-all-answers', json={'attempt_id': attempt_id, 'answers': answers})
        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'total_score': 2}

        with app.app_context():
            attempt = db.session.get(Attempt, attempt_id)
            assert attempt.is_completed is True
            assert attempt.submitted_at is not None
            assert attempt.time_taken >= 0
            stored = {a.question_id: a for a in attempt.answers}
            assert len(stored) == 4
            assert stored[ids[3]].selected_option is None
            assert stored[ids[3]].is_correct is False
            assert attempt.total_score == sum(a.marks_obtained for a in attempt.answers)

    def test_submit_all_keeps_earlier_answers(self, client, student, make_quiz):
        quiz = make_quiz(questions=2, answers=[0, 0])
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        client.post('/api/quiz/submit-answer', json={
            'attempt_id': attempt_id, 'question_id': quiz['question_ids'][0], 'selected_option': 0,
        })
        response = client.post('/api/quiz/submit-all-answers', json={
            'attempt_id': attempt_id,
            'answers': [{'question_id': quiz['question_ids'][1], 'selected_option': 0}],
        })
        assert response.get_json()['total_score'] == 2

    def test_unknown_questions_and_junk_are_ignored(self, client, student, make_quiz):
        quiz = make_quiz(questions=1)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/submit-all-answers', json={
            'attempt_id': attempt_id,
            'answers': ['junk', {'question_id': 999, 'selected_option': 0}],
        })
        assert response.status_code == 200
        assert response.get_json()['total_score'] == 0

    def test_resubmission_is_rejected(self, client, student, make_quiz):
        quiz = make_quiz(questions=1)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        payload = {
            'attempt_id': attempt_id,
            'answers': [{'question_id': quiz['question_ids'][0], 'selected_option': 0}],
        }
        assert client.post('/api/quiz/submit-all-answers', json=payload).status_code == 200

        response = client.post('/api/quiz/submit-all-answers', json=payload)
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Invalid attempt'

        response = client.post('/api/quiz/submit-answer', json={
            'attempt_id': attempt_id, 'question_id': quiz['question_ids'][0], 'selected_option': 1,
        })
        assert response.status_code == 403

    def test_requires_attempt_id(self, client, student):
        response = client.post('/api/quiz/submit-all-answers', json={'answers': []})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Attempt ID required'

    def test_requires_answers_array(self, client, student, make_quiz):
        quiz = make_quiz()
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/submit-all-answers', json={'attempt_id': attempt_id, 'answers': {}})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Answers must be an array'

    def test_submission_within_grace_period(self, client, student, make_quiz, make_attempt):
        quiz = make_quiz(starts_in=-600, ends_in=-5, questions=1)
        attempt_id = make_attempt(student, quiz['id'], started_ago=300)
        response = client.post('/api/quiz/submit-all-answers', json={
            'attempt_id': attempt_id,
            'answers': [{'question_id': quiz['question_ids'][0], 'selected_option': 0}],
        })
        assert response.status_code == 200
        assert response.get_json()['total_score'] == 1

    def test_submission_after_grace_auto_submits(self, app, client, student, make_quiz, make_attempt):
        quiz = make_quiz(starts_in=-600, ends_in=-120, questions=2)
        attempt_id = make_attempt(student, quiz['id'], started_ago=300)
        response = client.post('/api/quiz/submit-all-answers', json={
            'attempt_id': attempt_id,
            'answers': [{'question_id': quiz['question_ids'][0], 'selected_option': 0}],
        })
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Quiz ended'

        with app.app_context():
            attempt = db.session.get(Attempt, attempt_id)
            assert attempt.is_completed is True
            assert attempt.total_score == 0
            assert all(a.selected_option is None for a in attempt.answers)

    def test_get_question_after_end_auto_submits(self, app, client, student, make_quiz, make_attempt):
        quiz = make_quiz(starts_in=-600, ends_in=-1, questions=1)
        attempt_id = make_attempt(student, quiz['id'], started_ago=300)
        response = client.post('/api/quiz/get-question', json={'attempt_id': attempt_id})
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Quiz ended'

        with app.app_context():
            assert db.session.get(Attempt, attempt_id).is_completed is True


class TestAutoSubmit:
    """Auto-submit closes an attempt exactly once."""

    def test_auto_submit_twice_changes_nothing(self, app, make_profile, make_quiz, make_attempt):
        quiz = make_quiz(questions=3)
        attempt_id = make_attempt(make_profile()[0], quiz['id'])

        with app.app_context():
            attempt = AttemptService.auto_submit(db.session.get(Attempt, attempt_id))
            submitted_at = attempt.submitted_at
            total_score = attempt.total_score

        with app.app_context():
            AttemptService.auto_submit(db.session.get(Attempt, attempt_id))
            attempt = db.session.get(Attempt, attempt_id)
            assert attempt.submitted_at == submitted_at
            assert attempt.total_score == total_score
            assert Answer.query.filter_by(attempt_id=attempt_id).count() == 3

    def test_restart_after_quiz_ended_finalises_abandoned_attempt(self, app, client, student, make_quiz, make_attempt):
        quiz = make_quiz(starts_in=-600, ends_in=-60, questions=2)
        attempt_id = make_attempt(student, quiz['id'], started_ago=300)

        response = start(client, quiz['id'])
        assert response.status_code == 403
        assert response.get_json()['error'].startswith('Quiz has expired. Ended at ')

        with app.app_context():
            attempt = db.session.get(Attempt, attempt_id)
            assert attempt.is_completed is True
            assert len(attempt.answers) == 2

    def test_resume_after_quiz_ended_finalises_attempt(self, app, client, student, make_quiz, make_attempt):
        quiz = make_quiz(starts_in=-600, ends_in=-60, questions=1)
        attempt_id = make_attempt(student, quiz['id'], started_ago=300)

        response = client.post('/api/quiz/start-attempt', json={'attempt_id': attempt_id})
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Quiz has expired'

        with app.app_context():
            assert db.session.get(Attempt, attempt_id).is_completed is True


class TestNumericPayloads:
    """JSON numbers sent as floats."""

    def test_integral_float_option_and_fractional_time(self, app, client, student, make_quiz):
        quiz = make_quiz(questions=1, time_limit=10)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/submit-answer', json={
            'attempt_id': attempt_id,
            'question_id': quiz['question_ids'][0],
            'selected_option': 0.0,
            'time_taken_seconds': 7.9,
        })
        assert response.status_code == 200

        with app.app_context():
            answer = Answer.query.filter_by(attempt_id=attempt_id).one()
            assert answer.selected_option == 0
            assert answer.is_correct is True
            assert answer.time_taken_seconds == 7

    def test_fractional_option_counts_as_skipped(self, app, client, student, make_quiz):
        quiz = make_quiz(questions=1)
        attempt_id = start(client, quiz['id']).get_json()['attempt_id']
        response = client.post('/api/quiz/submit-all-answers', json={
            'attempt_id': attempt_id,
            'answers': [{'question_id': quiz['question_ids'][0], 'selected_option': 0.5, 'time_taken_seconds': 2.5}],
        })
        assert response.get_json()['total_score'] == 0

        with app.app_context():
            answer = Answer.query.filter_by(attempt_id=attempt_id).one()
            assert answer.selected_option is None
            assert answer.time_taken_seconds == 2
