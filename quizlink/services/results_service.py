"""
Results Service
Ranks completed attempts and renders exports (CSV / Excel)
"""
import csv
from io import BytesIO, StringIO

import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment
from sqlalchemy import func

from quizlink.extensions import db
from quizlink.models import Attempt, Answer, Question, Profile
from quizlink.utils import isoformat, utc_to_local


EXPORT_HEADERS = [
    'Rank', 'Name', 'Email', 'Phone', 'Score', 'Max Score',
    'Time Taken (s)', 'Submitted At',
]

# Spreadsheet apps evaluate cells starting with these as formulas
FORMULA_PREFIXES = ('=', '+', '-', '@', '\t', '\r')


def spreadsheet_text(value):
    """Quote user-supplied text so it is never read as a formula"""
    if isinstance(value, str) and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


class ResultsService:
    """Result ranking and exports"""

    @staticmethod
    def ranked_attempts(quiz_id):
        """
        Completed attempts, best first.

        Ordered by score (desc), time taken (asc), then submission time.
        Attempts with equal score and time share a rank (1, 2, 2, 4).

        Returns:
            list: (rank, attempt) tuples
        """
        attempts = (
            Attempt.query
            .filter_by(quiz_id=quiz_id, is_completed=True)
            .order_by(
                Attempt.total_score.desc(),
                Attempt.time_taken.asc(),
                Attempt.submitted_at.asc(),
                Attempt.id.asc(),
            )
            .all()
        )

        ranked = []
        previous_key = None
        rank = 0
        for position, attempt in enumerate(attempts, start=1):
            key = (attempt.total_score or 0, attempt.time_taken or 0)
            if key != previous_key:
                rank = position
                previous_key = key
            ranked.append((rank, attempt))
        return ranked

    @staticmethod
    def build_results_payload(quiz_id):
        """Full ranked results with each attempt's answers"""
        max_score = Question.query.filter_by(quiz_id=quiz_id).count()
        ranked = ResultsService.ranked_attempts(quiz_id)
        if not ranked:
            return []

        attempt_ids = [attempt.id for _, attempt in ranked]
        rows = (
            db.session.query(Answer, Question)
            .join(Question, Answer.question_id == Question.id)
            .filter(Answer.attempt_id.in_(attempt_ids))
            .order_by(Answer.question_id)
            .all()
        )
        answers_by_attempt = {}
        for answer, question in rows:
            entry = answer.to_dict()
            entry['questions'] = {
                'question': question.question,
                'correct_answer': question.correct_answer,
            }
            answers_by_attempt.setdefault(answer.attempt_id, []).append(entry)

        return [
            {
                'id': attempt.id,
                'rank': rank,
                'total_score': attempt.total_score,
                'max_score': max_score,
                'time_taken': attempt.time_taken,
                'submitted_at': isoformat(attempt.submitted_at),
                'profiles': {
                    'full_name': attempt.profile.full_name,
                    'email': attempt.profile.email,
                },
                'answers': answers_by_attempt.get(attempt.id, []),
            }
            for rank, attempt in ranked
        ]

    @staticmethod
    def build_summary(quiz_id):
        """Aggregate statistics for a quiz"""
        stats = db.session.query(
            func.count(Attempt.id),
            func.avg(Attempt.total_score),
            func.max(Attempt.total_score),
            func.min(Attempt.total_score),
            func.avg(Attempt.time_taken),
        ).filter(
            Attempt.quiz_id == quiz_id,
            Attempt.is_completed == True,
        ).one()

        participants, avg_score, max_score, min_score, avg_time = stats

        question_data = []
        questions = Question.query.filter_by(quiz_id=quiz_id).order_by(Question.id).all()
        for q in questions:
            total_q, correct_q = db.session.query(
                func.count(Answer.id),
                func.sum(db.case((Answer.is_correct == True, 1), else_=0)),
            ).join(Attempt, Answer.attempt_id == Attempt.id).filter(
                Answer.question_id == q.id,
                Attempt.is_completed == True,
            ).one()
            correct_q = int(correct_q or 0)
            question_data.append({
                'question_id': q.id,
                'question': q.question,
                'answered': total_q,
                'correct': correct_q,
                'correct_pct': int((correct_q / total_q) * 100) if total_q else 0,
            })

        return {
            'quiz_id': quiz_id,
            'participants': participants,
            'max_score': len(questions),
            'average_score': round(float(avg_score), 2) if avg_score is not None else 0,
            'highest_score': max_score or 0,
            'lowest_score': min_score or 0,
            'average_time_taken': int(avg_time or 0),
            'questions': question_data,
        }

    @staticmethod
    def export_rows(quiz_id):
        """Ranked rows for spreadsheet exports"""
        max_score = Question.query.filter_by(quiz_id=quiz_id).count()
        rows = []
        for rank, attempt in ResultsService.ranked_attempts(quiz_id):
            profile = attempt.profile
            submitted = utc_to_local(attempt.submitted_at)
            rows.append([
                rank,
                spreadsheet_text(profile.full_name),
                spreadsheet_text(profile.email),
                spreadsheet_text(profile.phone),
                attempt.total_score,
                max_score,
                attempt.time_taken,
                submitted.strftime('%Y-%m-%d %H:%M:%S') if submitted else '',
            ])
        return rows

    @staticmethod
    def export_csv(quiz_id):
        """Ranked results as CSV bytes"""
        buffer = StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_HEADERS)
        writer.writerows(ResultsService.export_rows(quiz_id))
        return BytesIO(buffer.getvalue().encode('utf-8-sig'))

    @staticmethod
    def export_xlsx(quiz_id, title):
        """Ranked results as an Excel workbook"""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Results"

        header_fill = PatternFill(start_color="1F2937", end_color="1F2937", fill_type="solid")
        header_font = Font(bold=True, color="FFFFFF", size=12)

        for col, header in enumerate(EXPORT_HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')

        for row in ResultsService.export_rows(quiz_id):
            ws.append(row)

        for col in ws.columns:
            width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
            ws.column_dimensions[col[0].column_letter].width = width + 2

        ws.freeze_panes = "A2"
        wb.properties.title = title

        buffer = BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer

    @staticmethod
    def attempt_details(attempt_id):
        """Completed attempt with profile and answers, or None"""
        attempt = Attempt.query.filter_by(id=attempt_id, is_completed=True).first()
        if not attempt:
            return None

        profile = db.session.get(Profile, attempt.user_id)
        answers = []
        for answer in attempt.answers:
            entry = answer.to_dict()
            entry['question'] = answer.question.question
            entry['correct_answer'] = answer.question.correct_answer
            entry['options'] = list(answer.question.options or [])
            answers.append(entry)

        return {
            'id': attempt.id,
            'total_score': attempt.total_score,
            'submitted_at': isoformat(attempt.submitted_at),
            'time_taken': attempt.time_taken,
            'quiz_id': attempt.quiz_id,
            'profiles': {
                'full_name': profile.full_name,
                'email': profile.email,
                'phone': profile.phone,
            },
            'answers': answers,
        }
