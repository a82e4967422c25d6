from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from config import Config
from models import db, User, AssessmentResult, utcnow
from scoring.bank import questions_payload
from scoring.engine import Engine, AssessmentValidationError, UnknownCategoryError
from assessments import AssessmentConflictError, parse_responses, submit_assessment, find_divergent_users
from security import (
    MIN_PASSWORD_LENGTH, create_token, current_user, hash_password, normalize_email,
    valid_email, verify_password,
)
from reports import render_result_pdf, render_results_zip, report_filename, bulk_filename
import io
import click
from datetime import timedelta
from sqlalchemy import select, func, or_, desc
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException


def create_app(config_object=Config, engine=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config['LOG_LEVEL'])

    CORS(app, resources={r"/*": {"origins": app.config['CORS_ORIGINS'].split(',')}})

    db.init_app(app)
    engine = engine or Engine()

    # Simple per-IP rate limiter in production
    rate_store = {}
    app.extensions["rate_store"] = rate_store

    @app.before_request
    def _rate_limit():
        if app.config['ENV'] != 'production':
            return None
        from time import time
        ip = request.remote_addr or 'unknown'
        now = int(time())
        window = 60
        limit = app.config['RATE_LIMIT_PER_MINUTE']
        # forget clients with nothing left inside the window
        for key, stamps in list(rate_store.items()):
            if not any(now - t < window for t in stamps):
                del rate_store[key]
        bucket = [t for t in rate_store.get(ip, []) if now - t < window]
        if len(bucket) >= limit:
            return jsonify({"error": "rate_limited", "retry_after": window}), 429
        bucket.append(now)
        rate_store[ip] = bucket

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def _unhandled(e):
        db.session.rollback()
        app.logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "internal server error"}), 500

    # --- Helpers -----------------------------------------------------------
    def admin_user():
        """Returns (user, None) for admins, else (None, error response)."""
        user = current_user()
        if not user:
            return None, (jsonify({"error": "unauthorized"}), 401)
        if user.role != 'admin':
            return None, (jsonify({"error": "forbidden"}), 403)
        return user, None

    def json_body():
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    def pdf_response(result):
        return send_file(
            io.BytesIO(render_result_pdf(result)),
            mimetype='application/pdf',
            as_attachment=True,
            download_name=report_filename(result),
        )

    @app.get("/health")
    @app.get("/api/health")
    def health():
        return {"status": "ok", "timestamp": utcnow().isoformat() + "Z"}

    # --- Auth --------------------------------------------------------------
    @app.post('/api/auth/register')
    def register():
        data = json_body()
        if not all(isinstance(data.get(k, ""), str) for k in ("name", "email", "password")):
            return jsonify({"error": "name, email and password must be strings"}), 400
        name = (data.get('name') or '').strip()
        email = normalize_email(data.get('email'))
        password = data.get('password') or ''
        if not name or not email or not password:
            return jsonify({"error": "All fields are required"}), 400
        if len(password) < MIN_PASSWORD_LENGTH:
            return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400
        if not valid_email(email):
            return jsonify({"error": "Invalid email address"}), 400
        if User.query.filter_by(email=email).first():
            return jsonify({"error": "User already exists with this email"}), 400
        user = User(name=name, email=email, password_hash=hash_password(password), role='student')
        db.session.add(user)
        db.session.commit()
        app.logger.info("registered student %s", user.id)
        return {"message": "Registration successful", "token": create_token(user.id), "user": user.to_dict()}, 201

    @app.post('/api/auth/login')
    def login():
        data = json_body()
        if not all(isinstance(data.get(k, ""), str) for k in ("email", "password")):
            return jsonify({"error": "email and password must be strings"}), 400
        email = normalize_email(data.get('email'))
        password = data.get('password') or ''
        if not email or not password:
            return jsonify({"error": "Email and password are required"}), 400
        user = User.query.filter_by(email=email).first()
        if not user or not verify_password(user.password_hash, password):
            app.logger.warning("failed login for %s", email)
            return jsonify({"error": "Invalid credentials"}), 401
        return {"message": "Login successful", "token": create_token(user.id), "user": user.to_dict()}

    @app.get('/api/auth/profile')
    def profile():
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        return {"user": user.to_dict()}

    @app.get('/api/auth/verify')
    def verify():
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        return {"valid": True, "user": user.to_dict()}

    # --- Assessment --------------------------------------------------------
    @app.get('/api/assessment/questions')
    def questions():
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        return {"questions": questions_payload(engine.questions)}

    @app.post('/api/assessment/submit')
    def submit():
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        data = json_body()
        try:
            outcome = submit_assessment(user, parse_responses(data.get('responses')), engine)
        except AssessmentValidationError as e:
            return jsonify({"error": str(e)}), 400
        except AssessmentConflictError as e:
            return jsonify({"error": str(e)}), 409
        except (SQLAlchemyError, UnknownCategoryError):
            app.logger.exception("assessment submission failed for user %s", user.id)
            return jsonify({"error": "assessment could not be completed"}), 500
        return {
            "message": "Assessment completed successfully!",
            "result": outcome.result.to_dict(),
            "experienceGained": outcome.experience_gained,
            "newLevel": outcome.new_level,
            "totalExperience": outcome.total_experience,
        }

    @app.get('/api/assessment/result/<int:rid>')
    def result_detail(rid):
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        result = db.session.get(AssessmentResult, rid)
        if not result:
            return jsonify({"error": "Assessment result not found"}), 404
        if result.user_id != user.id and user.role != 'admin':
            return jsonify({"error": "Access denied"}), 403
        return {"result": result.to_dict()}

    @app.get('/api/assessment/my-result')
    def my_result():
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        result = (AssessmentResult.query.filter_by(user_id=user.id)
                  .order_by(AssessmentResult.created_at.desc(), AssessmentResult.id.desc()).first())
        if not result:
            return jsonify({"error": "No assessment completed yet"}), 404
        return {"result": result.to_dict()}

    @app.get('/api/assessment/download-report/<int:rid>')
    def download_report(rid):
        user = current_user()
        if not user:
            return jsonify({"error": "unauthorized"}), 401
        result = db.session.get(AssessmentResult, rid)
        if not result:
            return jsonify({"error": "Assessment result not found"}), 404
        if result.user_id != user.id and user.role != 'admin':
            return jsonify({"error": "Access denied"}), 403
        return pdf_response(result)

    # --- Admin -------------------------------------------------------------
    @app.get('/api/admin/dashboard')
    def admin_dashboard():
        _, err = admin_user()
        if err:
            return err
        total = User.query.filter_by(role='student').count()
        completed = User.query.filter_by(role='student', assessment_completed=True).count()
        recent = (AssessmentResult.query
                  .order_by(AssessmentResult.created_at.desc(), AssessmentResult.id.desc()).limit(5).all())
        return {
            "statistics": {
                "totalStudents": total,
                "completedAssessments": completed,
                "pendingAssessments": total - completed,
                "completionRate": round(completed / total * 100) if total else 0,
            },
            "recentActivity": [r.to_dict() for r in recent],
        }

    @app.get('/api/admin/students')
    def admin_students():
        _, err = admin_user()
        if err:
            return err
        page = max(request.args.get('page', 1, type=int), 1)
        limit = min(max(request.args.get('limit', 10, type=int), 1), 100)
        status = request.args.get('status', 'all')
        search = (request.args.get('search') or '').strip()
        q = select(User).where(User.role == 'student')
        if status == 'completed':
            q = q.where(User.assessment_completed.is_(True))
        elif status == 'pending':
            q = q.where(User.assessment_completed.is_(False))
        if search:
            like = f"%{search}%"
            q = q.where(or_(User.name.ilike(like), User.email.ilike(like)))
        q = q.order_by(User.created_at.desc(), User.id.desc())
        pagination = db.paginate(q, page=page, per_page=limit, error_out=False)
        return {
            "students": [u.to_dict(include_result=True) for u in pagination.items],
            "pagination": {
                "currentPage": page,
                "totalPages": pagination.pages,
                "totalStudents": pagination.total,
                "hasNext": pagination.has_next,
                "hasPrev": page > 1,
            },
        }

    @app.get('/api/admin/students/<int:sid>')
    def admin_student_detail(sid):
        _, err = admin_user()
        if err:
            return err
        student = User.query.filter_by(id=sid, role='student').first()
        if not student:
            return jsonify({"error": "Student not found"}), 404
        return {"student": student.to_dict(include_result=True)}

    @app.delete('/api/admin/students/<int:sid>')
    def admin_student_delete(sid):
        admin, err = admin_user()
        if err:
            return err
        student = User.query.filter_by(id=sid, role='student').first()
        if not student:
            return jsonify({"error": "Student not found"}), 404
        # results first; they reference the user
        try:
            AssessmentResult.query.filter_by(user_id=student.id).delete()
            db.session.delete(student)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception("failed to delete student %s", sid)
            return jsonify({"error": "Failed to delete student"}), 500
        app.logger.info("admin %s deleted student %s", admin.id, sid)
        return {"message": "Student deleted successfully"}

    @app.get('/api/admin/students/<int:sid>/report')
    def admin_student_report(sid):
        _, err = admin_user()
        if err:
            return err
        student = User.query.filter_by(id=sid, role='student').first()
        if not student:
            return jsonify({"error": "Student not found"}), 404
        result = db.session.get(AssessmentResult, student.assessment_result_id) if student.assessment_result_id else None
        if not result:
            return jsonify({"error": "Student has not completed assessment"}), 404
        return pdf_response(result)

    @app.get('/api/admin/reports/bulk')
    def admin_bulk_reports():
        _, err = admin_user()
        if err:
            return err
        ids = db.session.scalars(
            select(User.assessment_result_id)
            .where(User.role == 'student', User.assessment_result_id.is_not(None))
        ).all()
        if not ids:
            return jsonify({"error": "No completed assessments found"}), 404
        results = (AssessmentResult.query.filter(AssessmentResult.id.in_(ids))
                   .order_by(AssessmentResult.id.asc()).all())
        if not results:
            return jsonify({"error": "No completed assessments found"}), 404
        app.logger.info("bulk export of %d reports", len(results))
        return send_file(
            io.BytesIO(render_results_zip(results)),
            mimetype='application/zip',
            as_attachment=True,
            download_name=bulk_filename(),
        )

    @app.get('/api/admin/analytics/assessments')
    def admin_analytics():
        _, err = admin_user()
        if err:
            return err
        count = func.count(AssessmentResult.id).label('count')
        distribution = db.session.execute(
            select(AssessmentResult.dominant_type, count)
            .group_by(AssessmentResult.dominant_type)
            .order_by(desc('count'), AssessmentResult.dominant_type)
        ).all()
        day = func.date(AssessmentResult.created_at)
        trend = db.session.execute(
            select(day.label('day'), func.count(AssessmentResult.id))
            .where(AssessmentResult.created_at >= utcnow() - timedelta(days=30))
            .group_by(day)
            .order_by(day)
        ).all()
        return {
            "careerTypeDistribution": [{"_id": t, "count": int(c)} for t, c in distribution],
            "completionTrend": [{"_id": str(d), "count": int(c)} for d, c in trend],
            "totalAssessments": AssessmentResult.query.count(),
        }

    @app.get('/api/admin/integrity')
    def admin_integrity():
        _, err = admin_user()
        if err:
            return err
        findings = find_divergent_users()
        return {"ok": not findings, "findings": findings}

    # --- CLI ---------------------------------------------------------------
    @app.cli.command('init-db')
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database initialized")

    @app.cli.command('seed-users')
    def seed_users():
        """Create the admin and demo student accounts if missing."""
        seeds = [
            ("Platform Administrator", app.config['ADMIN_EMAIL'], app.config['ADMIN_PASSWORD'], 'admin'),
            ("Demo Student", app.config['DEMO_EMAIL'], app.config['DEMO_PASSWORD'], 'student'),
        ]
        for name, email, password, role in seeds:
            email = normalize_email(email)
            if User.query.filter_by(email=email).first():
                click.echo(f"{role} {email} already exists")
                continue
            db.session.add(User(name=name, email=email, password_hash=hash_password(password), role=role))
            db.session.commit()
            click.echo(f"created {role} {email}")

    @app.cli.command('check-integrity')
    def check_integrity():
        """Report users whose completion flag disagrees with stored results."""
        findings = find_divergent_users()
        if not findings:
            click.echo("No divergent users")
        for f in findings:
            click.echo(f"user {f['userId']} <{f['email']}>: {f['issue']}")

    return app

if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(host='0.0.0.0', port=5000, debug=True)
