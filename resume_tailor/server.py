"""
Local HTTP server for the tailoring workflow.

Routes: dashboard/review pages, job list, CSV log, /generate, /status,
review data, compile, and compiled file download. Every response carries
open CORS headers so the browser extension panel can call it.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app, jsonify, request, send_file, send_from_directory

from resume_tailor.compiler import CompilerBridge
from resume_tailor.config import STATIC_DIR, Settings, load_settings
from resume_tailor.generator import EMAIL_DRAFT, DocumentGenerator, cover_letter_tex, resume_tex
from resume_tailor.log import get_logger
from resume_tailor.models import JobStatus
from resume_tailor.prompt import TemplateError
from resume_tailor.store import JobStore
from resume_tailor.tracker import read_applications

log = get_logger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

REQUIRED_FIELDS: tuple[str, ...] = ("company", "title", "description")


@dataclass
class Services:
    settings: Settings
    store: JobStore
    generator: DocumentGenerator
    compiler: CompilerBridge


def _services() -> Services:
    return current_app.extensions["resume_tailor"]


def _job_not_found():
    return jsonify({"error": "Job not found"}), 404


def _json_body():
    """Request JSON as a dict; {} when absent, None when it is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _read_or_empty(path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return ""


def create_app(
    settings: Settings | None = None,
    store: JobStore | None = None,
    generator: DocumentGenerator | None = None,
    compiler: CompilerBridge | None = None,
) -> Flask:
    if settings is None:
        settings = load_settings()
    if store is None:
        store = JobStore(settings.jobs_path).load()
    if generator is None:
        generator = DocumentGenerator(settings, store)
    if compiler is None:
        compiler = CompilerBridge(settings, store)

    app = Flask(__name__, static_folder=None)
    app.extensions["resume_tailor"] = Services(settings, store, generator, compiler)

    @app.before_request
    def _preflight():
        if request.method == "OPTIONS":
            return "", 204
        return None

    @app.after_request
    def _cors(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(404)
    @app.errorhandler(405)
    def _not_found(_exc):
        return jsonify({"error": "Not found"}), 404

    # ── Pages ────────────────────────────────────────────────────────────

    @app.get("/")
    def dashboard():
        return send_from_directory(STATIC_DIR, "dashboard.html", mimetype="text/html")

    @app.get("/review")
    def review_page():
        return send_from_directory(STATIC_DIR, "review.html", mimetype="text/html")

    # ── API ──────────────────────────────────────────────────────────────

    @app.get("/api/jobs")
    def list_jobs():
        return jsonify([job.summary() for job in _services().store.list()])

    @app.get("/api/csv")
    def list_applications():
        return jsonify(read_applications(_services().settings.csv_path))

    @app.post("/generate")
    def generate():
        data = _json_body()
        if data is None:
            return jsonify({"error": "Request body must be a JSON object"}), 400
        values = {k: str(data.get(k) or "").strip() for k in (*REQUIRED_FIELDS, "link")}
        if not all(values[k] for k in REQUIRED_FIELDS):
            return jsonify({"error": "Missing required fields: company, title, description"}), 400

        try:
            job = _services().generator.start(
                values["company"], values["title"], values["link"], values["description"]
            )
        except TemplateError as exc:
            log.error("Template error in /generate: %s", exc)
            return jsonify({"error": str(exc)}), 500
        except OSError as exc:
            log.error("Error in /generate: %s", exc)
            return jsonify({"error": str(exc)}), 500

        return jsonify({"jobId": job.job_id, "slug": job.slug, "status": job.status.value})

    @app.get("/status/<job_id>")
    def status(job_id: str):
        job = _services().store.find(job_id)
        if job is None:
            return _job_not_found()
        return jsonify(job.status_payload())

    @app.get("/api/review/<job_id>")
    def review_data(job_id: str):
        svc = _services()
        job = svc.store.find(job_id)
        if job is None:
            return _job_not_found()
        job_dir = svc.settings.job_dir(job.slug)
        return jsonify({
            "slug": job.slug,
            "resume": _read_or_empty(job_dir / resume_tex(job.slug)),
            "coverLetter": _read_or_empty(job_dir / cover_letter_tex(job.slug)),
            "email": _read_or_empty(job_dir / EMAIL_DRAFT),
            "hasPdfs": (job_dir / f"resume-{job.slug}.pdf").exists(),
        })

    @app.post("/api/compile/<job_id>")
    def compile_job(job_id: str):
        svc = _services()
        job = svc.store.find(job_id)
        if job is None:
            return _job_not_found()
        if job.status is JobStatus.PROCESSING:
            return jsonify({"success": False, "error": "Job is still generating", "log": ""}), 409

        data = _json_body()
        if data is None:
            return jsonify({"success": False, "error": "Request body must be a JSON object", "log": ""}), 400
        result = svc.compiler.compile(
            job_id,
            resume=data.get("resume"),
            cover_letter=data.get("coverLetter"),
            email=data.get("email"),
            open_pdfs=bool(data.get("openPdfs")),
        )
        return jsonify(result.to_dict())

    @app.get("/files/<job_id>/<kind>")
    def job_file(job_id: str, kind: str):
        svc = _services()
        job = svc.store.find(job_id)
        if job is None:
            return _job_not_found()

        if kind == "resume":
            filename, mimetype = f"resume-{job.slug}.pdf", "application/pdf"
        elif kind == "cover-letter":
            filename, mimetype = f"cover-letter-{job.slug}.pdf", "application/pdf"
        elif kind == "email":
            filename, mimetype = EMAIL_DRAFT, "text/markdown"
        else:
            return jsonify({"error": "Invalid file type"}), 400

        path = svc.settings.job_dir(job.slug) / filename
        if not path.exists():
            return jsonify({"error": f"File not found: {filename}"}), 404
        return send_file(path, mimetype=mimetype, download_name=filename, max_age=0)

    return app


def run(settings: Settings | None = None) -> None:
    if settings is None:
        settings = load_settings()
    app = create_app(settings)
    log.info("Resume tailor server running on %s", settings.base_url)
    log.info("Project root: %s", settings.project_root)
    app.run(host=settings.host, port=settings.port, threaded=True)
