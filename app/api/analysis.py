# app/api/analysis.py
from flask import Blueprint, jsonify, current_app

from app.errors import NotFound
from app.extensions import db, rq
from app.jobs.analyze import analyze_recording_job
from app.models import Recording
from app.services import repository

bp = Blueprint("analysis", __name__)


@bp.route("/api/recordings/<int:recording_id>/analysis", methods=["POST"])
def create_analysis(recording_id):
    recording = db.session.get(Recording, recording_id)
    if recording is None:
        raise NotFound("Recording not found")
    if recording.transcript is None:
        raise NotFound("Transcription not found for this recording")

    if current_app.config.get("ANALYSIS_ASYNC") and rq.queue is not None:
        job_timeout = int(current_app.config.get("ANALYSIS_TIMEOUT_SEC", 120)) + 30
        job = rq.enqueue(analyze_recording_job, recording_id, job_timeout=job_timeout)
        # the wrapper runs the job inline when redis went away meanwhile
        if hasattr(job, "get_id"):
            return jsonify({"recordingId": recording_id, "jobId": job.get_id()}), 202
    else:
        analyze_recording_job(recording_id)
    result = repository.get_analysis_result(recording_id)
    return jsonify(result.to_dict()), 201


@bp.route("/api/recordings/<int:recording_id>/analysis", methods=["GET"])
def get_analysis(recording_id):
    recording = db.session.get(Recording, recording_id)
    if recording is None:
        raise NotFound("Recording not found")
    result = repository.get_analysis_result(recording_id)
    if result is None:
        raise NotFound("Analysis not found for this recording")
    return jsonify(result.to_dict())
