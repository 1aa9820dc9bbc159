import json
import os
import sys

# ensure project root is on sys.path so `import app` works when running this script
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import create_app
from app.extensions import db
from app.models import Organization, ProcessTemplate, Recording, Transcript
from app.jobs.analyze import analyze_recording_job

# Seeds one organization/recording/transcript (and a template) if the database
# is empty, then runs the analysis job synchronously (without RQ).
# Without OPENAI_API_KEY every analyzer runs its heuristic fallback.

SAMPLE_TRANSCRIPT = (
    "Hello and welcome, thanks for joining. What challenges are you facing with the current setup? "
    "Let's talk about the price of the premium plan and I'll follow up next week with a proposal."
)

app = create_app()
with app.app_context():
    rec = Recording.query.order_by(Recording.id.desc()).first()
    if rec is None:
        org = Organization(name="Smoke Test Org")
        db.session.add(org)
        db.session.flush()
        db.session.add(ProcessTemplate(
            org_id=org.id,
            name="Discovery call",
            steps=[
                {"name": "Greeting", "keywords": ["hello", "welcome", "thanks for joining"]},
                {"name": "Discovery", "keywords": ["challenges", "goals", "current setup"]},
                {"name": "Pricing", "keywords": ["price", "plan", "budget"]},
                {"name": "Next steps", "keywords": ["follow up", "next week", "proposal"]},
                {"name": "Objection handling", "keywords": ["concern", "competitor", "risk"]},
            ],
        ))
        rec = Recording(org_id=org.id, title="Smoke test call")
        db.session.add(rec)
        db.session.flush()
        db.session.add(Transcript(org_id=org.id, recording_id=rec.id, text=SAMPLE_TRANSCRIPT))
        db.session.commit()
        print(f"Created Recording id={rec.id}")

    result_id = analyze_recording_job(rec.id)
    from app.models import AnalysisResult
    result = db.session.get(AnalysisResult, result_id)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    print("Recording status:", db.session.get(Recording, rec.id).status)
