from mediatank.extensions.extension import db
import enum
from datetime import datetime

class JobStatus(enum.Enum):
    running = 'running'
    succeeded = 'succeeded'
    failed = 'failed'

class JobRun(db.Model):
    __tablename__ = 'job_runs'

    id = db.Column(db.Integer, primary_key=True)
    job_name = db.Column(db.String(50), nullable=False, index=True)
    triggered_by = db.Column(db.String(50), nullable=False, default='timer')
    status = db.Column(db.Enum(JobStatus), nullable=False, default=JobStatus.running)
    summary = db.Column(db.JSON, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    finished_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'job_name': self.job_name,
            'triggered_by': self.triggered_by,
            'status': self.status.name,
            'summary': self.summary,
            'error': self.error_message,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None
        }
