"""Audit-logged execution of the periodic maintenance jobs."""
import logging
from datetime import datetime
from mediatank.extensions.extension import db
from mediatank.models.job_run import JobRun, JobStatus

logger = logging.getLogger(__name__)


def _jobs():
    from mediatank.services.cleanup_service import sweep_expired_media
    from mediatank.services.reminder_service import send_download_reminders
    from mediatank.services.verification_service import cleanup_expired_codes

    return {
        'cleanup': sweep_expired_media,
        'send-reminders': send_download_reminders,
        'purge-codes': lambda: {'deleted': cleanup_expired_codes()},
    }


def job_names():
    return sorted(_jobs())


def run_job(job_name, triggered_by='timer', func=None):
    """
    Run a maintenance job and keep a JobRun record of it.

    Exceptions are recorded on the run and then re-raised to the caller.
    """
    func = func or _jobs()[job_name]

    run = JobRun(job_name=job_name, triggered_by=triggered_by, status=JobStatus.running)
    db.session.add(run)
    db.session.commit()
    run_id = run.id
    logger.info(f"Job {job_name} started (run {run_id}, triggered by {triggered_by})")

    try:
        summary = func()
    except Exception as e:
        db.session.rollback()
        run = db.session.get(JobRun, run_id)
        run.status = JobStatus.failed
        run.error_message = str(e)
        run.finished_at = datetime.utcnow()
        db.session.commit()
        logger.error(f"Job {job_name} failed (run {run_id}): {str(e)}")
        raise

    run = db.session.get(JobRun, run_id)
    run.status = JobStatus.succeeded
    run.summary = summary
    run.finished_at = datetime.utcnow()
    db.session.commit()
    logger.info(f"Job {job_name} finished (run {run_id})")
    return summary


def recent_runs(job_name=None, limit=20):
    query = JobRun.query
    if job_name:
        query = query.filter_by(job_name=job_name)
    return query.order_by(JobRun.started_at.desc(), JobRun.id.desc()).limit(limit).all()
