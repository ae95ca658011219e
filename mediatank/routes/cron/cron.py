from flask import Blueprint, jsonify
from http import HTTPStatus
from mediatank.middleware.cron_auth import cron_secret_required
from mediatank.services.job_runner import run_job
import logging

logger = logging.getLogger(__name__)

cron_bp = Blueprint('cron', __name__, url_prefix='/api/cron')

def _run(job_name):
    try:
        return run_job(job_name, triggered_by='timer'), None
    except Exception as e:
        return None, (jsonify({
            'error': f'Job {job_name} failed',
            'details': str(e)
        }), HTTPStatus.INTERNAL_SERVER_ERROR)

@cron_bp.route('/cleanup', methods=['GET', 'POST'])
@cron_secret_required
def cleanup():
    """Delete sold media whose retention period has run out"""
    summary, error_response = _run('cleanup')
    if error_response:
        return error_response

    return jsonify(summary), HTTPStatus.OK

@cron_bp.route('/send-reminders', methods=['GET', 'POST'])
@cron_secret_required
def send_reminders():
    """Remind buyers to download purchases that are about to expire"""
    summary, error_response = _run('send-reminders')
    if error_response:
        return error_response

    return jsonify({
        'remindersSent': summary['reminders_sent'],
        'totalBuyers': summary['total_buyers'],
        'results': summary['results']
    }), HTTPStatus.OK
