from flask import Blueprint, jsonify, request
from http import HTTPStatus
from mediatank.middleware.admin_auth import admin_required
from mediatank.services.job_runner import recent_runs, job_names
from mediatank.services.lifecycle import sync_sold_status, sync_status
from mediatank.utils.errors import handle_errors

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

MAX_JOB_RUNS = 100

@admin_bp.route('/sync-sold', methods=['GET'])
@admin_required
@handle_errors
def get_sync_status(current_user):
    """Completed purchases whose media has not been marked sold"""
    return jsonify(sync_status()), HTTPStatus.OK

@admin_bp.route('/sync-sold', methods=['POST'])
@admin_required
@handle_errors
def run_sync_sold(current_user):
    summary = sync_sold_status()
    return jsonify({
        'success': True,
        'totalPurchases': summary['total_purchases'],
        'results': summary['results']
    }), HTTPStatus.OK

@admin_bp.route('/job-runs', methods=['GET'])
@admin_required
@handle_errors
def get_job_runs(current_user):
    job_name = request.args.get('job')
    if job_name and job_name not in job_names():
        return jsonify({'error': f'Unknown job: {job_name}'}), HTTPStatus.BAD_REQUEST

    limit = min(request.args.get('limit', 20, type=int), MAX_JOB_RUNS)
    runs = recent_runs(job_name, limit)
    return jsonify({'job_runs': [run.to_dict() for run in runs]}), HTTPStatus.OK
