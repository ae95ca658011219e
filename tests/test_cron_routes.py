from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from mediatank.models.job_run import JobRun, JobStatus
from mediatank.models.media import Media
from mediatank.models.user import UserRole
from mediatank.services.job_runner import run_job


@pytest.mark.parametrize('path', ['/api/cron/cleanup', '/api/cron/send-reminders'])
def test_cron_endpoints_reject_missing_or_wrong_secret(client, path):
    assert client.get(path).status_code == 401
    assert client.post(path, headers={'X-Cron-Secret': 'nope'}).status_code == 401
    assert client.post(path, headers={'Authorization': 'Bearer nope'}).status_code == 401
    assert JobRun.query.count() == 0


@pytest.mark.parametrize('headers', [
    {'X-Cron-Secret': 'café'},
    {'Authorization': 'Bearer café'},
])
def test_cron_endpoints_reject_non_ascii_secret(client, headers):
    response = client.post('/api/cron/cleanup', headers=headers)

    assert response.status_code == 401
    assert response.json == {'error': 'Unauthorized'}
    assert JobRun.query.count() == 0


def test_cron_endpoints_closed_without_configured_secret(app, client):
    app.config['CRON_SECRET'] = None

    assert client.get('/api/cron/cleanup', headers={'X-Cron-Secret': 'anything'}).status_code == 401


def test_cleanup_endpoint_runs_sweep_and_records_run(app, client, cron_headers, make_user, make_sold):
    buyer = make_user()
    make_sold(buyer, 'Expired', -1, now=datetime.utcnow())

    response = client.post('/api/cron/cleanup', headers=cron_headers)

    assert response.status_code == 200
    assert response.json == {'deleted': 1, 'total': 1}
    assert Media.query.count() == 0

    run = JobRun.query.one()
    assert run.job_name == 'cleanup'
    assert run.status == JobStatus.succeeded
    assert run.triggered_by == 'timer'
    assert run.summary == {'deleted': 1, 'total': 1}


def test_send_reminders_endpoint_accepts_bearer_secret(app, client, make_user, make_sold, mailer):
    buyer = make_user()
    make_sold(buyer, 'Soon Gone', 3, now=datetime.utcnow() - timedelta(minutes=1))
    headers = {'Authorization': f"Bearer {app.config['CRON_SECRET']}"}

    response = client.get('/api/cron/send-reminders', headers=headers)

    assert response.status_code == 200
    assert response.json['remindersSent'] == 1
    assert response.json['totalBuyers'] == 1
    assert response.json['results'][0]['status'] == 'sent'
    assert len(mailer.sent) == 1


def test_failed_job_is_recorded_and_reported(client, cron_headers):
    with patch('mediatank.services.cleanup_service.find_expired_media', side_effect=RuntimeError('db down')):
        response = client.post('/api/cron/cleanup', headers=cron_headers)

    assert response.status_code == 500
    assert response.json['details'] == 'db down'

    run = JobRun.query.one()
    assert run.status == JobStatus.failed
    assert run.error_message == 'db down'
    assert run.finished_at is not None


def test_run_job_with_custom_function(app):
    assert run_job('purge-codes', triggered_by='cli', func=lambda: {'deleted': 0}) == {'deleted': 0}
    assert JobRun.query.one().triggered_by == 'cli'


def test_jobs_cli_runs_cleanup(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['jobs', 'cleanup'])

    assert result.exit_code == 0
    assert '"deleted": 0' in result.output
    assert JobRun.query.one().triggered_by == 'cli'


def test_admin_job_runs_listing(client, make_user, auth_headers, cron_headers):
    admin = make_user(role=UserRole.ADMIN)
    viewer = make_user()
    client.post('/api/cron/cleanup', headers=cron_headers)

    assert client.get('/api/admin/job-runs', headers=auth_headers(viewer)).status_code == 403

    response = client.get('/api/admin/job-runs?job=cleanup', headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json['job_runs'][0]['job_name'] == 'cleanup'

    assert client.get('/api/admin/job-runs?job=bogus', headers=auth_headers(admin)).status_code == 400
