# Overview: Pytest coverage for the Flask CLI command groups.

from datetime import timedelta

from posibel.models import Organization, SessionToken
from posibel.time_utils import utcnow


class TestOrgCommands:
    def test_register_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'orgs', 'register',
            '--name', 'Gamma Ltd',
            '--email', 'owner@gamma.com',
            '--password', 'Password123',
            '--first-name', 'Grace',
            '--last-name', 'Owner',
        ])
        assert 'PASS Created organization: Gamma Ltd' in result.output
        assert db_session.query(Organization).filter_by(name='Gamma Ltd').count() == 1

        listing = runner.invoke(args=['orgs', 'list'])
        assert 'Gamma Ltd' in listing.output

    def test_register_reports_validation_failure(self, app):
        result = app.test_cli_runner().invoke(args=[
            'orgs', 'register',
            '--name', 'Gamma Ltd',
            '--email', 'owner@gamma.com',
            '--password', 'weak',
            '--first-name', 'Grace',
            '--last-name', 'Owner',
        ])
        assert result.output.startswith('FAIL')


class TestUserCommands:
    def test_register_rejects_role_of_other_organization(self, app, org_a, admin_role_b):
        result = app.test_cli_runner().invoke(args=[
            'users', 'register',
            '--org-id', str(org_a.id),
            '--role-id', str(admin_role_b.id),
            '--email', 'x@acme.com',
            '--password', 'Password123',
            '--first-name', 'Xa',
            '--last-name', 'Vier',
        ])
        assert 'not found in organization' in result.output

    def test_list_filters_by_organization(self, app, org_a, user_a, user_b):
        result = app.test_cli_runner().invoke(args=['users', 'list', '--org-id', str(org_a.id)])
        assert 'user_a@acme.com' in result.output
        assert 'user_b@beta.com' not in result.output


class TestPermsCommand:
    def test_check_grant_and_denial(self, app, user_a, employee_a):
        runner = app.test_cli_runner()
        assert 'HAS policy' in runner.invoke(args=['perms', 'check', 'user_a@acme.com', 'sale.create']).output
        denied = runner.invoke(args=['perms', 'check', 'employee_a@acme.com', 'sale.create']).output
        assert 'DOES NOT HAVE' in denied


class TestSessionsCommand:
    def test_cleanup(self, app, services, db_session, user_a):
        services.auth.authenticate('user_a@acme.com', 'Password123')
        record = db_session.query(SessionToken).one()
        record.created_at = utcnow() - timedelta(days=60)
        record.is_revoked = True
        db_session.commit()

        result = app.test_cli_runner().invoke(args=['sessions', 'cleanup', '--older-than-days', '30'])
        assert 'Deleted 1 sessions' in result.output
