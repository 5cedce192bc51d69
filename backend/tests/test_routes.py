# Overview: Pytest coverage for the HTTP surface; auth, permissions and tenant isolation end to end.

"""
API Route Tests

SECURITY TESTS: Exercise the full request pipeline (token -> identity ->
policy -> scoped repository) over HTTP.

Status codes:
- 401 no or invalid token
- 403 valid token, permission not granted
- 404 read of a missing or foreign row
- 409 write to a missing or foreign row, cross-tenant body, malformed identity
"""

from conftest import PASSWORD, auth_headers, get_auth_token


class TestAuthentication:
    def test_missing_token_is_401(self, client, shops):
        response = client.get('/api/shops')
        assert response.status_code == 401
        assert response.json['error'] == 'Authentication required'

    def test_unknown_token_is_401(self, client, shops):
        response = client.get('/api/shops', headers=auth_headers('f' * 64))
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid or expired token'

    def test_login_wrong_password_is_401(self, client, user_a):
        response = client.post('/api/auth/login', json={'email': 'user_a@acme.com', 'password': 'Wrong12345'})
        assert response.status_code == 401

    def test_login_missing_fields_is_400(self, client):
        response = client.post('/api/auth/login', json={'email': 'user_a@acme.com'})
        assert response.status_code == 400

    def test_login_is_case_insensitive_on_email(self, client, user_a, org_a):
        response = client.post('/api/auth/login', json={'email': 'USER_A@Acme.com', 'password': PASSWORD})
        assert response.status_code == 200
        assert response.json['organization_id'] == org_a.id

    def test_me_returns_resolved_identity(self, client, headers_a, user_a, org_a):
        response = client.get('/api/auth/me', headers=headers_a)
        assert response.status_code == 200
        assert response.json['user_id'] == user_a.id
        assert response.json['organization_id'] == org_a.id
        assert response.json['permissions'] == ['*.*']

    def test_token_of_soft_deleted_user_is_401(self, client, headers_a, repos, db_session, identity_a, user_a):
        repos.users.soft_delete_one(id=user_a.id, identity=identity_a)
        db_session.commit()

        response = client.get('/api/shops', headers=headers_a)
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid or expired token'

    def test_logout_revokes_token(self, client, headers_a):
        assert client.post('/api/auth/logout', headers=headers_a).status_code == 200
        assert client.get('/api/auth/me', headers=headers_a).status_code == 401


class TestPermissions:
    def test_employee_can_read_shops(self, client, headers_employee_a, shops):
        response = client.get('/api/shops', headers=headers_employee_a)
        assert response.status_code == 200
        assert response.json['count'] == 2

    def test_employee_cannot_create_shops(self, client, headers_employee_a, shops):
        response = client.post('/api/shops', json={'name': 'Nope'}, headers=headers_employee_a)
        assert response.status_code == 403
        assert response.json['required_permission'] == 'shop.create'

    def test_group_wildcard_grants_every_action(self, client, headers_employee_a, product_group_a):
        response = client.post(
            '/api/products',
            json={'name': 'Tea', 'price': '2.5', 'product_group_id': product_group_a.id},
            headers=headers_employee_a,
        )
        assert response.status_code == 201
        assert response.json['price'] == '2.500'

    def test_employee_cannot_touch_sales(self, client, headers_employee_a):
        assert client.get('/api/sales', headers=headers_employee_a).status_code == 403

    def test_role_edit_applies_without_new_login(self, client, headers_employee_a, employee_role_a, headers_a):
        response = client.patch(
            f'/api/roles/{employee_role_a.id}',
            json={'policies': ['sale.getMany']},
            headers=headers_a,
        )
        assert response.status_code == 200

        assert client.get('/api/sales', headers=headers_employee_a).status_code == 200
        assert client.get('/api/shops', headers=headers_employee_a).status_code == 403

    def test_deleted_role_is_malformed_token(self, client, headers_employee_a, employee_role_a, headers_a):
        response = client.delete(f'/api/roles/{employee_role_a.id}?soft=true', headers=headers_a)
        assert response.status_code == 200

        response = client.get('/api/shops', headers=headers_employee_a)
        assert response.status_code == 409
        assert response.json['error'] == 'Token not valid'


class TestTenantIsolation:
    def test_lists_are_scoped(self, client, headers_a, headers_b, shops):
        response_a = client.get('/api/shops?order_by=name', headers=headers_a)
        response_b = client.get('/api/shops', headers=headers_b)

        assert [item['name'] for item in response_a.json['items']] == ['Shop A1', 'Shop A2']
        assert response_a.json['count'] == 2
        assert [item['name'] for item in response_b.json['items']] == ['Shop B1']
        assert response_b.json['count'] == 1

    def test_foreign_and_missing_reads_are_404(self, client, headers_a, shop_b):
        foreign = client.get(f'/api/shops/{shop_b.id}', headers=headers_a)
        missing = client.get('/api/shops/99999', headers=headers_a)
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json == missing.json

    def test_foreign_and_missing_updates_are_409(self, client, headers_a, shop_b):
        foreign = client.patch(f'/api/shops/{shop_b.id}', json={'name': 'Hijacked'}, headers=headers_a)
        missing = client.patch('/api/shops/99999', json={'name': 'Ghost'}, headers=headers_a)
        assert foreign.status_code == missing.status_code == 409
        assert foreign.json == missing.json == {'error': 'Could not update shop'}

    def test_foreign_delete_is_409_and_row_survives(self, client, headers_a, headers_b, shop_b):
        assert client.delete(f'/api/shops/{shop_b.id}', headers=headers_a).status_code == 409
        assert client.get(f'/api/shops/{shop_b.id}', headers=headers_b).status_code == 200

    def test_body_pointing_at_other_tenant_is_409(self, client, headers_a, org_b):
        response = client.post('/api/shops', json={'name': 'Planted', 'organization_id': org_b.id}, headers=headers_a)
        assert response.status_code == 409

    def test_reference_to_foreign_row_is_409(self, client, headers_a, product_group_b):
        response = client.post(
            '/api/products',
            json={'name': 'Sneaky', 'price': '1', 'product_group_id': product_group_b.id},
            headers=headers_a,
        )
        assert response.status_code == 409
        assert response.json['error'] == 'Referenced product group not found'

    def test_same_barcode_in_two_tenants(self, client, headers_a, headers_b, product_a, product_b):
        response_a = client.get('/api/products?barcode=1000', headers=headers_a)
        response_b = client.get('/api/products?barcode=1000', headers=headers_b)
        assert [item['price'] for item in response_a.json['items']] == ['10.000']
        assert [item['price'] for item in response_b.json['items']] == ['20.000']

    def test_organization_lookup_is_scoped(self, client, headers_a, org_a, org_b):
        assert client.get(f'/api/organizations/{org_a.id}', headers=headers_a).status_code == 200
        assert client.get(f'/api/organizations/{org_b.id}', headers=headers_a).status_code == 404

    def test_user_listing_hides_passwords_and_other_tenants(self, client, headers_a, user_b):
        response = client.get('/api/users', headers=headers_a)
        assert response.status_code == 200
        assert [item['email'] for item in response.json['items']] == ['user_a@acme.com']
        assert 'password' not in response.json['items'][0]


class TestResourceQueries:
    def test_limit_and_offset_keep_total_count(self, client, headers_a, shops):
        response = client.get('/api/shops?order_by=name&direction=desc&limit=1&offset=1', headers=headers_a)
        assert response.status_code == 200
        assert [item['name'] for item in response.json['items']] == ['Shop A1']
        assert response.json['count'] == 2

    def test_filter_by_field(self, client, headers_a, shops):
        response = client.get('/api/shops?name=Shop%20A2', headers=headers_a)
        assert response.json['count'] == 1

    def test_filter_with_list_of_ids(self, client, headers_a, shops):
        shop_a1, shop_a2, shop_b1 = shops
        response = client.get(f'/api/shops?id={shop_a2.id},{shop_b1.id}', headers=headers_a)
        assert [item['id'] for item in response.json['items']] == [shop_a2.id]

    def test_join_embeds_relation(self, client, headers_a, shop_a):
        response = client.get(f'/api/shops/{shop_a.id}?join=organization', headers=headers_a)
        assert response.status_code == 200
        assert response.json['organization']['id'] == shop_a.organization_id

    def test_unknown_filter_is_400(self, client, headers_a):
        assert client.get('/api/shops?colour=red', headers=headers_a).status_code == 400

    def test_repeated_join_is_applied_once(self, client, headers_a, shop_a):
        response = client.get(f'/api/shops/{shop_a.id}?join=sales,sales', headers=headers_a)
        assert response.status_code == 200
        assert response.json['sales'] == []

    def test_unknown_join_is_400(self, client, headers_a):
        assert client.get('/api/shops?join=users', headers=headers_a).status_code == 400

    def test_bad_direction_is_400(self, client, headers_a):
        assert client.get('/api/shops?order_by=name&direction=up', headers=headers_a).status_code == 400

    def test_create_update_and_soft_delete(self, client, headers_a, org_a):
        created = client.post('/api/shops', json={'name': 'Pop-up'}, headers=headers_a)
        assert created.status_code == 201
        assert created.json['organization_id'] == org_a.id
        shop_id = created.json['id']

        updated = client.patch(f'/api/shops/{shop_id}', json={'name': 'Flagship'}, headers=headers_a)
        assert updated.status_code == 200
        assert updated.json['name'] == 'Flagship'

        deleted = client.delete(f'/api/shops/{shop_id}?soft=true', headers=headers_a)
        assert deleted.status_code == 200
        assert deleted.json['deleted_at'] is not None
        assert client.get(f'/api/shops/{shop_id}', headers=headers_a).status_code == 404

    def test_hard_delete_returns_entity(self, client, headers_a, shop_a):
        response = client.delete(f'/api/shops/{shop_a.id}', headers=headers_a)
        assert response.status_code == 200
        assert response.json['name'] == 'Shop A1'
        assert client.get(f'/api/shops/{shop_a.id}', headers=headers_a).status_code == 404

    def test_invalid_payload_is_400(self, client, headers_a):
        response = client.post('/api/shops', json={'name': 'X', 'id': 5}, headers=headers_a)
        assert response.status_code == 400

    def test_price_past_scale_is_400(self, client, headers_a, product_group_a):
        response = client.post(
            '/api/products',
            json={'name': 'Tea', 'price': '19.9955', 'product_group_id': product_group_a.id},
            headers=headers_a,
        )
        assert response.status_code == 400
        assert response.json['error'] == 'price allows at most 3 decimal places'


class TestRegistrationRoutes:
    PAYLOAD = {
        'organizationName': 'Gamma Ltd',
        'email': 'owner@gamma.com',
        'password': 'Password123',
        'confirmationPassword': 'Password123',
        'firstName': 'Grace',
        'lastName': 'Owner',
    }

    def test_register_organization_then_log_in(self, client):
        response = client.post('/api/organizations/register', json=self.PAYLOAD)
        assert response.status_code == 201
        assert response.json['name'] == 'Gamma Ltd'
        assert response.json['users'][0]['email'] == 'owner@gamma.com'

        token = get_auth_token(client, 'owner@gamma.com', 'Password123')
        assert token is not None
        me = client.get('/api/auth/me', headers=auth_headers(token))
        assert me.json['organization_id'] == response.json['id']

    def test_duplicate_email_is_409(self, client, user_a):
        response = client.post('/api/organizations/register', json={**self.PAYLOAD, 'email': 'user_a@acme.com'})
        assert response.status_code == 409
        assert response.json['error'] == 'Email already exists'

    def test_password_mismatch_is_400(self, client):
        response = client.post(
            '/api/organizations/register', json={**self.PAYLOAD, 'confirmationPassword': 'Password999'}
        )
        assert response.status_code == 400
        assert response.json['error'] == 'Passwords do not match'

    def test_create_user_lands_in_callers_organization(self, client, headers_a, org_a, org_b, employee_role_a):
        response = client.post('/api/users', json={
            'email': 'cashier@acme.com',
            'password': 'Password123',
            'confirmationPassword': 'Password123',
            'firstName': 'Carl',
            'lastName': 'Cashier',
            'roleId': employee_role_a.id,
            'organizationId': org_b.id,
        }, headers=headers_a)
        assert response.status_code == 201
        assert response.json['organization_id'] == org_a.id
        assert 'password' not in response.json

    def test_create_user_needs_permission(self, client, headers_employee_a, employee_role_a):
        response = client.post('/api/users', json={
            'email': 'cashier@acme.com',
            'password': 'Password123',
            'confirmationPassword': 'Password123',
            'firstName': 'Carl',
            'lastName': 'Cashier',
            'roleId': employee_role_a.id,
        }, headers=headers_employee_a)
        assert response.status_code == 403
