"""
Cashier-bar assignment tests.
"""

import pytest

from cherry_pos.extensions import db
from cherry_pos.models import CashierBarAssignment
from cherry_pos.services import assignment_service, transfer_service
from cherry_pos.services.assignment_service import AssignmentError


@pytest.fixture
def bars(app):
    return transfer_service.create_bar('Main Bar'), transfer_service.create_bar('Pool Bar')


def active_rows(**assignee):
    return db.session.query(CashierBarAssignment).filter_by(is_active=True, **assignee).all()


class TestAssignService:
    def test_reassignment_leaves_single_active_row(self, bars, cashier_staff):
        main, pool = bars
        assignment_service.assign(main.id, staff_user_id=cashier_staff.id)
        assignment_service.assign(pool.id, staff_user_id=cashier_staff.id)

        rows = active_rows(staff_user_id=cashier_staff.id)
        assert [r.bar_id for r in rows] == [pool.id]
        assert assignment_service.get_active_assignment(staff_user_id=cashier_staff.id).bar_id == pool.id

    def test_reassigning_back_reactivates_existing_row(self, bars, cashier_staff):
        main, pool = bars
        first = assignment_service.assign(main.id, staff_user_id=cashier_staff.id)
        assignment_service.assign(pool.id, staff_user_id=cashier_staff.id)
        again = assignment_service.assign(main.id, staff_user_id=cashier_staff.id)

        assert again.id == first.id
        assert db.session.query(CashierBarAssignment).filter_by(staff_user_id=cashier_staff.id).count() == 2
        assert [r.bar_id for r in active_rows(staff_user_id=cashier_staff.id)] == [main.id]

    def test_admin_and_staff_assignees_are_independent(self, bars, manager, cashier_staff):
        main, pool = bars
        assignment_service.assign(main.id, user_id=manager.id)
        assignment_service.assign(pool.id, staff_user_id=cashier_staff.id)
        assert assignment_service.get_active_assignment(user_id=manager.id).bar_id == main.id
        assert assignment_service.get_active_assignment(staff_user_id=cashier_staff.id).bar_id == pool.id

    def test_unassign(self, bars, cashier_staff):
        main, _pool = bars
        assignment_service.assign(main.id, staff_user_id=cashier_staff.id)
        assert assignment_service.unassign(staff_user_id=cashier_staff.id) == 1
        assert assignment_service.get_active_assignment(staff_user_id=cashier_staff.id) is None

    def test_exactly_one_assignee(self, bars, manager, cashier_staff):
        main, _pool = bars
        with pytest.raises(AssignmentError):
            assignment_service.assign(main.id)
        with pytest.raises(AssignmentError):
            assignment_service.assign(main.id, user_id=manager.id, staff_user_id=cashier_staff.id)

    def test_inactive_bar(self, bars, cashier_staff):
        main, _pool = bars
        transfer_service.update_bar(main.id, is_active=False)
        with pytest.raises(AssignmentError, match='not active'):
            assignment_service.assign(main.id, staff_user_id=cashier_staff.id)

    def test_unknown_staff(self, bars):
        main, _pool = bars
        with pytest.raises(AssignmentError, match='Staff user not found'):
            assignment_service.assign(main.id, staff_user_id=999)


class TestAssignmentRoutes:
    def test_assign_and_read_back(self, client, bars, cashier_staff, admin_headers, cashier_headers, super_admin):
        main, pool = bars
        response = client.post('/api/assignments', headers=admin_headers, json={
            'bar_id': main.id,
            'staff_user_id': cashier_staff.id,
        })
        assert response.status_code == 200
        assignment = response.get_json()['assignment']
        assert assignment['bar'] == {'id': main.id, 'name': 'Main Bar'}
        assert assignment['assigned_by'] == super_admin.id

        client.post('/api/assignments', headers=admin_headers, json={
            'bar_id': pool.id,
            'staff_user_id': cashier_staff.id,
        })
        mine = client.get('/api/assignments/me', headers=cashier_headers).get_json()['assignment']
        assert mine['bar_id'] == pool.id

        listing = client.get('/api/assignments', headers=admin_headers).get_json()['assignments']
        assert len(listing) == 1
        assert listing[0]['profile']['full_name'] == 'Carl Cashier'

    def test_no_assignment(self, client, cashier_headers):
        assert client.get('/api/assignments/me', headers=cashier_headers).get_json() == {'assignment': None}

    def test_bar_id_required(self, client, admin_headers, cashier_staff):
        response = client.post('/api/assignments', headers=admin_headers, json={'staff_user_id': cashier_staff.id})
        assert response.status_code == 400

    def test_unassign_route(self, client, bars, cashier_staff, admin_headers):
        main, _pool = bars
        assignment_service.assign(main.id, staff_user_id=cashier_staff.id)
        response = client.delete('/api/assignments', headers=admin_headers, json={'staff_user_id': cashier_staff.id})
        assert response.get_json() == {'success': True, 'deactivated': 1}
