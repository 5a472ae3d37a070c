"""
Cleaning request tests for TidyUp (customer side)
Tests submission, the customer's plan, edits, deletion and ratings
"""
import json

from models import db, CleaningRequest, DEFAULT_NOTES
from lifecycle import COMPLETED, CONFIRMED, REJECTED
from conftest import future_date, past_date, headers_for, reload


class TestSubmission:
    """Test creating cleaning requests"""

    def test_submit_request(self, client, customer, customer_headers):
        """Test a valid submission creates one pending request with default notes"""
        response = client.post('/api/requests', headers=customer_headers, json={
            'location': '12 Harbor Street',
            'date': future_date(),
            'time': '10:00 AM',
        })

        assert response.status_code == 201
        data = json.loads(response.data)['request']
        assert data['userId'] == customer.id
        assert data['userEmail'] == customer.email
        assert data['status'] == 'pending'
        assert data['additionalNotes'] == DEFAULT_NOTES
        assert data['cleanerId'] is None
        assert data['rating'] is None
        assert data['timestamp']

    def test_submit_keeps_notes(self, client, customer_headers):
        response = client.post('/api/requests', headers=customer_headers, json={
            'location': '12 Harbor Street',
            'date': future_date(),
            'time': '9:30 pm',
            'notes': 'Two bathrooms',
        })

        data = json.loads(response.data)['request']
        assert data['additionalNotes'] == 'Two bathrooms'
        assert data['time'] == '09:30 PM'

    def test_submit_requires_session(self, client):
        response = client.post('/api/requests', json={
            'location': '12 Harbor Street', 'date': future_date(), 'time': '10:00 AM',
        })
        assert response.status_code == 401

    def test_submit_missing_fields(self, client, customer_headers):
        response = client.post('/api/requests', headers=customer_headers, json={
            'location': '12 Harbor Street', 'date': future_date(),
        })

        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'Please fill out all required fields.'
        assert CleaningRequest.query.count() == 0

    def test_submit_in_the_past(self, client, customer_headers):
        response = client.post('/api/requests', headers=customer_headers, json={
            'location': '12 Harbor Street', 'date': past_date(), 'time': '10:00 AM',
        })

        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'Invalid time: You cannot select a past date or time.'
        assert CleaningRequest.query.count() == 0

    def test_submit_bad_time_format(self, client, customer_headers):
        response = client.post('/api/requests', headers=customer_headers, json={
            'location': '12 Harbor Street', 'date': future_date(), 'time': '14:00',
        })
        assert response.status_code == 400

    def test_duplicate_submissions_are_separate(self, client, customer_headers):
        payload = {'location': '12 Harbor Street', 'date': future_date(), 'time': '10:00 AM'}
        first = client.post('/api/requests', headers=customer_headers, json=payload)
        second = client.post('/api/requests', headers=customer_headers, json=payload)

        assert json.loads(first.data)['request']['id'] != json.loads(second.data)['request']['id']
        assert CleaningRequest.query.count() == 2


class TestPlan:
    """Test listing, editing and deleting the customer's own requests"""

    def test_list_only_own_requests(self, client, customer, other_customer, make_request, customer_headers):
        mine = make_request(customer)
        make_request(other_customer)

        response = client.get('/api/requests', headers=customer_headers)

        data = json.loads(response.data)
        assert [r['id'] for r in data['requests']] == [mine.id]

    def test_edit_request(self, client, pending_request, customer_headers):
        new_date = future_date(days=3)
        response = client.put(f'/api/requests/{pending_request.id}', headers=customer_headers, json={
            'location': '99 Elm Road', 'date': new_date, 'time': '02:15 PM',
        })

        assert response.status_code == 200
        updated = reload(pending_request)
        assert updated.location == '99 Elm Road'
        assert updated.date == new_date
        assert updated.time == '02:15 PM'
        assert updated.status == 'pending'

    def test_edit_rejects_bad_date(self, client, pending_request, customer_headers):
        response = client.put(f'/api/requests/{pending_request.id}', headers=customer_headers, json={
            'location': '99 Elm Road', 'date': '10/20/2030', 'time': '02:15 PM',
        })

        assert response.status_code == 400
        assert reload(pending_request).location == '12 Harbor Street'

    def test_edit_rejects_past_date(self, client, pending_request, customer_headers):
        original_date = pending_request.date

        response = client.put(f'/api/requests/{pending_request.id}', headers=customer_headers, json={
            'location': '99 Elm Road', 'date': past_date(), 'time': '10:00 AM',
        })

        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'invalid_time'
        unchanged = reload(pending_request)
        assert unchanged.location == '12 Harbor Street'
        assert unchanged.date == original_date
        assert unchanged.time == '10:00 AM'

    def test_location_is_stored_as_typed(self, client, customer_headers):
        """Punctuation survives submission and repeated edits"""
        location = "5 O'Neil Ave & Co"
        response = client.post('/api/requests', headers=customer_headers, json={
            'location': location, 'date': future_date(), 'time': '10:00 AM',
            'notes': 'Dog is <friendly> & "loud"',
        })
        created = json.loads(response.data)['request']
        assert created['location'] == location
        assert created['additionalNotes'] == 'Dog is <friendly> & "loud"'

        for _ in range(2):
            response = client.put(f'/api/requests/{created["id"]}', headers=customer_headers, json={
                'location': created['location'], 'date': created['date'], 'time': created['time'],
            })
            assert response.status_code == 200
            created = json.loads(response.data)['request']

        assert created['location'] == location
        db.session.expire_all()
        assert db.session.get(CleaningRequest, created['id']).location == location

    def test_edit_rejects_empty_location(self, client, pending_request, customer_headers):
        response = client.put(f'/api/requests/{pending_request.id}', headers=customer_headers, json={
            'location': '   ', 'date': future_date(), 'time': '02:15 PM',
        })
        assert response.status_code == 400

    def test_edit_by_non_owner(self, client, pending_request, other_customer):
        response = client.put(f'/api/requests/{pending_request.id}', headers=headers_for(other_customer), json={
            'location': '99 Elm Road', 'date': future_date(), 'time': '02:15 PM',
        })
        assert response.status_code == 403

    def test_edit_completed_request(self, client, customer, cleaner, make_request, customer_headers):
        done = make_request(customer, status=COMPLETED, cleaner=cleaner)

        response = client.put(f'/api/requests/{done.id}', headers=customer_headers, json={
            'location': '99 Elm Road', 'date': future_date(), 'time': '02:15 PM',
        })
        assert response.status_code == 409

    def test_delete_request(self, client, pending_request, customer_headers):
        request_id = pending_request.id
        response = client.delete(f'/api/requests/{request_id}', headers=customer_headers)
        assert response.status_code == 200

        db.session.expire_all()
        assert db.session.get(CleaningRequest, request_id) is None
        listing = json.loads(client.get('/api/requests', headers=customer_headers).data)
        assert listing['requests'] == []

    def test_delete_by_non_owner(self, client, pending_request, other_customer):
        response = client.delete(f'/api/requests/{pending_request.id}', headers=headers_for(other_customer))

        assert response.status_code == 403
        assert reload(pending_request) is not None

    def test_delete_missing_request(self, client, customer_headers):
        response = client.delete('/api/requests/does-not-exist', headers=customer_headers)
        assert response.status_code == 404

    def test_cleaner_contact(self, client, accepted_request, cleaner, customer_headers):
        response = client.get(f'/api/requests/{accepted_request.id}/cleaner', headers=customer_headers)

        assert response.status_code == 200
        assert json.loads(response.data)['cleaner']['email'] == cleaner.email

    def test_cleaner_contact_unassigned(self, client, pending_request, customer_headers):
        response = client.get(f'/api/requests/{pending_request.id}/cleaner', headers=customer_headers)
        assert response.status_code == 409


class TestRating:
    """Test rating a completed request"""

    def test_rating_updates_cleaner_aggregate(self, client, customer, make_user, make_request, customer_headers):
        """Test a 5 on 10 points over 4 ratings gives 15 over 5, average 3.0"""
        cleaner = make_user('veteran@example.com', role='cleaner',
                            total_points=10, total_ratings=4, average=2.5)
        done = make_request(customer, status=COMPLETED, cleaner=cleaner)

        response = client.post(f'/api/requests/{done.id}/rating', headers=customer_headers,
                               json={'rating': 5})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['request']['rating'] == 5
        assert data['cleaner']['totalPoints'] == 15
        assert data['cleaner']['totalRatings'] == 5
        assert data['cleaner']['average'] == 3.0

        cleaner = reload(cleaner)
        assert (cleaner.total_points, cleaner.total_ratings, cleaner.average) == (15, 5, 3.0)

    def test_second_rating_conflicts(self, client, customer, cleaner, make_request, customer_headers):
        done = make_request(customer, status=COMPLETED, cleaner=cleaner)
        client.post(f'/api/requests/{done.id}/rating', headers=customer_headers, json={'rating': 4})

        response = client.post(f'/api/requests/{done.id}/rating', headers=customer_headers,
                               json={'rating': 1})

        assert response.status_code == 409
        cleaner = reload(cleaner)
        assert cleaner.total_points == 4
        assert cleaner.total_ratings == 1
        assert reload(done).rating == 4

    def test_rating_requires_completed(self, client, customer, cleaner, make_request, customer_headers):
        confirmed = make_request(customer, status=CONFIRMED, cleaner=cleaner)

        response = client.post(f'/api/requests/{confirmed.id}/rating', headers=customer_headers,
                               json={'rating': 5})

        assert response.status_code == 409
        assert reload(cleaner).total_ratings == 0

    def test_rating_out_of_range(self, client, customer, cleaner, make_request, customer_headers):
        done = make_request(customer, status=COMPLETED, cleaner=cleaner)

        for bad in (0, 6, '5', 4.5, True):
            response = client.post(f'/api/requests/{done.id}/rating', headers=customer_headers,
                                   json={'rating': bad})
            assert response.status_code == 400

    def test_only_owner_can_rate(self, client, customer, other_customer, cleaner, make_request):
        done = make_request(customer, status=COMPLETED, cleaner=cleaner)

        response = client.post(f'/api/requests/{done.id}/rating', headers=headers_for(other_customer),
                               json={'rating': 5})
        assert response.status_code == 403

    def test_rejected_request_cannot_be_rated(self, client, customer, make_request, customer_headers):
        rejected = make_request(customer, status=REJECTED)

        response = client.post(f'/api/requests/{rejected.id}/rating', headers=customer_headers,
                               json={'rating': 5})
        assert response.status_code == 409
