import pytest
import uuid

from app.core.permissions import Roles

API = "/api/v1"


def _booking(doctor, booking_date, **overrides):
    payload = {
        "doctor_id": str(doctor.id),
        "appointment_date": booking_date.isoformat(),
        "time_slot": {"start": "09:00 AM", "end": "09:30 AM"},
        "consultation_type": "Online",
        "payment_method": "UPI",
        "reason": "Chest pain",
    }
    payload.update(overrides)
    return payload


@pytest.mark.integration
class TestPublicEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_available_slots(self, client, doctor, schedule, booking_date):
        response = client.get(
            f"{API}/schedules/doctors/{doctor.id}/slots", params={"date": booking_date.isoformat()}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == booking_date.isoformat()
        assert [slot["start"] for slot in data["slots"]] == [
            "09:00 AM", "09:30 AM", "10:00 AM", "11:00 AM", "11:30 AM"
        ]

    def test_available_dates(self, client, doctor, schedule, booking_date):
        response = client.get(f"{API}/schedules/doctors/{doctor.id}/available-dates")
        assert response.status_code == 200
        assert response.json()["dates"] == [booking_date.isoformat()]

    def test_slot_check(self, client, doctor, schedule, booking_date):
        response = client.get(
            f"{API}/schedules/doctors/{doctor.id}/slots/check",
            params={"date": booking_date.isoformat(), "start": "09:00 AM", "end": "09:30 AM"},
        )
        assert response.status_code == 200
        assert response.json()["available"] is True

    def test_bad_date_is_structured(self, client, doctor):
        response = client.get(f"{API}/schedules/doctors/{doctor.id}/slots", params={"date": "tomorrow"})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "INVALID_DATE"
        assert "message" in body

    def test_self_service_booking(self, client, doctor, schedule, booking_date):
        payload = _booking(
            doctor, booking_date,
            consultation_type="Offline", payment_method="Cash",
            full_name="Walk In", phone="+1999000222",
        )

        response = client.post(f"{API}/appointments/self-service", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Pending"
        assert data["payment_status"] == "Paid"
        assert data["fee"] == 80.0
        assert data["time_slot"] == {"start": "09:00 AM", "end": "09:30 AM"}


@pytest.mark.integration
@pytest.mark.appointments
class TestBookingEndpoints:

    def test_requires_authentication(self, client, doctor, schedule, booking_date):
        response = client.post(f"{API}/appointments", json=_booking(doctor, booking_date))

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTHENTICATION_ERROR"

    def test_invalid_token(self, client, doctor, schedule, booking_date):
        response = client.post(
            f"{API}/appointments",
            json=_booking(doctor, booking_date),
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    def test_patient_books_for_themselves(self, client, doctor, schedule, patient, patient_headers, booking_date):
        response = client.post(f"{API}/appointments", json=_booking(doctor, booking_date), headers=patient_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["patient_id"] == str(patient.id)
        assert data["fee"] == 100.0
        assert data["token_number"] is None

    def test_staff_must_name_the_patient(self, client, auth_headers, doctor, schedule, patient, booking_date):
        headers = auth_headers(Roles.RECEPTIONIST)

        response = client.post(f"{API}/appointments", json=_booking(doctor, booking_date), headers=headers)
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

        payload = _booking(doctor, booking_date, patient_id=str(patient.id))
        response = client.post(f"{API}/appointments", json=payload, headers=headers)
        assert response.status_code == 201

    def test_taken_slot_conflicts(self, client, auth_headers, doctor, schedule, patient_headers, other_patient, booking_date):
        client.post(f"{API}/appointments", json=_booking(doctor, booking_date), headers=patient_headers)

        response = client.post(
            f"{API}/appointments",
            json=_booking(doctor, booking_date),
            headers=auth_headers(Roles.PATIENT, other_patient.user_id),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "SLOT_UNAVAILABLE"

    def test_wrong_payment_method(self, client, doctor, schedule, patient_headers, booking_date):
        response = client.post(
            f"{API}/appointments",
            json=_booking(doctor, booking_date, payment_method="Cash"),
            headers=patient_headers,
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_PAYMENT_METHOD"

    def test_malformed_body(self, client, patient_headers):
        response = client.post(f"{API}/appointments", json={"doctor_id": "nope"}, headers=patient_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"]["errors"]

    def test_patient_lists_only_own(self, client, auth_headers, doctor, schedule, patient_headers, other_patient, booking_date):
        client.post(f"{API}/appointments", json=_booking(doctor, booking_date), headers=patient_headers)
        client.post(
            f"{API}/appointments",
            json=_booking(doctor, booking_date, time_slot={"start": "09:30 AM", "end": "10:00 AM"}),
            headers=auth_headers(Roles.PATIENT, other_patient.user_id),
        )

        response = client.get(f"{API}/appointments", headers=patient_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["pages"] == 1
        assert data["items"][0]["time_slot"]["start"] == "09:00 AM"


@pytest.mark.integration
@pytest.mark.appointments
class TestLifecycleEndpoints:

    @pytest.fixture
    def appointment_id(self, client, doctor, schedule, patient_headers, booking_date):
        response = client.post(f"{API}/appointments", json=_booking(doctor, booking_date), headers=patient_headers)
        return response.json()["id"]

    def test_doctor_confirms(self, client, appointment_id, doctor_headers, sent_emails):
        response = client.patch(
            f"{API}/appointments/{appointment_id}/status",
            json={"status": "Confirmed"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Confirmed"
        assert data["token_number"] == 1
        assert data["payment_status"] == "Paid"
        assert data["video_link"]
        assert [email["kind"] for email in sent_emails] == ["confirmed"]

    def test_other_doctor_is_forbidden(self, client, auth_headers, appointment_id, other_doctor):
        response = client.patch(
            f"{API}/appointments/{appointment_id}/status",
            json={"status": "Confirmed"},
            headers=auth_headers(Roles.DOCTOR, other_doctor.user_id),
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_patient_cannot_change_status(self, client, appointment_id, patient_headers):
        response = client.patch(
            f"{API}/appointments/{appointment_id}/status",
            json={"status": "Confirmed"},
            headers=patient_headers,
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"

    def test_invalid_transition(self, client, appointment_id, doctor_headers):
        response = client.patch(
            f"{API}/appointments/{appointment_id}/status",
            json={"status": "Completed"},
            headers=doctor_headers,
        )
        assert response.status_code == 409
        assert response.json()["details"] == {"current_status": "Pending", "target_status": "Completed"}

    def test_complete_with_clinical_data(self, client, appointment_id, doctor_headers):
        for status in ("Confirmed", "With-Doctor"):
            client.patch(f"{API}/appointments/{appointment_id}/status", json={"status": status}, headers=doctor_headers)

        response = client.patch(
            f"{API}/appointments/{appointment_id}/status",
            json={"status": "Completed", "clinical_data": {"diagnosis": ["Hypertension"], "notes": "Review in 2 weeks"}},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        assert response.json()["medical_record_id"] is not None

    def test_patient_cancels(self, client, appointment_id, patient_headers, doctor, booking_date, sent_emails):
        response = client.post(
            f"{API}/appointments/{appointment_id}/cancel", json={"reason": "Feeling better"}, headers=patient_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Cancelled"
        assert data["cancelled_by"] == "Patient"
        assert sent_emails[-1]["kind"] == "cancelled"

        slots = client.get(
            f"{API}/schedules/doctors/{doctor.id}/slots", params={"date": booking_date.isoformat()}
        ).json()["slots"]
        assert slots[0]["start"] == "09:00 AM"

    def test_other_patient_cannot_view_or_cancel(self, client, auth_headers, appointment_id, other_patient):
        headers = auth_headers(Roles.PATIENT, other_patient.user_id)

        assert client.get(f"{API}/appointments/{appointment_id}", headers=headers).status_code == 403
        response = client.post(f"{API}/appointments/{appointment_id}/cancel", json={}, headers=headers)
        assert response.status_code == 403

    def test_reschedule(self, client, appointment_id, patient_headers, booking_date):
        response = client.post(
            f"{API}/appointments/{appointment_id}/reschedule",
            json={"appointment_date": booking_date.isoformat(), "time_slot": {"start": "11:00 AM", "end": "11:30 AM"}},
            headers=patient_headers,
        )
        assert response.status_code == 200
        assert response.json()["time_slot"]["start"] == "11:00 AM"

    def test_admin_marks_missed_and_deletes(self, client, appointment_id, admin_headers):
        response = client.post(f"{API}/appointments/{appointment_id}/missed", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "Missed"

        response = client.delete(f"{API}/appointments/{appointment_id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

    def test_unknown_appointment(self, client, admin_headers):
        response = client.get(f"{API}/appointments/{uuid.uuid4()}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "APPOINTMENT_NOT_FOUND"


@pytest.mark.integration
@pytest.mark.leaves
class TestLeaveEndpoints:

    def test_leave_flow(self, client, doctor, schedule, doctor_headers, patient_headers, admin_headers, booking_date, sent_emails):
        booked = client.post(f"{API}/appointments", json=_booking(doctor, booking_date), headers=patient_headers).json()

        response = client.post(
            f"{API}/leaves",
            json={"leave_type": "sick", "start_date": booking_date.isoformat()},
            headers=doctor_headers,
        )
        assert response.status_code == 201
        leave = response.json()
        assert leave["status"] == "pending"
        assert leave["total_days"] == 1

        response = client.post(f"{API}/leaves/{leave['id']}/approve", headers=doctor_headers)
        assert response.status_code == 403

        response = client.post(f"{API}/leaves/{leave['id']}/approve", headers=admin_headers)
        assert response.status_code == 200
        result = response.json()
        assert result["leave"]["status"] == "approved"
        assert result["blocked_schedules"] == 1
        assert result["cancelled_appointment_ids"] == [booked["id"]]

        appointment = client.get(f"{API}/appointments/{booked['id']}", headers=patient_headers).json()
        assert appointment["status"] == "Hospital-Cancelled"
        assert appointment["cancelled_by"] == "Hospital"

        response = client.post(f"{API}/leaves/{leave['id']}/reject", json={}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

    def test_doctor_sees_own_leaves(
        self, client, auth_headers, doctor, other_doctor, doctor_headers, admin_headers, booking_date
    ):
        payload = {"leave_type": "casual", "start_date": booking_date.isoformat()}
        client.post(f"{API}/leaves", json=payload, headers=auth_headers(Roles.DOCTOR, other_doctor.user_id))
        client.post(f"{API}/leaves", json=payload, headers=doctor_headers)

        response = client.get(f"{API}/leaves", headers=doctor_headers)
        assert response.status_code == 200
        assert [item["doctor_id"] for item in response.json()["items"]] == [str(doctor.id)]

        # Administrators review every pending request
        response = client.get(f"{API}/leaves", headers=admin_headers)
        assert response.json()["total"] == 2

    def test_doctor_cannot_file_for_a_colleague(self, client, other_doctor, doctor_headers, booking_date):
        response = client.post(
            f"{API}/leaves",
            json={"leave_type": "sick", "start_date": booking_date.isoformat(), "doctor_id": str(other_doctor.id)},
            headers=doctor_headers,
        )
        assert response.status_code == 403
