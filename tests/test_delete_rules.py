# tests/test_delete_rules.py
import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from database.model import (
    Address, Appointment, AppointmentService, MedicalRecord, Prescription, PrescriptionItem,
    Invoice, InvoiceItem, Payment, Doctor, Specialty, Service, Patient, doctor_specialties,
)


@pytest.fixture
def patient_history(session, patient, appointment, service, user):
    """A patient with one row in every dependent table."""
    session.add(Address(patient=patient, type="home", line1="12 Kenyatta Ave", city="Nairobi", country="Kenya"))
    appointment.add_service(service, quantity=2)
    appointment.created_by_user = user.user_id

    record = MedicalRecord(patient=patient, appointment=appointment, diagnosis="Flu", created_by=user.user_id,
                           height_cm=Decimal("180.00"), weight_kg=Decimal("75.50"))
    prescription = Prescription(record=record, prescribed_by=user.user_id)
    prescription.items.append(PrescriptionItem(medication_name="Paracetamol", dosage="500 mg",
                                               frequency="twice daily", duration_days=5))

    invoice = Invoice(patient=patient, appointment=appointment, total_amount=Decimal("20.00"), created_by=user.user_id)
    invoice.items.append(InvoiceItem(description="Consultation", quantity=2, unit_price=Decimal("10.00")))
    invoice.payments.append(Payment(amount=Decimal("20.00"), method="card", received_by=user.user_id))

    session.add_all([record, prescription, invoice])
    session.commit()
    return patient


def test_deleting_patient_removes_all_dependent_rows(session, patient_history, service):
    session.delete(patient_history)
    session.commit()

    for model in (Address, Appointment, AppointmentService, MedicalRecord, Prescription,
                  PrescriptionItem, Invoice, InvoiceItem, Payment):
        assert model.query.count() == 0, model.__tablename__

    # catalog data is not patient data
    assert Service.query.count() == 1


def test_deleting_user_keeps_history_and_nulls_references(session, patient_history, user, doctor):
    doctor.user = user
    session.commit()

    session.delete(user)
    session.commit()

    assert Doctor.query.one().user_id is None
    assert Appointment.query.one().created_by_user is None
    assert MedicalRecord.query.one().created_by is None
    assert Prescription.query.one().prescribed_by is None
    assert Invoice.query.one().created_by is None
    assert Payment.query.one().received_by is None
    assert PrescriptionItem.query.count() == 1
    assert InvoiceItem.query.count() == 1


def test_deleting_referenced_service_is_rejected(session, appointment, service):
    appointment.add_service(service)
    session.commit()

    session.delete(service)
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()

    assert Service.query.count() == 1
    assert AppointmentService.query.count() == 1


def test_unreferenced_service_can_be_deleted(session, service):
    session.delete(service)
    session.commit()
    assert Service.query.count() == 0


def test_deleting_appointment_keeps_records_and_invoices(session, patient_history, appointment):
    session.delete(appointment)
    session.commit()

    assert AppointmentService.query.count() == 0
    assert MedicalRecord.query.one().appointment_id is None
    assert Invoice.query.one().appointment_id is None


def test_deleting_doctor_or_room_detaches_appointment(session, appointment, doctor, room):
    session.delete(doctor)
    session.delete(room)
    session.commit()

    remaining = Appointment.query.one()
    assert remaining.doctor_id is None
    assert remaining.room_id is None


def test_doctor_specialty_links_cascade_both_ways(session, doctor):
    gp = Specialty(name="General Practice")
    peds = Specialty(name="Pediatrics")
    doctor.specialties = [gp, peds]
    session.commit()
    assert len(session.execute(doctor_specialties.select()).all()) == 2

    session.delete(gp)
    session.commit()
    assert [s.name for s in doctor.specialties] == ["Pediatrics"]

    session.delete(doctor)
    session.commit()
    assert session.execute(doctor_specialties.select()).all() == []
    assert Specialty.query.count() == 1


def test_deleting_record_removes_prescriptions(session, patient_history):
    session.delete(MedicalRecord.query.one())
    session.commit()

    assert Prescription.query.count() == 0
    assert PrescriptionItem.query.count() == 0
    assert Patient.query.count() == 1
