from database import db
from decimal import Decimal
from sqlalchemy import event, select
from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash
import uuid


USER_ROLES = ('admin', 'reception', 'doctor', 'nurse', 'accountant')
GENDERS = ('male', 'female', 'other')
ADDRESS_TYPES = ('home', 'work', 'other')
APPOINTMENT_STATUSES = ('scheduled', 'confirmed', 'checked_in', 'in_progress', 'completed', 'cancelled', 'no_show')
INVOICE_STATUSES = ('unpaid', 'partially_paid', 'paid', 'void')
PAYMENT_METHODS = ('cash', 'card', 'mobile_money', 'insurance')


class ImmutableFieldError(ValueError):
  """Raised when an identifier is reassigned after it was first set."""


def _keep_first_value(obj, key, value):
  current = getattr(obj, key)
  if current is not None and value != current:
    raise ImmutableFieldError(f"{type(obj).__name__}.{key} cannot be changed once assigned")
  return value


def _now():
  return db.func.current_timestamp()


class User(db.Model):
  """Staff account: admins, reception, doctors, nurses and accountants."""
  __tablename__ = "users"

  user_id = db.Column(db.Integer, primary_key=True)
  username = db.Column(db.String(50), nullable=False, unique=True)
  password_hash = db.Column(db.String(255), nullable=False)  # never the raw password
  full_name = db.Column(db.String(150), nullable=False)
  role = db.Column(db.Enum(*USER_ROLES, name='user_role', create_constraint=True),
                   nullable=False, default='reception', server_default='reception')
  email = db.Column(db.String(150), unique=True)
  phone = db.Column(db.String(30))
  created_at = db.Column(db.DateTime, server_default=_now())
  last_login = db.Column(db.DateTime, nullable=True)

  def set_password(self, password):
    self.password_hash = generate_password_hash(password)

  def check_password(self, password):
    return check_password_hash(self.password_hash, password)

  def __repr__(self):
    return f"<User {self.username} role={self.role}>"


class Patient(db.Model):
  __tablename__ = "patients"

  patient_id = db.Column(db.Integer, primary_key=True)
  national_id = db.Column(db.String(50), unique=True)  # may be NULL if not provided
  first_name = db.Column(db.String(100), nullable=False)
  last_name = db.Column(db.String(100), nullable=False)
  gender = db.Column(db.Enum(*GENDERS, name='gender', create_constraint=True),
                     default='other', server_default='other')
  date_of_birth = db.Column(db.Date)
  phone = db.Column(db.String(30))
  email = db.Column(db.String(150))
  created_at = db.Column(db.DateTime, server_default=_now())
  emergency_contact_name = db.Column(db.String(150))
  emergency_contact_phone = db.Column(db.String(30))

  # relationship
  addresses = db.relationship('Address', backref='patient', cascade='all', passive_deletes=True, lazy=True)
  appointments = db.relationship('Appointment', backref='patient', cascade='all', passive_deletes=True, lazy=True)
  medical_records = db.relationship('MedicalRecord', backref='patient', cascade='all', passive_deletes=True, lazy=True)
  invoices = db.relationship('Invoice', backref='patient', cascade='all', passive_deletes=True, lazy=True)

  __table_args__ = (db.Index('idx_patient_name', 'last_name', 'first_name'),)

  @validates('patient_id')
  def _freeze_id(self, key, value):
    return _keep_first_value(self, key, value)

  @property
  def full_name(self):
    return f"{self.first_name} {self.last_name}"

  def __repr__(self):
    return f"<Patient {self.patient_id} {self.full_name}>"


class Address(db.Model):
  __tablename__ = "addresses"

  address_id = db.Column(db.Integer, primary_key=True)
  patient_id = db.Column(db.Integer, db.ForeignKey('patients.patient_id', ondelete='CASCADE'), nullable=False)
  type = db.Column(db.Enum(*ADDRESS_TYPES, name='address_type', create_constraint=True),
                   default='home', server_default='home')
  line1 = db.Column(db.String(255), nullable=False)
  line2 = db.Column(db.String(255))
  city = db.Column(db.String(100))
  county = db.Column(db.String(100))
  postal_code = db.Column(db.String(20))
  country = db.Column(db.String(100))
  created_at = db.Column(db.DateTime, server_default=_now())

  @validates('address_id')
  def _freeze_id(self, key, value):
    return _keep_first_value(self, key, value)


class Specialty(db.Model):
  __tablename__ = "specialties"

  specialty_id = db.Column(db.Integer, primary_key=True)
  name = db.Column(db.String(100), nullable=False, unique=True)
  description = db.Column(db.Text)


# Doctors <-> Specialties (many-to-many)
doctor_specialties = db.Table(
  'doctor_specialties',
  db.Column('doctor_id', db.Integer, db.ForeignKey('doctors.doctor_id', ondelete='CASCADE'), primary_key=True),
  db.Column('specialty_id', db.Integer, db.ForeignKey('specialties.specialty_id', ondelete='CASCADE'), primary_key=True),
)


class Doctor(db.Model):
  __tablename__ = "doctors"

  doctor_id = db.Column(db.Integer, primary_key=True)
  user_id = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)  # optional login
  license_number = db.Column(db.String(100), unique=True)
  first_name = db.Column(db.String(100), nullable=False)
  last_name = db.Column(db.String(100), nullable=False)
  phone = db.Column(db.String(30))
  email = db.Column(db.String(150))
  bio = db.Column(db.Text)
  created_at = db.Column(db.DateTime, server_default=_now())

  # relationship
  user = db.relationship('User', backref=db.backref('doctors', passive_deletes=True, lazy=True))
  specialties = db.relationship('Specialty', secondary=doctor_specialties, passive_deletes=True,
                                backref=db.backref('doctors', passive_deletes=True, lazy=True), lazy=True)
  appointments = db.relationship('Appointment', backref='doctor', passive_deletes=True, lazy=True)

  __table_args__ = (db.Index('idx_doctor_name', 'last_name', 'first_name'),)

  @property
  def full_name(self):
    return f"{self.first_name} {self.last_name}"

  def __repr__(self):
    return f"<Doctor {self.license_number} {self.full_name}>"


class ClinicRoom(db.Model):
  __tablename__ = "clinic_rooms"

  room_id = db.Column(db.Integer, primary_key=True)
  code = db.Column(db.String(20), nullable=False, unique=True)
  name = db.Column(db.String(100))
  location_description = db.Column(db.String(255))
  capacity = db.Column(db.Integer, default=1, server_default='1')
  created_at = db.Column(db.DateTime, server_default=_now())

  appointments = db.relationship('Appointment', backref='room', passive_deletes=True, lazy=True)


class Service(db.Model):
  """Catalog of consult / procedure types with their current price."""
  __tablename__ = "services"

  service_id = db.Column(db.Integer, primary_key=True)
  code = db.Column(db.String(50), nullable=False, unique=True)
  name = db.Column(db.String(150), nullable=False)
  description = db.Column(db.Text)
  standard_duration_minutes = db.Column(db.Integer, nullable=False, default=30, server_default='30')
  price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'), server_default='0.00')
  created_at = db.Column(db.DateTime, server_default=_now())

  # ON DELETE RESTRICT: the database refuses the delete while any line references the service
  appointment_services = db.relationship('AppointmentService', backref='service', passive_deletes='all', lazy=True)


class Appointment(db.Model):
  """
  One visit for one patient, optionally with one doctor and one room.
  - scheduled_end must be strictly after scheduled_start (chk_appointment_times).
  - appointment_uuid is the stable external reference.
  - status values are permitted states only; transitions are up to the caller.
  """
  __tablename__ = "appointments"

  appointment_id = db.Column(db.Integer, primary_key=True)
  appointment_uuid = db.Column(db.String(36), nullable=False, unique=True, default=lambda: str(uuid.uuid4()))
  patient_id = db.Column(db.Integer, db.ForeignKey('patients.patient_id', ondelete='CASCADE'), nullable=False)
  doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.doctor_id', ondelete='SET NULL'), nullable=True)
  room_id = db.Column(db.Integer, db.ForeignKey('clinic_rooms.room_id', ondelete='SET NULL'), nullable=True)
  scheduled_start = db.Column(db.DateTime, nullable=False)
  scheduled_end = db.Column(db.DateTime, nullable=False)
  status = db.Column(db.Enum(*APPOINTMENT_STATUSES, name='appointment_status', create_constraint=True),
                     nullable=False, default='scheduled', server_default='scheduled')
  created_by_user = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)
  created_at = db.Column(db.DateTime, server_default=_now())
  notes = db.Column(db.Text)

  # relationship
  creator = db.relationship('User', foreign_keys=[created_by_user])
  services = db.relationship('AppointmentService', backref='appointment', cascade='all, delete-orphan', passive_deletes=True, lazy=True)
  medical_records = db.relationship('MedicalRecord', backref='appointment', passive_deletes=True, lazy=True)
  invoices = db.relationship('Invoice', backref='appointment', passive_deletes=True, lazy=True)

  __table_args__ = (
    db.CheckConstraint('scheduled_end > scheduled_start', name='chk_appointment_times'),
    db.Index('idx_appointments_patient', 'patient_id'),
    db.Index('idx_appointments_doctor', 'doctor_id'),
    db.Index('idx_appointments_start', 'scheduled_start'),
  )

  def __init__(self, **kwargs):
    kwargs.setdefault('appointment_uuid', str(uuid.uuid4()))
    super().__init__(**kwargs)

  @validates('appointment_id', 'appointment_uuid')
  def _freeze_id(self, key, value):
    return _keep_first_value(self, key, value)

  @property
  def duration(self):
    return self.scheduled_end - self.scheduled_start

  def add_service(self, service, quantity=1):
    """Attach a service, freezing its current catalog price on the line."""
    line = AppointmentService(service=service, quantity=quantity, service_price=service.price)
    self.services.append(line)
    return line

  def __repr__(self):
    return f"<Appointment {self.appointment_uuid} {self.status} {self.scheduled_start}>"


class AppointmentService(db.Model):
  __tablename__ = "appointment_services"

  appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.appointment_id', ondelete='CASCADE'), primary_key=True)
  service_id = db.Column(db.Integer, db.ForeignKey('services.service_id', ondelete='RESTRICT'), primary_key=True)
  quantity = db.Column(db.Integer, nullable=False, default=1, server_default='1')
  service_price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot of services.price at booking time


@event.listens_for(AppointmentService, 'before_insert')
def _snapshot_service_price(mapper, connection, target):
  if target.service_price is None:
    target.service_price = connection.scalar(
      select(Service.price).where(Service.service_id == target.service_id)
    )


class MedicalRecord(db.Model):
  """Visit notes; many records per patient, optionally tied to the appointment."""
  __tablename__ = "medical_records"

  record_id = db.Column(db.Integer, primary_key=True)
  patient_id = db.Column(db.Integer, db.ForeignKey('patients.patient_id', ondelete='CASCADE'), nullable=False)
  appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.appointment_id', ondelete='SET NULL'), nullable=True)
  record_date = db.Column(db.DateTime, server_default=_now())
  height_cm = db.Column(db.Numeric(6, 2), nullable=True)
  weight_kg = db.Column(db.Numeric(6, 2), nullable=True)
  diagnosis = db.Column(db.Text)
  notes = db.Column(db.Text)
  created_by = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)

  # relationship
  author = db.relationship('User', foreign_keys=[created_by])
  prescriptions = db.relationship('Prescription', backref='record', cascade='all, delete-orphan', passive_deletes=True, lazy=True)


class Prescription(db.Model):
  __tablename__ = "prescriptions"

  prescription_id = db.Column(db.Integer, primary_key=True)
  record_id = db.Column(db.Integer, db.ForeignKey('medical_records.record_id', ondelete='CASCADE'), nullable=False)
  prescribed_on = db.Column(db.DateTime, server_default=_now())
  prescribed_by = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)
  notes = db.Column(db.Text)

  # relationship
  prescriber = db.relationship('User', foreign_keys=[prescribed_by])
  items = db.relationship('PrescriptionItem', backref='prescription', cascade='all, delete-orphan', passive_deletes=True, lazy=True)


class PrescriptionItem(db.Model):
  __tablename__ = "prescription_items"

  prescription_item_id = db.Column(db.Integer, primary_key=True)
  prescription_id = db.Column(db.Integer, db.ForeignKey('prescriptions.prescription_id', ondelete='CASCADE'), nullable=False)
  medication_name = db.Column(db.String(255), nullable=False)
  dosage = db.Column(db.String(100))      # e.g. "500 mg"
  frequency = db.Column(db.String(100))   # e.g. "twice daily"
  duration_days = db.Column(db.Integer)
  instructions = db.Column(db.Text)


class Invoice(db.Model):
  __tablename__ = "invoices"

  invoice_id = db.Column(db.Integer, primary_key=True)
  appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.appointment_id', ondelete='SET NULL'), nullable=True)
  patient_id = db.Column(db.Integer, db.ForeignKey('patients.patient_id', ondelete='CASCADE'), nullable=False)
  invoice_date = db.Column(db.DateTime, server_default=_now())
  total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'), server_default='0.00')
  status = db.Column(db.Enum(*INVOICE_STATUSES, name='invoice_status', create_constraint=True),
                     default='unpaid', server_default='unpaid')
  created_by = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)

  # relationship
  creator = db.relationship('User', foreign_keys=[created_by])
  items = db.relationship('InvoiceItem', backref='invoice', cascade='all, delete-orphan', passive_deletes=True, lazy=True)
  payments = db.relationship('Payment', backref='invoice', cascade='all, delete-orphan', passive_deletes=True, lazy=True)

  @property
  def amount_paid(self):
    return sum((payment.amount for payment in self.payments), Decimal('0.00'))


class InvoiceItem(db.Model):
  __tablename__ = "invoice_items"

  invoice_item_id = db.Column(db.Integer, primary_key=True)
  invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.invoice_id', ondelete='CASCADE'), nullable=False)
  description = db.Column(db.String(255))
  quantity = db.Column(db.Integer, nullable=False, default=1, server_default='1')
  unit_price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'), server_default='0.00')
  line_total = db.Column(db.Numeric(10, 2), db.Computed('quantity * unit_price', persisted=False))


class Payment(db.Model):
  __tablename__ = "payments"

  payment_id = db.Column(db.Integer, primary_key=True)
  invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.invoice_id', ondelete='CASCADE'), nullable=False)
  paid_on = db.Column(db.DateTime, server_default=_now())
  amount = db.Column(db.Numeric(10, 2), nullable=False)
  method = db.Column(db.Enum(*PAYMENT_METHODS, name='payment_method', create_constraint=True),
                     default='cash', server_default='cash')
  reference = db.Column(db.String(255))
  received_by = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)

  receiver = db.relationship('User', foreign_keys=[received_by])
