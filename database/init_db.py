from database.model import db, User, Specialty, Doctor, Service, Patient, ClinicRoom
from datetime import date
from decimal import Decimal
from sqlalchemy import inspect
import logging

logger = logging.getLogger(__name__)

# Seed accounts cannot log in until a real password is set with User.set_password
PASSWORD_PLACEHOLDER = 'HASHED_PASSWORD_PLACEHOLDER'

SAMPLE_USERS = [
  dict(username='admin', full_name='Clinic Admin', role='admin', email='admin@clinic.test'),
  dict(username='recept', full_name='Receptionist One', role='reception', email='frontdesk@clinic.test'),
]

SAMPLE_SPECIALTIES = [
  ('General Practice', 'Primary care physician'),
  ('Pediatrics', 'Child health'),
  ('Dermatology', 'Skin specialist'),
]

# (username or None, license, first, last, phone, email, specialties)
SAMPLE_DOCTORS = [
  ('admin', 'LIC-0001', 'Alice', 'Murithi', '+254700000001', 'alice@clinic.test', ['General Practice', 'Pediatrics']),
  (None, 'LIC-0002', 'John', 'Ouma', '+254700000002', 'john@clinic.test', ['General Practice']),
]

SAMPLE_SERVICES = [
  ('CONS-GP', 'General Consultation', 'Routine doctor consultation', 30, Decimal('10.00')),
  ('CONS-PED', 'Pediatric Consultation', 'Consultation for children', 30, Decimal('12.00')),
  ('SKIN-CRT', 'Skin Consultation', 'Skin-related consultation', 30, Decimal('15.00')),
]

SAMPLE_PATIENTS = [
  dict(national_id='12345678', first_name='Noel', last_name='Tumbo', gender='male',
       date_of_birth=date(1990, 5, 17), phone='+254700000003', email='noel@gm.com'),
]

SAMPLE_ROOMS = [('R101', 'Consult Room 1'), ('R102', 'Consult Room 2')]


def init_db(app, seed=True):

  # create database tables if not already
  with app.app_context():
    db.create_all()

    if seed:
      seed_sample_data()


def seed_sample_data():
  """Insert the sample rows that are missing, matching each on its unique key."""
  added = 0

  for fields in SAMPLE_USERS:
    if not User.query.filter_by(username=fields['username']).first():
      db.session.add(User(password_hash=PASSWORD_PLACEHOLDER, **fields))
      added += 1

  for name, description in SAMPLE_SPECIALTIES:
    if not Specialty.query.filter_by(name=name).first():
      db.session.add(Specialty(name=name, description=description))
      added += 1

  # users and specialties must have ids before doctors can link to them
  db.session.flush()

  for username, license_number, first_name, last_name, phone, email, specialty_names in SAMPLE_DOCTORS:
    if Doctor.query.filter_by(license_number=license_number).first():
      continue
    doctor = Doctor(license_number=license_number, first_name=first_name, last_name=last_name,
                    phone=phone, email=email)
    if username:
      doctor.user = User.query.filter_by(username=username).first()
    doctor.specialties = Specialty.query.filter(Specialty.name.in_(specialty_names)).all()
    db.session.add(doctor)
    added += 1

  for code, name, description, duration, price in SAMPLE_SERVICES:
    if not Service.query.filter_by(code=code).first():
      db.session.add(Service(code=code, name=name, description=description,
                             standard_duration_minutes=duration, price=price))
      added += 1

  for fields in SAMPLE_PATIENTS:
    if not Patient.query.filter_by(national_id=fields['national_id']).first():
      db.session.add(Patient(**fields))
      added += 1

  for code, name in SAMPLE_ROOMS:
    if not ClinicRoom.query.filter_by(code=code).first():
      db.session.add(ClinicRoom(code=code, name=name))
      added += 1

  # Commit once after all inserts
  db.session.commit()
  logger.info("Seeded %d sample rows", added)
  return added


def reset_db(seed=True):
  """Drop every table and build the schema again. All data is lost."""
  logger.warning("Dropping all tables")
  # loaded objects would clash with the re-seeded rows' identities
  db.session.remove()
  db.drop_all()
  db.create_all()
  logger.info("Created %d tables", len(db.metadata.tables))
  if seed:
    seed_sample_data()


def list_tables():
  return sorted(inspect(db.engine).get_table_names())


def describe_table(table_name):
  """
  Columns and indexes of one table as the database reports them.
  Returns {'columns': [...], 'indexes': [...]}; raises LookupError for an unknown table.
  """
  inspector = inspect(db.engine)
  if table_name not in inspector.get_table_names():
    raise LookupError(f"No table named {table_name!r}")

  primary_key = set(inspector.get_pk_constraint(table_name).get('constrained_columns') or [])
  columns = [
    {
      'name': column['name'],
      'type': str(column['type']),
      'nullable': column['nullable'],
      'default': column.get('default'),
      'primary_key': column['name'] in primary_key,
    }
    for column in inspector.get_columns(table_name)
  ]

  indexes = [
    {'name': index['name'], 'columns': index['column_names'], 'unique': bool(index['unique'])}
    for index in inspector.get_indexes(table_name)
  ]
  # unique column constraints are indexes too in information_schema.STATISTICS
  for constraint in inspector.get_unique_constraints(table_name):
    indexes.append({'name': constraint['name'], 'columns': constraint['column_names'], 'unique': True})

  return {'columns': columns, 'indexes': indexes}
