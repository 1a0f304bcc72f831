"""
HealthApp identity service: registration, email verification, login and
password recovery for patients and doctors.
"""
