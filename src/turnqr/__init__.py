"""TurnQR time clock.

Feature modules (sessions, reports, qr, employees, ...) sit on thin Flask
controllers and service/repository layers over MySQL.
"""
