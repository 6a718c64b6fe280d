"""
Scheduling Domain

Time slots, appointments, fee payments, rescheduling and care session
reports for home-care bookings.
"""
