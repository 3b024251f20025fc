"""Booking intent parsing.

The intent layer converts an English free-text booking request into a strict `BookingIntent`,
which then parameterizes the reservation workflow.
"""
