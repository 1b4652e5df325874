"""
Contracts (data models).

This folder defines the shapes exchanged with external integrations:
- STK push transaction descriptor sent to Daraja
- STK callback result parsed from Daraja notifications
- Payment records written to / read from Firestore

Both mock and real HTTP clients should use these contracts.
"""
