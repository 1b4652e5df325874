"""
Real HTTP integration clients.

These clients communicate with the real external systems:
- Safaricom Daraja OAuth + STK push (daraja.py)
- Google Firestore REST documents API (firestore.py)
- Google service-account token exchange (google_auth.py)

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to src/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in src/api/dependencies.py only.
"""
