"""
Mock integration clients.

These clients return fake (but realistic) responses without calling any external API.
They are used when:
- Daraja / Firebase credentials are not configured
- We want to test the relay end-to-end without external dependencies

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Mock clients should return data shaped according to src/integrations/contracts/*

Switching to real:
Set INTEGRATIONS_MODE=real (or provide Daraja and Firebase credentials) and
src/api/dependencies.py wires clients/real_http/* instead.
"""
