"""auth/ -- Credentials, identity tokens, and ownership checks for Digital Library.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or library/.
api/ and library/ import from auth/, not the other way around.
"""
