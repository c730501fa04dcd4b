"""iam/ -- Identity, session, and authorization package for the NYS API.

Layer rule: iam/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or tasker/.
api/ and tasker/ import from iam/, not the other way around.
"""
