"""tasker/ -- Task list domain consumed by the private tasker routes.

Layer rule: tasker/ may import from iam/ (for the record store) but never
from api/.
"""
