"""WFH attendance reconciliation package.

Organized by feature modules (attendance, wfh, reconciliation, checkin)
with a thin Flask controller layer over service/repository layers.
"""
