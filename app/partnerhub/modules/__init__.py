"""
Feature modules for partner management.

Each module owns its models, service functions and blueprints (admin.py for the
admin API, portal.py for the partner API) and reuses the shared primitives:
admin/partner guards, audit, notifications, storage, mailer and the DB session.
"""
