"""
GK-Nexus backend.

Multi-tenant data isolation and audit trail for a professional-services
practice management application.
"""
