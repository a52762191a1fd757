"""
Test package for the GK-Nexus backend.

This package contains test suites for:
- Tenant context resolution
- Multi-tenant data isolation in the repository
- Audit trail completeness, atomicity and immutability
- Invoice numbering and totals
- Authentication and the HTTP API
"""
