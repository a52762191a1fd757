"""
Pydantic schemas for API request/response validation.

Provides data models for authentication, organizations, the tenant-scoped
business entities (clients, documents, appointments, tax calculations,
invoices) and audit log queries.
"""
