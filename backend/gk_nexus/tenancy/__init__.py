"""
Tenant isolation: context resolution, role permissions and the
organization-scoped repository for business entities.
"""
