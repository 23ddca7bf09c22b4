"""Headers forwarded by the gateway to scope every request."""

TENANT_ID_HEADER = "X-Tenant-ID"
USER_ID_HEADER = "X-User-ID"
