API_VERSION_HEADER = "X-Tenant-Gateway-Version"
REQUEST_ID_HEADER = "X-Request-ID"

# Organization lookup rate limiting, per normalized email
LOOKUP_RATE_LIMIT = 5
LOOKUP_RATE_LIMIT_WINDOW_SECONDS = 15 * 60

# Loose shape check, the identity provider is the real validator
EMAIL_PATTERN = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"

# Management store tables
ORGANIZATIONS_TABLE = "organizations"
USER_ORGANIZATIONS_TABLE = "user_organizations"

# Paths excluded from request logging
SKIP_LOGGING_PATHS = {
    "/health/liveness",
}


class RateLimitKeys:
    """Typed rate limiting cache key generators."""

    @staticmethod
    def organization_lookup(email: str) -> str:
        """Generate rate limit key for organization lookups by email."""
        return f"rate_limit:lookup:email:{email}"
