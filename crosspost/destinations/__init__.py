"""
WordPress REST helpers.

This subpackage wraps the read-only REST queries the transformer needs,
with rate limiting, automatic retries and basic-auth header injection.
"""
