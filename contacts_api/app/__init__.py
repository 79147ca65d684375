"""
Application package.

``core`` holds configuration, logging, persistence, security and the
error types; ``schemas`` the pydantic models; ``services`` the directory
components and the use cases; ``api`` the versioned HTTP routes.
"""
