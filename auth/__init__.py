"""auth/ -- Session tokens, password hashing and access policy for socialgraph.

Layer rule: auth/ imports only stdlib, third-party libraries, core/ and (for
type hints and the login lookup) social/. It does NOT import from api/ or
graph/. api/ and graph/ import from auth/, not the other way around.
"""
