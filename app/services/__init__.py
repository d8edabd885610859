"""Service package — business logic layer.

Services orchestrate business rules on top of the repositories, own cache
eviction and flush (never commit) the session; routers commit.
"""
