"""Service layer for business logic.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

Services should:
- Contain all business rules and authorization
- Orchestrate calls to repositories
- Raise NoticeServiceError for every anticipated failure

Services should NOT:
- Directly execute SQL queries (use repositories)
- Know about HTTP request/response details (status codes, headers)
- Commit; the request's session dependency owns the transaction
"""
