"""School Attendance API package.

Organized by feature modules (districts, institutions, users, students, groups,
attendance, ...), each with a thin Flask controller over service and repository
layers. Every resource is scoped to an institution by `scope.ScopeAuthorizer`.
"""
