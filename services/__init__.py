"""
Feature modules
- activity_logs: audit trail of collection writes
- users: profiles and admin listing
- auth: register, login and token verification
- app: root HTTP routes
"""
