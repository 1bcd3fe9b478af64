"""
Academic Buddy Services Package

Core Services:
- identity_service: identity provider account sync and access tokens
- task_service: ownership checks and the task lifecycle
"""
